"""Fire detection loops, fuel-cutoff handle, and suppression bottles."""

import logging
from dataclasses import asdict, dataclass, replace
from enum import Enum

import numpy as np

from turbofan_sim.config.constants import BOTTLES, EXTINGUISH_PROBABILITY
from turbofan_sim.errors import FireSystemError

logger = logging.getLogger(__name__)


class LoopStatus(str, Enum):
    NORMAL = "NORMAL"
    FAULT = "FAULT"    # declared for loop-level faults; nothing produces it yet
    FIRE = "FIRE"


class BottleState(str, Enum):
    CHARGED = "CHARGED"
    DISCHARGED = "DISCHARGED"


@dataclass(frozen=True)
class FireSystemState:
    loop_a: LoopStatus = LoopStatus.NORMAL
    loop_b: LoopStatus = LoopStatus.NORMAL
    handle_pulled: bool = False
    bottle1: BottleState = BottleState.CHARGED
    bottle2: BottleState = BottleState.CHARGED
    master_armed: bool = False

    def to_dict(self) -> dict:
        d = asdict(self)
        for key in ("loop_a", "loop_b", "bottle1", "bottle2"):
            d[key] = d[key].value
        return d


@dataclass(frozen=True)
class DischargeResult:
    """Outcome of one discharge request.

    extinguish is drawn once, at discharge time, and only when a fire was
    active; the caller schedules the delayed flag clear.
    """

    discharged: bool
    extinguish: bool = False


def loop_status(engine_fire: bool) -> LoopStatus:
    return LoopStatus.FIRE if engine_fire else LoopStatus.NORMAL


class FireSystem:
    """Suppression panel state machine over handle, arm switch, and two bottles."""

    def __init__(self, extinguish_probability: float = EXTINGUISH_PROBABILITY):
        self.extinguish_probability = extinguish_probability
        self._state = FireSystemState()

    @property
    def state(self) -> FireSystemState:
        return self._state

    @property
    def handle_pulled(self) -> bool:
        return self._state.handle_pulled

    def sync_loops(self, engine_fire: bool) -> None:
        status = loop_status(engine_fire)
        if self._state.loop_a != status or self._state.loop_b != status:
            self._state = replace(self._state, loop_a=status, loop_b=status)

    def pull_handle(self) -> None:
        self._state = replace(self._state, handle_pulled=not self._state.handle_pulled)
        logger.info("Fire handle %s", "PULLED" if self._state.handle_pulled else "STOWED")

    def toggle_master_arm(self) -> None:
        self._state = replace(self._state, master_armed=not self._state.master_armed)
        logger.info("Fire master %s", "ARMED" if self._state.master_armed else "SAFE")

    def discharge(self, bottle: str, fire_active: bool, rng: np.random.Generator) -> DischargeResult:
        if bottle not in BOTTLES:
            raise FireSystemError(f"Unknown bottle: {bottle!r}")

        if getattr(self._state, bottle) == BottleState.DISCHARGED:
            logger.debug("Discharge %s ignored: already discharged", bottle)
            return DischargeResult(discharged=False)
        if not self._state.handle_pulled or not self._state.master_armed:
            logger.debug(
                "Discharge %s ignored: handle_pulled=%s armed=%s",
                bottle, self._state.handle_pulled, self._state.master_armed,
            )
            return DischargeResult(discharged=False)

        self._state = replace(self._state, **{bottle: BottleState.DISCHARGED})
        extinguish = bool(fire_active and rng.random() < self.extinguish_probability)
        logger.info("%s DISCHARGED (fire=%s, effective=%s)", bottle, fire_active, extinguish)
        return DischargeResult(discharged=True, extinguish=extinguish)
