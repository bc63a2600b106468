"""Failure registry: configs, the authoritative flag store, and delayed activation."""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional

from turbofan_sim.config.constants import FAILURE_IDS
from turbofan_sim.config.schema import FailureConfig, default_failure_configs
from turbofan_sim.errors import UnknownFailureError
from turbofan_sim.faults.event_slot import EventSlot

logger = logging.getLogger(__name__)

# Write paths into the flag store
SOURCE_OPERATOR = "operator"
SOURCE_SCHEDULED = "scheduled"
SOURCE_CASCADE = "cascade"
SOURCE_SUPPRESSION = "suppression"


@dataclass(frozen=True)
class FailureFlags:
    """Immutable view of the failure flags at one instant."""

    engine_fire: bool = False
    oil_pump_failure: bool = False
    fuel_pump_failure: bool = False
    vib_sensor_fault: bool = False

    def to_dict(self) -> Dict[str, bool]:
        return asdict(self)


@dataclass(frozen=True)
class FlagEvent:
    """One change of one failure flag, with the reason it changed."""

    time_ms: int
    failure_id: str
    active: bool
    source: str


class FailureRegistry:
    """Owns failure configs, current flags, and one pending-activation slot per id."""

    def __init__(self, configs: Optional[Dict[str, FailureConfig]] = None):
        self.configs = configs or default_failure_configs()
        self._active: Dict[str, bool] = {fid: False for fid in FAILURE_IDS}
        self._slots: Dict[str, EventSlot] = {fid: EventSlot() for fid in FAILURE_IDS}
        self.events: List[FlagEvent] = []

    def _check(self, failure_id: str) -> None:
        if failure_id not in self._active:
            raise UnknownFailureError(failure_id)

    @property
    def flags(self) -> FailureFlags:
        return FailureFlags(**self._active)

    def is_active(self, failure_id: str) -> bool:
        self._check(failure_id)
        return self._active[failure_id]

    def is_pending(self, failure_id: str) -> bool:
        self._check(failure_id)
        return self._slots[failure_id].pending is not None

    def set_flag(self, failure_id: str, active: bool, now_ms: int, source: str) -> bool:
        """Write a flag. Returns True if the value changed (and was recorded)."""
        self._check(failure_id)
        if self._active[failure_id] == active:
            return False
        self._active[failure_id] = active
        self.events.append(FlagEvent(now_ms, failure_id, active, source))
        logger.info(
            "t=%dms %s %s (%s)", now_ms, failure_id, "SET" if active else "CLEARED", source,
        )
        return True

    def toggle(self, failure_id: str, now_ms: int) -> None:
        """Operator toggle.

        Active: clear now and drop any pending activation. Inactive: activate
        now when the configured delay is 0, otherwise (re)schedule activation.
        """
        self._check(failure_id)
        slot = self._slots[failure_id]
        slot.cancel()

        if self._active[failure_id]:
            self.set_flag(failure_id, False, now_ms, SOURCE_OPERATOR)
            return

        delay_s = self.configs[failure_id].delay_s
        if delay_s > 0:
            event = slot.schedule(now_ms + round(delay_s * 1000))
            logger.info("t=%dms %s scheduled for t=%dms", now_ms, failure_id, event.due_ms)
        else:
            self.set_flag(failure_id, True, now_ms, SOURCE_OPERATOR)

    def update_config(self, failure_id: str, **patch) -> FailureConfig:
        """Change delay/trigger key/label. Activation state is untouched."""
        self._check(failure_id)
        config = self.configs[failure_id]
        unknown = sorted(set(patch) - {"delay_s", "trigger_key", "label"})
        if unknown:
            raise ValueError(f"Unknown failure config fields: {', '.join(unknown)}")

        if "delay_s" in patch:
            delay = float(patch["delay_s"])
            if not math.isfinite(delay):
                raise ValueError(f"delay_s must be finite, got {delay!r} for {failure_id}")
            if delay < 0:
                logger.warning("Negative delay %.3fs for %s clamped to 0", delay, failure_id)
                delay = 0.0
            config.delay_s = delay
        if "trigger_key" in patch:
            config.trigger_key = str(patch["trigger_key"] or "")
        if "label" in patch:
            config.label = str(patch["label"])
        return config

    def failure_for_key(self, key: str) -> Optional[str]:
        if not key:
            return None
        key = key.lower()
        for config in self.configs.values():
            if config.trigger_key and config.trigger_key.lower() == key:
                return config.failure_id
        return None

    def fire_due(self, now_ms: int) -> List[str]:
        """Activate every failure whose scheduled time has been reached."""
        fired = []
        for failure_id, slot in self._slots.items():
            if slot.pop_due(now_ms) is not None:
                self.set_flag(failure_id, True, now_ms, SOURCE_SCHEDULED)
                fired.append(failure_id)
        return fired

    def events_for(self, failure_id: str) -> List[FlagEvent]:
        self._check(failure_id)
        return [e for e in self.events if e.failure_id == failure_id]
