"""Failure cascades evaluated before the state machine each tick.

* Oil-pump failure while turning: immediate fire, seizure after 5000 ms dwell.
* Engine fire: seizure after 7500 ms dwell.
"""

import logging
from dataclasses import dataclass

from turbofan_sim.config.constants import (
    FIRE_SEIZE_MS,
    OIL_CASCADE_MIN_CORE,
    OIL_FAILURE_SEIZE_MS,
)
from turbofan_sim.faults.failure_registry import FailureFlags
from turbofan_sim.simulation.operating_mode import OperatingMode
from turbofan_sim.simulation.physics import PhysicsState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CascadeResult:
    ignite: bool = False          # set engine_fire (source: cascade)
    force_seized: bool = False    # overrides the transition table this tick


def apply_cascades(
    mode: OperatingMode,
    flags: FailureFlags,
    physics: PhysicsState,
    dt_ms: int,
) -> CascadeResult:
    """Advance dwell accumulators in physics and report the cascade outcome.

    flags is the tick's snapshot; a fire started here is seen from the next tick.
    """
    ignite = False
    seize = False

    if (
        flags.oil_pump_failure
        and mode not in (OperatingMode.OFF, OperatingMode.SEIZED)
        and physics.core_speed > OIL_CASCADE_MIN_CORE
    ):
        physics.oil_failure_ms += dt_ms
        if not flags.engine_fire:
            ignite = True
        if physics.oil_failure_ms > OIL_FAILURE_SEIZE_MS:
            logger.warning("Oil starvation for %dms: engine SEIZED", physics.oil_failure_ms)
            seize = True
    elif not flags.oil_pump_failure:
        physics.oil_failure_ms = 0

    if flags.engine_fire and mode != OperatingMode.SEIZED:
        physics.fire_ms += dt_ms
        if physics.fire_ms > FIRE_SEIZE_MS:
            logger.warning("Fire for %dms: engine SEIZED", physics.fire_ms)
            seize = True
    elif not flags.engine_fire:
        physics.fire_ms = 0

    return CascadeResult(ignite=ignite, force_seized=seize)
