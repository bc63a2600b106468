"""Dataclasses for controls, failure configuration, and simulation setup."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Dict, Optional

from turbofan_sim.config.constants import (
    AMBIENT_TEMP_C,
    DUMP_RATE_KG_S,
    EXTINGUISH_PROBABILITY,
    FAILURE_IDS,
    FAILURE_LABELS,
    TANK_CAPACITY_KG,
    TICK_MS,
)
from turbofan_sim.errors import ConfigValidationError, ControlsError


def clamp_throttle(value: float) -> float:
    return min(100.0, max(0.0, float(value)))


@dataclass(frozen=True)
class Controls:
    """Cockpit control positions. Booleans are independent; throttle is 0-100."""

    master_switch: bool = False
    fuel_pump: bool = False
    ignition: bool = False
    starter: bool = False
    throttle: float = 0.0
    bleed_air: bool = True
    pack_l: bool = False
    pack_r: bool = False
    # Tank variant
    tank_pump_l: bool = False
    tank_pump_r: bool = False
    crossfeed: bool = False
    dump_l: bool = False
    dump_r: bool = False

    def __post_init__(self):
        # Switches must be real booleans; "false" or "no" would read as truthy
        for f in fields(self):
            if f.name != "throttle" and not isinstance(getattr(self, f.name), bool):
                raise ControlsError(
                    f"Control {f.name} must be true or false, got {getattr(self, f.name)!r}"
                )
        if isinstance(self.throttle, bool):
            raise ControlsError(f"Control throttle must be a number, got {self.throttle!r}")
        try:
            throttle = clamp_throttle(self.throttle)
        except (TypeError, ValueError):
            raise ControlsError(f"Control throttle must be a number, got {self.throttle!r}") from None
        object.__setattr__(self, "throttle", throttle)

    def merged(self, **patch) -> Controls:
        """Return a copy with the patch applied. Unknown names are rejected."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(patch) - known)
        if unknown:
            raise ControlsError(f"Unknown controls: {', '.join(unknown)}")
        return replace(self, **patch)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class FailureConfig:
    """Operator configuration for one injectable failure."""

    failure_id: str
    label: str
    delay_s: float = 0.0           # 0 = instantaneous
    trigger_key: str = ""          # "" = no key binding

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def default_failure_configs() -> Dict[str, FailureConfig]:
    return {fid: FailureConfig(failure_id=fid, label=FAILURE_LABELS[fid]) for fid in FAILURE_IDS}


@dataclass(frozen=True)
class SimulationConfig:
    """Static parameters of one simulation session."""

    tick_ms: int = TICK_MS
    ambient_temp: float = AMBIENT_TEMP_C
    seed: Optional[int] = None
    fuel_system: bool = False                 # use tank pumps instead of fuel_pump
    tank_capacity_kg: float = TANK_CAPACITY_KG
    dump_rate_kg_s: float = DUMP_RATE_KG_S
    extinguish_probability: float = EXTINGUISH_PROBABILITY


def validate_simulation_config(config: SimulationConfig) -> None:
    """Raise ConfigValidationError on the first invalid parameter."""
    if config.tick_ms <= 0:
        raise ConfigValidationError(f"tick_ms must be positive, got {config.tick_ms}")
    if config.tank_capacity_kg < 0:
        raise ConfigValidationError(
            f"tank_capacity_kg must be non-negative, got {config.tank_capacity_kg}"
        )
    if config.dump_rate_kg_s < 0:
        raise ConfigValidationError(
            f"dump_rate_kg_s must be non-negative, got {config.dump_rate_kg_s}"
        )
    if not (0.0 <= config.extinguish_probability <= 1.0):
        raise ConfigValidationError(
            f"extinguish_probability must be in [0, 1], got {config.extinguish_probability}"
        )
