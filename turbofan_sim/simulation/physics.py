"""First-order lag engine model (illustrative, not thermodynamic).

Every lagged quantity moves toward a per-tick target:

    x += (target - x) * rate,   0 < rate <= 1

which is a discretised exponential approach and cannot overshoot.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

import numpy as np

from turbofan_sim.config.constants import (
    AMBIENT_TEMP_C,
    BLEED_N2_MIN,
    BLEED_PACK_LOAD,
    BLEED_RATE,
    BLEED_SLOPE,
    EGT_FIRE,
    EGT_FIRE_JITTER,
    EGT_OVERFUEL_DELTA,
    EGT_OVERFUEL_THROTTLE,
    EGT_RATE,
    EGT_RESIDUAL_SLOPE,
    EGT_RUN_BASE,
    EGT_RUN_SLOPE,
    EGT_SEIZED,
    EGT_SEIZED_FIRE,
    EGT_START,
    EGT_START_HOT,
    EGT_START_HOT_BELOW_N2,
    FF_BASE,
    FF_EXPONENT,
    FF_N2_OFFSET,
    FF_N2_RANGE,
    FF_SPAN,
    FF_STARTING,
    IDLE_N2,
    N1_BYPASS_OFFSET,
    N1_BYPASS_SLOPE,
    N1_N2_CAP,
    N1_RATE,
    N2_RATE_DEFAULT,
    N2_RATE_RUNNING,
    N2_RATE_SEIZED,
    N2_RATE_SPOOL_DOWN,
    N2_RATE_STARTER,
    N2_RATE_STARTING,
    OIL_P_JITTER,
    OIL_P_MAX,
    OIL_P_SLOPE,
    OIL_T_FIRE_DELTA,
    OIL_T_RATE,
    OIL_T_SEIZED,
    OIL_T_SLOPE,
    VIB_COLD_OIL_T,
    VIB_COLD_START,
    VIB_NOISE,
    VIB_SENSOR_FAULT,
    VIB_SLOPE,
)
from turbofan_sim.config.schema import Controls
from turbofan_sim.faults.failure_registry import FailureFlags
from turbofan_sim.simulation.operating_mode import ModeInputs, OperatingMode


@dataclass
class PhysicsState:
    """Continuous engine state plus the two cascade dwell accumulators."""

    fan_speed: float = 0.0        # N1 %
    core_speed: float = 0.0       # N2 %
    egt: float = AMBIENT_TEMP_C   # °C
    oil_temp: float = AMBIENT_TEMP_C
    bleed_psi: float = 0.0
    oil_failure_ms: int = 0
    fire_ms: int = 0

    @classmethod
    def at_ambient(cls, ambient_temp: float = AMBIENT_TEMP_C) -> PhysicsState:
        return cls(egt=ambient_temp, oil_temp=ambient_temp)


@dataclass(frozen=True)
class Telemetry:
    fan_speed: float
    core_speed: float
    egt: float
    fuel_flow: float      # kg/h
    oil_pressure: float   # psi
    oil_temp: float
    vibration: float      # ips
    bleed_psi: float
    timestamp_ms: int

    def to_dict(self) -> dict:
        return asdict(self)


def lag(value: float, target: float, rate: float) -> float:
    return value + (target - value) * rate


def core_rate(mode: OperatingMode, starter_active: bool, delta: float) -> float:
    """Pick the N2 response rate for this mode and direction of travel."""
    if mode == OperatingMode.SEIZED:
        return N2_RATE_SEIZED
    if delta < 0:
        return N2_RATE_SPOOL_DOWN
    if mode == OperatingMode.RUNNING:
        return N2_RATE_RUNNING
    if mode == OperatingMode.STARTING:
        return N2_RATE_STARTING
    if mode == OperatingMode.OFF and starter_active:
        return N2_RATE_STARTER
    return N2_RATE_DEFAULT


def fan_target(core_speed: float) -> float:
    bypass = max(0.0, (core_speed - N1_BYPASS_OFFSET) * N1_BYPASS_SLOPE)
    return min(bypass, core_speed * N1_N2_CAP)


def egt_target(
    mode: OperatingMode,
    core_speed: float,
    fuel_flowing: bool,
    engine_fire: bool,
    throttle: float,
    rng: np.random.Generator,
    ambient_temp: float = AMBIENT_TEMP_C,
) -> float:
    if mode == OperatingMode.SEIZED:
        return EGT_SEIZED_FIRE if engine_fire else EGT_SEIZED
    if engine_fire:
        return EGT_FIRE + rng.random() * EGT_FIRE_JITTER
    if fuel_flowing and mode != OperatingMode.OFF:
        if mode == OperatingMode.STARTING:
            target = EGT_START_HOT if core_speed < EGT_START_HOT_BELOW_N2 else EGT_START
        else:
            target = EGT_RUN_BASE + (core_speed - IDLE_N2) * EGT_RUN_SLOPE
        if throttle > EGT_OVERFUEL_THROTTLE:
            target += EGT_OVERFUEL_DELTA
        return target
    # Friction heat / residual
    return ambient_temp + core_speed * EGT_RESIDUAL_SLOPE


def fuel_flow(mode: OperatingMode, core_speed: float, fuel_flowing: bool) -> float:
    if not fuel_flowing or mode == OperatingMode.SEIZED:
        return 0.0
    if mode == OperatingMode.STARTING:
        return FF_STARTING
    # Base clamped at 0 so the fractional power stays real below 15 % N2
    x = max(0.0, core_speed - FF_N2_OFFSET) / FF_N2_RANGE
    return FF_BASE + x ** FF_EXPONENT * FF_SPAN


def bleed_target(core_speed: float, controls: Controls, mode: OperatingMode) -> float:
    if core_speed <= BLEED_N2_MIN or not controls.bleed_air or mode == OperatingMode.SEIZED:
        return 0.0
    packs = int(controls.pack_l) + int(controls.pack_r)
    return max(0.0, (core_speed - BLEED_N2_MIN) * BLEED_SLOPE - BLEED_PACK_LOAD * packs)


class PhysicsIntegrator:
    """Advances a PhysicsState by one tick and emits the telemetry record."""

    def __init__(self, ambient_temp: float = AMBIENT_TEMP_C):
        self.ambient_temp = ambient_temp

    def step(
        self,
        state: PhysicsState,
        mode: OperatingMode,
        setpoint: float,
        inputs: ModeInputs,
        flags: FailureFlags,
        controls: Controls,
        rng: np.random.Generator,
        timestamp_ms: int,
    ) -> Telemetry:
        seized = mode == OperatingMode.SEIZED

        # N2 inertia
        delta = setpoint - state.core_speed
        state.core_speed += delta * core_rate(mode, inputs.starter_active, delta)
        n2 = state.core_speed

        # N1 follows N2 airflow
        state.fan_speed = lag(state.fan_speed, 0.0 if seized else fan_target(n2), N1_RATE)

        state.egt = lag(
            state.egt,
            egt_target(mode, n2, inputs.fuel_flowing, flags.engine_fire, controls.throttle,
                       rng, self.ambient_temp),
            EGT_RATE,
        )

        ff = fuel_flow(mode, n2, inputs.fuel_flowing)

        oil_p = min(OIL_P_MAX, n2 * OIL_P_SLOPE)
        if flags.oil_pump_failure or seized:
            oil_p = 0.0
        oil_p += (rng.random() * 2.0 - 1.0) * OIL_P_JITTER

        if seized:
            oil_t_target = OIL_T_SEIZED
        else:
            oil_t_target = self.ambient_temp + n2 * OIL_T_SLOPE
            if flags.engine_fire:
                oil_t_target += OIL_T_FIRE_DELTA
        state.oil_temp = lag(state.oil_temp, oil_t_target, OIL_T_RATE)

        base_vib = state.fan_speed / 100.0 * VIB_SLOPE
        vib_noise = rng.random() * VIB_NOISE
        if mode == OperatingMode.STARTING and state.oil_temp < VIB_COLD_OIL_T:
            vib_noise += VIB_COLD_START
        if flags.vib_sensor_fault:
            base_vib = VIB_SENSOR_FAULT + rng.random()
        if seized:
            base_vib = vib_noise = 0.0

        state.bleed_psi = lag(state.bleed_psi, bleed_target(n2, controls, mode), BLEED_RATE)

        return Telemetry(
            fan_speed=max(0.0, state.fan_speed),
            core_speed=max(0.0, n2),
            egt=max(self.ambient_temp, state.egt),
            fuel_flow=max(0.0, ff),
            oil_pressure=max(0.0, oil_p),
            oil_temp=max(0.0, state.oil_temp),
            vibration=max(0.0, base_vib + vib_noise),
            bleed_psi=max(0.0, state.bleed_psi),
            timestamp_ms=timestamp_ms,
        )
