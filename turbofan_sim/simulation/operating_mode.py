"""Operating-mode state machine as a pure transition function.

next_mode(mode, inputs) -> ModeDecision(mode, setpoint)

The setpoint is the target core speed (% N2) handed to the physics step.
Inputs are evaluated against the previous tick's mode; SEIZED is absorbing.
"""

from dataclasses import dataclass
from enum import Enum

from turbofan_sim.config.constants import (
    IDLE_N2,
    LIGHT_OFF_N2,
    MOTORING_N2,
    RUNNING_THROTTLE,
    SELF_SUSTAIN_N2,
    SPOOLED_DOWN_N2,
    STABLE_IDLE_N2,
    STARTER_ASSIST_N2,
    THROTTLE_N2_GAIN,
)
from turbofan_sim.config.schema import Controls
from turbofan_sim.faults.failure_registry import FailureFlags


class OperatingMode(str, Enum):
    OFF = "OFF"
    STARTING = "STARTING"
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    FIRE = "FIRE"
    SHUTDOWN = "SHUTDOWN"
    SEIZED = "SEIZED"


@dataclass(frozen=True)
class ModeInputs:
    """Everything the state machine reads in one tick."""

    power_available: bool
    fuel_flowing: bool
    ignition_active: bool
    starter_active: bool
    engine_fire: bool
    throttle: float
    core_speed: float


@dataclass(frozen=True)
class ModeDecision:
    mode: OperatingMode
    setpoint: float


def derive_inputs(
    mode: OperatingMode,
    controls: Controls,
    flags: FailureFlags,
    handle_pulled: bool,
    core_speed: float,
    fuel_supply: bool,
) -> ModeInputs:
    """Gate raw controls by power, fuel-pump failure, and the fire handle.

    fuel_supply is the fuel-pump switch, or tank availability in the tank variant.
    """
    power = controls.master_switch and mode != OperatingMode.SEIZED
    return ModeInputs(
        power_available=power,
        fuel_flowing=fuel_supply and power and not flags.fuel_pump_failure and not handle_pulled,
        ignition_active=controls.ignition and power,
        starter_active=controls.starter and power,
        engine_fire=flags.engine_fire,
        throttle=controls.throttle,
        core_speed=core_speed,
    )


def throttle_setpoint(throttle: float) -> float:
    """Map throttle 0-100 to N2 60-100 (never below idle)."""
    return max(IDLE_N2, IDLE_N2 + throttle * THROTTLE_N2_GAIN)


def _run_mode(throttle: float) -> OperatingMode:
    return OperatingMode.RUNNING if throttle > RUNNING_THROTTLE else OperatingMode.IDLE


def _off(i: ModeInputs) -> ModeDecision:
    if not i.starter_active:
        return ModeDecision(OperatingMode.OFF, 0.0)
    # Light-off: motoring above 15 % with fuel and ignition
    if i.fuel_flowing and i.ignition_active and i.core_speed > LIGHT_OFF_N2:
        return ModeDecision(OperatingMode.STARTING, MOTORING_N2)
    return ModeDecision(OperatingMode.OFF, MOTORING_N2)


def _starting(i: ModeInputs) -> ModeDecision:
    setpoint = STARTER_ASSIST_N2 if i.starter_active else SELF_SUSTAIN_N2
    if not i.fuel_flowing:
        return ModeDecision(OperatingMode.SHUTDOWN, setpoint)
    if i.core_speed > STABLE_IDLE_N2:
        return ModeDecision(OperatingMode.IDLE, setpoint)
    return ModeDecision(OperatingMode.STARTING, setpoint)


def _powered(i: ModeInputs) -> ModeDecision:
    # IDLE, RUNNING and FIRE share one row set
    if not i.fuel_flowing:
        return ModeDecision(OperatingMode.SHUTDOWN, 0.0)
    setpoint = throttle_setpoint(i.throttle)
    if i.engine_fire:
        return ModeDecision(OperatingMode.FIRE, setpoint)
    return ModeDecision(_run_mode(i.throttle), setpoint)


def _shutdown(i: ModeInputs) -> ModeDecision:
    setpoint = MOTORING_N2 if i.starter_active else 0.0
    # Relight (hot start if fuel is reintroduced quickly)
    if i.fuel_flowing and i.ignition_active and i.core_speed > LIGHT_OFF_N2:
        return ModeDecision(OperatingMode.STARTING, setpoint)
    if i.core_speed < SPOOLED_DOWN_N2 and not i.starter_active:
        return ModeDecision(OperatingMode.OFF, 0.0)
    return ModeDecision(OperatingMode.SHUTDOWN, setpoint)


_TRANSITIONS = {
    OperatingMode.OFF: _off,
    OperatingMode.STARTING: _starting,
    OperatingMode.IDLE: _powered,
    OperatingMode.RUNNING: _powered,
    OperatingMode.FIRE: _powered,
    OperatingMode.SHUTDOWN: _shutdown,
    OperatingMode.SEIZED: lambda i: ModeDecision(OperatingMode.SEIZED, 0.0),
}


def next_mode(mode: OperatingMode, inputs: ModeInputs) -> ModeDecision:
    return _TRANSITIONS[mode](inputs)
