"""Scripted operator scenarios: timed intents replayed against a fresh simulation."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from turbofan_sim.config.schema import SimulationConfig
from turbofan_sim.simulation.engine_simulation import EngineSimulation, EngineSnapshot

START_CONTROLS = {"master_switch": True, "starter": True, "fuel_pump": True, "ignition": True}
TANK_START_CONTROLS = {
    "master_switch": True, "starter": True, "ignition": True,
    "tank_pump_l": True, "tank_pump_r": True,
}


@dataclass(frozen=True)
class ScenarioStep:
    """Call EngineSimulation.<action>(*args, **kwargs) once time reaches at_ms."""

    at_ms: int
    action: str
    args: Tuple = ()
    kwargs: Dict = field(default_factory=dict)


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str
    duration_ms: int
    steps: List[ScenarioStep]
    fuel_system: bool = False


def _start(at_ms: int = 0, tanks: bool = False) -> ScenarioStep:
    return ScenarioStep(at_ms, "set_controls", kwargs=TANK_START_CONTROLS if tanks else START_CONTROLS)


SCENARIOS: Dict[str, Scenario] = {
    s.name: s for s in [
        Scenario(
            "cold_start", "All controls off for 200 s; engine must stay cold and still.",
            200_000, [],
        ),
        Scenario(
            "start_sequence", "Master, starter, fuel and ignition on; OFF -> STARTING -> IDLE.",
            30_000, [_start()],
        ),
        Scenario(
            "throttle_up", "Start, then starter off and full throttle at 20 s.",
            60_000, [
                _start(),
                ScenarioStep(20_000, "set_controls", kwargs={"starter": False, "throttle": 100.0}),
            ],
        ),
        Scenario(
            "oil_pump_cascade", "Oil pump fails at cruise; fire follows, seizure after 5 s.",
            35_000, [
                _start(),
                ScenarioStep(20_000, "set_controls", kwargs={"starter": False, "throttle": 50.0}),
                ScenarioStep(25_000, "toggle_failure", args=("oil_pump_failure",)),
            ],
        ),
        Scenario(
            "fire_cascade", "Unsuppressed engine fire at idle; seizure after 7.5 s.",
            30_000, [
                _start(),
                ScenarioStep(20_000, "set_controls", kwargs={"starter": False}),
                ScenarioStep(20_000, "toggle_failure", args=("engine_fire",)),
            ],
        ),
        Scenario(
            "fire_suppression", "Fire drill: handle, arm, both bottles.",
            30_000, [
                _start(),
                ScenarioStep(20_000, "set_controls", kwargs={"starter": False}),
                ScenarioStep(20_000, "toggle_failure", args=("engine_fire",)),
                ScenarioStep(21_000, "pull_fire_handle"),
                ScenarioStep(21_500, "toggle_fire_master_arm"),
                ScenarioStep(22_000, "discharge_bottle", args=("bottle1",)),
                ScenarioStep(24_000, "discharge_bottle", args=("bottle2",)),
            ],
        ),
        Scenario(
            "tank_feed", "Tank-fed start, full throttle, left dump from 30 s.",
            60_000, [
                _start(tanks=True),
                ScenarioStep(20_000, "set_controls", kwargs={"starter": False, "throttle": 100.0}),
                ScenarioStep(30_000, "set_controls", kwargs={"crossfeed": True, "dump_l": True}),
            ],
            fuel_system=True,
        ),
    ]
}


def run_scenario(
    scenario: Scenario,
    seed: Optional[int] = 42,
) -> Tuple[EngineSimulation, List[EngineSnapshot]]:
    """Replay a scenario tick by tick. Steps due at a tick run before it."""
    sim = EngineSimulation(SimulationConfig(seed=seed, fuel_system=scenario.fuel_system))
    pending = sorted(scenario.steps, key=lambda s: s.at_ms)
    trace = []

    while sim.time_ms < scenario.duration_ms:
        while pending and pending[0].at_ms <= sim.time_ms:
            step = pending.pop(0)
            getattr(sim, step.action)(*step.args, **step.kwargs)
        trace.append(sim.tick())

    return sim, trace
