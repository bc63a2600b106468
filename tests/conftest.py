"""Shared test fixtures."""

import numpy as np
import pytest

from turbofan_sim.config.schema import SimulationConfig
from turbofan_sim.simulation.engine_simulation import EngineSimulation
from turbofan_sim.simulation.operating_mode import OperatingMode

START_CONTROLS = dict(master_switch=True, starter=True, fuel_pump=True, ignition=True)


def run_until(sim, predicate, max_ticks=5000):
    """Tick until predicate(snapshot) holds; fail the test if it never does."""
    for _ in range(max_ticks):
        snap = sim.tick()
        if predicate(snap):
            return snap
    raise AssertionError(f"condition not reached within {max_ticks} ticks (mode={sim.mode.value})")


def bring_to_idle(sim):
    """Start the engine and leave it at stable idle with the starter released."""
    sim.set_controls(**START_CONTROLS)
    run_until(sim, lambda s: s.mode == OperatingMode.IDLE)
    sim.set_controls(starter=False)
    sim.run(250)
    return sim


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def sim():
    return EngineSimulation(SimulationConfig(seed=42))


@pytest.fixture
def idle_sim(sim):
    return bring_to_idle(sim)


@pytest.fixture
def running_sim(idle_sim):
    """RUNNING with throttle 50 -> N2 setpoint 80 %, settled."""
    idle_sim.set_controls(throttle=50.0)
    idle_sim.run(500)
    return idle_sim
