"""Tests for tank feed, crossfeed, dump valves, and fuel starvation."""

import logging

import pytest

from conftest import run_until
from turbofan_sim.config.schema import Controls, SimulationConfig
from turbofan_sim.fuel.fuel_system import FuelSystem
from turbofan_sim.simulation.engine_simulation import EngineSimulation
from turbofan_sim.simulation.operating_mode import OperatingMode


class TestFeed:
    def test_no_pumps_no_supply(self):
        fs = FuelSystem()
        assert not fs.supply_available(Controls())
        assert not fs.supply_available(Controls(crossfeed=True))

    def test_each_pump_feeds_own_tank(self):
        fs = FuelSystem()
        assert fs.feeding_tanks(Controls(tank_pump_l=True)) == ["l"]
        assert fs.feeding_tanks(Controls(tank_pump_r=True)) == ["r"]
        assert fs.feeding_tanks(Controls(tank_pump_l=True, tank_pump_r=True)) == ["l", "r"]

    def test_empty_tank_does_not_feed(self):
        fs = FuelSystem()
        fs.tank_l = 0.0
        assert not fs.supply_available(Controls(tank_pump_l=True))

    def test_crossfeed_reaches_other_tank(self):
        fs = FuelSystem()
        fs.tank_l = 0.0
        assert fs.feeding_tanks(Controls(tank_pump_l=True, crossfeed=True)) == ["r"]


class TestUpdate:
    def test_burn_split_between_feeding_tanks(self):
        fs = FuelSystem(capacity_kg=100.0)
        # 3600 kg/h for one second is 1 kg
        fs.update(Controls(tank_pump_l=True, tank_pump_r=True), 3600.0, 1000)
        assert fs.tank_l == pytest.approx(99.5)
        assert fs.tank_r == pytest.approx(99.5)

    def test_burn_single_tank(self):
        fs = FuelSystem(capacity_kg=100.0)
        fs.update(Controls(tank_pump_r=True), 3600.0, 1000)
        assert fs.tank_l == 100.0
        assert fs.tank_r == pytest.approx(99.0)

    def test_shortfall_drawn_from_other_tank(self):
        fs = FuelSystem(capacity_kg=100.0)
        fs.tank_l = 0.2
        fs.update(Controls(tank_pump_l=True, tank_pump_r=True), 3600.0, 1000)
        assert fs.tank_l == 0.0
        assert fs.tank_r == pytest.approx(99.2)

    def test_dump(self):
        fs = FuelSystem(capacity_kg=100.0, dump_rate_kg_s=25.0)
        fs.update(Controls(dump_l=True), 0.0, 1000)
        assert fs.tank_l == pytest.approx(75.0)
        assert fs.tank_r == 100.0

    def test_tanks_never_negative(self, caplog):
        fs = FuelSystem(capacity_kg=10.0, dump_rate_kg_s=25.0)
        with caplog.at_level(logging.WARNING):
            fs.update(Controls(dump_l=True, dump_r=True), 0.0, 1000)
        assert fs.tank_l == 0.0
        assert fs.tank_r == 0.0
        assert "Tank L empty" in caplog.text
        assert "Tank R empty" in caplog.text


class TestStarvation:
    def test_engine_flames_out_when_tanks_run_dry(self):
        sim = EngineSimulation(SimulationConfig(seed=3, fuel_system=True, tank_capacity_kg=1.0))
        sim.set_controls(
            master_switch=True, starter=True, ignition=True, tank_pump_l=True, tank_pump_r=True,
        )
        run_until(sim, lambda s: s.mode == OperatingMode.IDLE)
        sim.set_controls(starter=False)

        snap = run_until(sim, lambda s: s.mode == OperatingMode.SHUTDOWN, max_ticks=2000)
        assert snap.fuel.tank_l == 0.0
        assert snap.fuel.tank_r == 0.0
        run_until(sim, lambda s: s.mode == OperatingMode.OFF, max_ticks=2000)
