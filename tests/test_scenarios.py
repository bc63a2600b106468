"""Tests for the scenario library and the turbofan-sim CLI."""

import pytest
from click.testing import CliRunner

from turbofan_sim.scenarios.cli import main
from turbofan_sim.scenarios.scenarios import SCENARIOS, Scenario, ScenarioStep, run_scenario
from turbofan_sim.simulation.operating_mode import OperatingMode
from turbofan_sim.validation.range_checks import telemetry_frame, validate_trace


class TestScenarioLibrary:
    @pytest.mark.parametrize("name", sorted(SCENARIOS))
    def test_scenario_trace_is_valid(self, name):
        scenario = SCENARIOS[name]
        sim, trace = run_scenario(scenario, seed=42)
        assert trace[-1].time_ms == scenario.duration_ms
        report = validate_trace(telemetry_frame(trace))
        assert report.passed, report.summary()

    def test_steps_run_before_their_tick(self):
        scenario = Scenario(
            "probe", "", 100,
            [ScenarioStep(40, "set_controls", kwargs={"master_switch": True})],
        )
        _, trace = run_scenario(scenario)
        assert [s.controls.master_switch for s in trace] == [False, False, True, True, True]

    @pytest.mark.parametrize("name, final_mode", [
        ("cold_start", OperatingMode.OFF),
        ("start_sequence", OperatingMode.IDLE),
        ("throttle_up", OperatingMode.RUNNING),
        ("oil_pump_cascade", OperatingMode.SEIZED),
        ("fire_cascade", OperatingMode.SEIZED),
    ])
    def test_final_mode(self, name, final_mode):
        _, trace = run_scenario(SCENARIOS[name])
        assert trace[-1].mode == final_mode

    def test_tank_feed_dumps_left(self):
        _, trace = run_scenario(SCENARIOS["tank_feed"])
        fuel = trace[-1].fuel
        assert fuel is not None
        assert fuel.tank_l < fuel.tank_r < fuel.capacity_r


class TestCli:
    def test_list(self):
        result = CliRunner().invoke(main, ["--list"])
        assert result.exit_code == 0
        for name in SCENARIOS:
            assert name in result.output

    def test_run_start_sequence(self):
        result = CliRunner().invoke(main, ["--scenario", "start_sequence", "--seed", "1"])
        assert result.exit_code == 0, result.output
        assert "Mode timeline:" in result.output
        assert "Final mode: IDLE at t=30000ms" in result.output
        assert "Trace valid" in result.output

    def test_unknown_scenario(self):
        result = CliRunner().invoke(main, ["--scenario", "barrel_roll"])
        assert result.exit_code != 0
