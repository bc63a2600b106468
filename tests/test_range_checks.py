"""Tests for telemetry trace validation."""

import numpy as np
import pytest

from turbofan_sim.scenarios.scenarios import SCENARIOS, run_scenario
from turbofan_sim.validation.range_checks import (
    TELEMETRY_COLUMNS,
    telemetry_frame,
    validate_trace,
)


@pytest.fixture(scope="module")
def start_frame():
    _, trace = run_scenario(SCENARIOS["start_sequence"], seed=42)
    return telemetry_frame(trace)


class TestTelemetryFrame:
    def test_columns_and_index(self, start_frame):
        assert start_frame.index.name == "timestamp_ms"
        assert start_frame.index[0] == 20
        assert start_frame.index.is_monotonic_increasing
        for col in TELEMETRY_COLUMNS + ["mode", "engine_fire", "oil_pump_failure"]:
            assert col in start_frame.columns
        assert len(start_frame) == 1500


class TestValidateTrace:
    def test_clean_trace_passes(self, start_frame):
        report = validate_trace(start_frame)
        assert report.passed, report.summary()
        assert report.failures == []
        assert len(report.results) == len(TELEMETRY_COLUMNS)
        assert report.summary() == f"Trace valid: all {len(TELEMETRY_COLUMNS)} checks passed"

    def test_nan_fails(self, start_frame):
        df = start_frame.copy()
        df.iloc[100, df.columns.get_loc("egt")] = np.nan
        report = validate_trace(df)
        assert not report.passed
        failed = [r for r in report.results if not r.passed]
        assert [r.check for r in failed] == ["egt"]
        assert failed[0].message == "non-finite values"

    def test_out_of_range_fails(self, start_frame):
        df = start_frame.copy()
        df.iloc[-1, df.columns.get_loc("oil_pressure")] = 150.0
        report = validate_trace(df)
        assert not report.passed
        summary = report.summary().splitlines()
        assert summary[0] == f"Trace INVALID: 1 of {len(TELEMETRY_COLUMNS)} checks failed"
        assert summary[1].startswith("  oil_pressure: outside [0.0, 91.0]")

    def test_leaving_seized_fails(self, start_frame):
        df = start_frame.copy()
        df.iloc[1000:1100, df.columns.get_loc("mode")] = "SEIZED"
        df.iloc[1000:1100, df.columns.get_loc("fuel_flow")] = 0.0
        report = validate_trace(df)
        checks = {r.check: r for r in report.results}
        assert not checks["seized_absorbing"].passed
        assert checks["seized_fuel_flow"].passed

    def test_empty_trace(self):
        report = validate_trace(telemetry_frame([]))
        assert report.results == []
