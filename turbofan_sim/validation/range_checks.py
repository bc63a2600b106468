"""Telemetry trace validation against the model's physical envelope."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

import numpy as np
import pandas as pd

from turbofan_sim.config.constants import TELEMETRY_LIMITS
from turbofan_sim.simulation.engine_simulation import EngineSnapshot
from turbofan_sim.simulation.operating_mode import OperatingMode

logger = logging.getLogger(__name__)

TELEMETRY_COLUMNS = list(TELEMETRY_LIMITS)


@dataclass
class ValidationResult:
    check: str
    expected_range: Tuple[float, float]
    actual_range: Tuple[float, float]
    passed: bool
    message: str = ""


@dataclass
class ValidationReport:
    """Results of every check run against one trace."""

    results: List[ValidationResult] = field(default_factory=list)

    @property
    def failures(self) -> List[ValidationResult]:
        return [r for r in self.results if not r.passed]

    @property
    def passed(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        """One verdict line, then a line per failed check."""
        if self.passed:
            return f"Trace valid: all {len(self.results)} checks passed"
        lines = [f"Trace INVALID: {len(self.failures)} of {len(self.results)} checks failed"]
        for r in self.failures:
            lo, hi = r.expected_range
            lines.append(
                f"  {r.check}: {r.message} "
                f"(seen {r.actual_range[0]:.3f} to {r.actual_range[1]:.3f}, limits {lo} to {hi})"
            )
        return "\n".join(lines)


def telemetry_frame(snapshots: Iterable[EngineSnapshot]) -> pd.DataFrame:
    """One row per tick: telemetry columns plus mode and failure flags."""
    rows = []
    for snap in snapshots:
        row = snap.telemetry.to_dict()
        row["mode"] = snap.mode.value
        row.update(snap.failures.to_dict())
        rows.append(row)
    df = pd.DataFrame(rows)
    if not df.empty:
        df = df.set_index("timestamp_ms")
    return df


def _check_range(values: pd.Series, expected: Tuple[float, float], check: str) -> ValidationResult:
    lo, hi = expected
    finite = bool(np.isfinite(values.to_numpy(dtype=float)).all())
    actual = (float(values.min()), float(values.max()))
    passed = finite and lo <= actual[0] and actual[1] <= hi
    message = ""
    if not finite:
        message = "non-finite values"
    elif not passed:
        message = f"outside [{lo}, {hi}]"
    return ValidationResult(check, expected, actual, passed, message)


def validate_trace(df: pd.DataFrame) -> ValidationReport:
    """Check ranges, finiteness, and mode invariants of a telemetry trace.

    Checks:
    - every telemetry column is finite and inside TELEMETRY_LIMITS
    - once SEIZED, the trace never leaves SEIZED
    - no fuel flows while SEIZED
    """
    report = ValidationReport()
    if df.empty:
        logger.warning("Empty telemetry trace")
        return report

    for col in TELEMETRY_COLUMNS:
        report.results.append(_check_range(df[col], TELEMETRY_LIMITS[col], col))

    seized = (df["mode"] == OperatingMode.SEIZED.value).to_numpy()
    if seized.any():
        first = int(np.argmax(seized))
        stays = bool(seized[first:].all())
        report.results.append(ValidationResult(
            check="seized_absorbing",
            expected_range=(1.0, 1.0),
            actual_range=(float(seized[first:].mean()), float(seized[first:].mean())),
            passed=stays,
            message="" if stays else "mode left SEIZED",
        ))
        ff = df.loc[seized, "fuel_flow"]
        report.results.append(_check_range(ff, (0.0, 0.0), "seized_fuel_flow"))

    return report
