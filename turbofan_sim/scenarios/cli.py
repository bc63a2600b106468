"""Command-line interface for running scripted engine scenarios."""

import logging
import sys

import click
import pandas as pd

from turbofan_sim.advisory.summarizer import summarize_status
from turbofan_sim.scenarios.scenarios import SCENARIOS, run_scenario
from turbofan_sim.validation.range_checks import TELEMETRY_COLUMNS, telemetry_frame, validate_trace


@click.command()
@click.option("--scenario", "scenario_name", default="start_sequence",
              type=click.Choice(sorted(SCENARIOS)), help="Scenario to run.")
@click.option("--seed", default=42, help="RNG seed for sensor noise and suppression outcome.")
@click.option("--list", "list_only", is_flag=True, help="List scenarios and exit.")
@click.option("--summary/--no-summary", default=False, help="Ask the EMS summarizer about the final state.")
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging.")
def main(scenario_name, seed, list_only, summary, verbose):
    """Turbofan engine control unit simulator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger(__name__)

    if list_only:
        for name, scenario in sorted(SCENARIOS.items()):
            click.echo(f"{name:18s} {scenario.duration_ms / 1000:6.1f}s  {scenario.description}")
        return

    scenario = SCENARIOS[scenario_name]
    logger.info(f"Running {scenario.name} ({scenario.duration_ms / 1000:.1f}s, seed={seed})...")
    sim, trace = run_scenario(scenario, seed=seed)

    df = telemetry_frame(trace)
    flat = df.reset_index()
    segments = flat["mode"].ne(flat["mode"].shift()).cumsum()
    timeline = flat.groupby(segments).agg(
        mode=("mode", "first"), start_ms=("timestamp_ms", "first"), end_ms=("timestamp_ms", "last"),
    )

    with pd.option_context("display.width", 120, "display.precision", 2):
        click.echo("Mode timeline:")
        click.echo(timeline.to_string(index=False))
        click.echo("\nTelemetry:")
        click.echo(df[TELEMETRY_COLUMNS].describe().loc[["min", "mean", "max"]].to_string())

    final = trace[-1]
    click.echo(f"\nFinal mode: {final.mode.value} at t={final.time_ms}ms")
    if final.fuel is not None:
        click.echo(f"Tanks: L={final.fuel.tank_l:.1f}kg R={final.fuel.tank_r:.1f}kg")

    if summary:
        click.echo(f"EMS: {summarize_status(final.telemetry, final.mode, final.controls)}")

    report = validate_trace(df)
    click.echo("\n" + report.summary())
    logger.info("Done.")
    if not report.passed:
        sys.exit(1)


if __name__ == "__main__":
    main()
