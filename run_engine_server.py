"""Run the engine simulation with its JSON control API.

Usage:
    python run_engine_server.py [--fuel-system] [--seed N]
"""

from __future__ import annotations

import argparse
import logging

from turbofan_sim.config.schema import SimulationConfig
from turbofan_sim.simulation.realtime import RealtimeRunner
from turbofan_sim.web.engine_server import run_server


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the turbofan simulation behind a JSON API.")
    parser.add_argument("--host", default=None, help="Host to bind (default: TURBOFAN_HOST)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (default: TURBOFAN_PORT)")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed")
    parser.add_argument("--fuel-system", action="store_true", help="Feed from left/right tanks")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    runner = RealtimeRunner(SimulationConfig(seed=args.seed, fuel_system=args.fuel_system))
    run_server(host=args.host, port=args.port, runner=runner)


if __name__ == "__main__":
    main()
