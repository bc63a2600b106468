"""JSON control API for a running engine simulation.

Serves under /api/:
- GET  /api/health, /api/state, /api/failures, /api/summary
- POST /api/controls                      (partial control patch)
- POST /api/failures/<id>/toggle
- POST /api/failures/<id>/config          (delay_s, trigger_key, label)
- POST /api/keys/<key>
- POST /api/fire/handle, /api/fire/arm, /api/fire/discharge/<bottle>
- POST /api/reset                         (new session; clears SEIZED)
"""

from __future__ import annotations

import json
import logging
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional, Tuple
from urllib.parse import urlparse

from turbofan_sim.advisory.summarizer import summarize_status
from turbofan_sim.config.settings import Settings
from turbofan_sim.errors import TurbofanSimError
from turbofan_sim.simulation.realtime import RealtimeRunner

logger = logging.getLogger(__name__)


def dispatch(
    runner: RealtimeRunner,
    method: str,
    route: str,
    body: Optional[dict] = None,
) -> Tuple[HTTPStatus, dict]:
    """Route one API request to the current simulation."""
    body = body or {}
    sim = runner.simulation
    parts = [p for p in route.split("/") if p]
    if parts[:1] != ["api"]:
        return HTTPStatus.NOT_FOUND, {"error": "Not found"}
    parts = parts[1:]

    try:
        if method == "GET":
            if parts == ["health"]:
                return HTTPStatus.OK, {"status": "ok", "service": "turbofan-sim", "running": runner.running}
            if parts == ["state"]:
                return HTTPStatus.OK, sim.snapshot().to_dict()
            if parts == ["failures"]:
                return HTTPStatus.OK, {
                    fid: {**cfg.to_dict(), "active": sim.registry.is_active(fid),
                          "pending": sim.registry.is_pending(fid)}
                    for fid, cfg in sim.registry.configs.items()
                }
            if parts == ["summary"]:
                snap = sim.snapshot()
                return HTTPStatus.OK, {
                    "summary": summarize_status(snap.telemetry, snap.mode, snap.controls),
                }

        elif method == "POST":
            if parts == ["controls"]:
                return HTTPStatus.OK, sim.set_controls(**body).to_dict()
            if len(parts) == 3 and parts[0] == "failures" and parts[2] == "toggle":
                sim.toggle_failure(parts[1])
                return HTTPStatus.OK, {"failure_id": parts[1], "active": sim.registry.is_active(parts[1]),
                                       "pending": sim.registry.is_pending(parts[1])}
            if len(parts) == 3 and parts[0] == "failures" and parts[2] == "config":
                return HTTPStatus.OK, sim.update_failure_config(parts[1], **body).to_dict()
            if len(parts) == 2 and parts[0] == "keys":
                return HTTPStatus.OK, {"failure_id": sim.press_key(parts[1])}
            if parts == ["fire", "handle"]:
                sim.pull_fire_handle()
                return HTTPStatus.OK, sim.fire.state.to_dict()
            if parts == ["fire", "arm"]:
                sim.toggle_fire_master_arm()
                return HTTPStatus.OK, sim.fire.state.to_dict()
            if len(parts) == 3 and parts[:2] == ["fire", "discharge"]:
                discharged = sim.discharge_bottle(parts[2])
                return HTTPStatus.OK, {"discharged": discharged, **sim.fire.state.to_dict()}
            if parts == ["reset"]:
                return HTTPStatus.OK, runner.reset().snapshot().to_dict()

    except (TurbofanSimError, KeyError, ValueError, TypeError) as e:
        logger.warning("Rejected %s %s: %s", method, route, e)
        return HTTPStatus.BAD_REQUEST, {"error": str(e)}

    return HTTPStatus.NOT_FOUND, {"error": "Not found"}


class EngineApiHandler(BaseHTTPRequestHandler):
    """Serve the JSON API for the runner attached to the server."""

    def _send_json(self, payload: dict, status: HTTPStatus = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _handle(self, method: str) -> None:
        route = urlparse(self.path).path
        body = None
        if method == "POST":
            length = int(self.headers.get("Content-Length") or 0)
            raw = self.rfile.read(length) if length else b""
            try:
                body = json.loads(raw) if raw else {}
            except json.JSONDecodeError:
                self._send_json({"error": "Malformed JSON"}, HTTPStatus.BAD_REQUEST)
                return
            if not isinstance(body, dict):
                self._send_json({"error": "Body must be a JSON object"}, HTTPStatus.BAD_REQUEST)
                return

        status, payload = dispatch(self.server.runner, method, route, body)
        self._send_json(payload, status)

    def do_GET(self) -> None:  # noqa: N802
        self._handle("GET")

    def do_POST(self) -> None:  # noqa: N802
        self._handle("POST")

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)


def make_server(runner: RealtimeRunner, host: str, port: int) -> ThreadingHTTPServer:
    server = ThreadingHTTPServer((host, port), EngineApiHandler)
    server.runner = runner
    return server


def run_server(host: Optional[str] = None, port: Optional[int] = None,
               runner: Optional[RealtimeRunner] = None) -> None:
    """Start the tick loop and serve the API until interrupted."""
    host = host or Settings.SERVER_HOST
    port = port or Settings.SERVER_PORT
    runner = runner or RealtimeRunner()
    server = make_server(runner, host, port)

    runner.start()
    print(f"Engine simulation API running at http://{host}:{port}/api/state")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        runner.stop()
