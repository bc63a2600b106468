"""LLM status summaries of engine telemetry.

Advisory only: nothing here is read back by the simulation. Every failure
(missing key, network error, bad status, malformed response) degrades to a
fixed fallback.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

import requests

from turbofan_sim.config.constants import EGT_REDLINE
from turbofan_sim.config.schema import Controls
from turbofan_sim.config.settings import Settings
from turbofan_sim.simulation.operating_mode import OperatingMode
from turbofan_sim.simulation.physics import Telemetry

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "EMS LINK FAILURE: UNABLE TO PROCESS TELEMETRY."
ALERT_LEVELS = ("info", "warning", "critical")


@dataclass(frozen=True)
class SystemAlert:
    level: str        # "info", "warning" or "critical"
    message: str
    timestamp: float


def build_status_prompt(telemetry: Telemetry, mode: OperatingMode, controls: Controls) -> str:
    return (
        "Role: You are the Engine Management System (EMS) AI for a high-bypass turbofan jet engine.\n"
        "Task: Analyze the current telemetry snapshot and provide a concise status report "
        "(max 2 sentences).\n"
        "Tone: Technical, precise, military/aerospace style.\n\n"
        f"Current State: {mode.value}\n"
        f"Controls: Master={controls.master_switch}, Fuel={controls.fuel_pump}, "
        f"Ignition={controls.ignition}, Throttle={controls.throttle:.1f}%\n\n"
        "Telemetry:\n"
        f"- N1 (Fan): {telemetry.fan_speed:.1f}%\n"
        f"- N2 (Core): {telemetry.core_speed:.1f}%\n"
        f"- EGT: {telemetry.egt:.0f} C (Redline: {EGT_REDLINE:.0f} C)\n"
        f"- Fuel Flow: {telemetry.fuel_flow:.0f} kg/h\n"
        f"- Oil Pressure: {telemetry.oil_pressure:.0f} psi\n"
        f"- Oil Temperature: {telemetry.oil_temp:.0f} C\n"
        f"- Vibration: {telemetry.vibration:.2f} ips\n"
        f"- Bleed Pressure: {telemetry.bleed_psi:.1f} psi\n\n"
        "Identify any anomalies (High EGT, Low Oil Press, Vibration) or confirm nominal operation."
    )


def _generate(prompt: str, json_mode: bool = False, session=None) -> str:
    """POST one prompt to the Gemini generateContent endpoint and return its text."""
    api_key = Settings.GEMINI_API_KEY
    if not api_key:
        raise RuntimeError("Gemini API key not configured")

    url = f"{Settings.GEMINI_BASE_URL}/{Settings.GEMINI_MODEL}:generateContent"
    payload = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
    if json_mode:
        payload["generationConfig"] = {"responseMimeType": "application/json"}

    http = session or requests
    response = http.post(
        url,
        params={"key": api_key},
        json=payload,
        timeout=Settings.GEMINI_TIMEOUT_S,
    )
    response.raise_for_status()
    data = response.json()

    text = ""
    candidates = data.get("candidates", [])
    if candidates:
        parts = candidates[0].get("content", {}).get("parts", [])
        if parts:
            text = parts[0].get("text", "")
    if not text or not text.strip():
        raise ValueError("Empty text in Gemini response")
    return text.strip()


def summarize_status(
    telemetry: Telemetry,
    mode: OperatingMode,
    controls: Controls,
    session: Optional[requests.Session] = None,
) -> str:
    """Human-readable status line, or FALLBACK_SUMMARY on any failure."""
    try:
        return _generate(build_status_prompt(telemetry, mode, controls), session=session)
    except Exception as e:
        logger.error("Status summary failed: %s", e)
        return FALLBACK_SUMMARY


def diagnostic_alert(
    description: str,
    session: Optional[requests.Session] = None,
) -> SystemAlert:
    """Turn a free-text observation into a short SystemAlert."""
    prompt = (
        f'Generate a short system alert for a jet engine based on this observation: "{description}".\n'
        'Respond as JSON: {"level": "info" | "warning" | "critical", '
        '"message": "<short uppercase technical message>"}'
    )
    try:
        data = json.loads(_generate(prompt, json_mode=True, session=session))
        level = str(data["level"]).lower()
        if level not in ALERT_LEVELS:
            raise ValueError(f"Unknown alert level: {level!r}")
        return SystemAlert(level=level, message=str(data["message"]), timestamp=time.time())
    except Exception as e:
        logger.error("Diagnostic alert generation failed: %s", e)
        return SystemAlert(level="info", message="SYSTEM CHECK COMPLETE", timestamp=time.time())
