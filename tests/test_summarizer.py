"""Tests for the EMS status summarizer and diagnostic alerts (no network)."""

import json

import pytest
import requests

from turbofan_sim.advisory.summarizer import (
    FALLBACK_SUMMARY,
    build_status_prompt,
    diagnostic_alert,
    summarize_status,
)
from turbofan_sim.config.schema import Controls
from turbofan_sim.simulation.operating_mode import OperatingMode
from turbofan_sim.simulation.physics import Telemetry

TELEMETRY = Telemetry(
    fan_speed=52.4, core_speed=60.1, egt=401.0, fuel_flow=1220.0, oil_pressure=66.0,
    oil_temp=74.0, vibration=0.43, bleed_psi=24.0, timestamp_ms=30_000,
)
CONTROLS = Controls(master_switch=True, fuel_pump=True, ignition=True, throttle=0.0)


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if self.payload is None:
            raise ValueError("not json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.exc is not None:
            raise self.exc
        return self.response


def gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.delenv("API_KEY", raising=False)


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)


class TestPrompt:
    def test_contains_telemetry_and_state(self):
        prompt = build_status_prompt(TELEMETRY, OperatingMode.IDLE, CONTROLS)
        assert "Current State: IDLE" in prompt
        assert "N2 (Core): 60.1%" in prompt
        assert "Redline: 950 C" in prompt
        assert "Throttle=0.0%" in prompt


class TestSummarizeStatus:
    def test_no_key_falls_back_without_request(self, no_api_key):
        session = FakeSession(FakeResponse(gemini_payload("unused")))
        assert summarize_status(TELEMETRY, OperatingMode.IDLE, CONTROLS, session=session) == FALLBACK_SUMMARY
        assert session.calls == []

    def test_success(self, api_key, monkeypatch):
        monkeypatch.setenv("TURBOFAN_GEMINI_MODEL", "gemini-test")
        session = FakeSession(FakeResponse(gemini_payload("  ALL PARAMETERS NOMINAL.  ")))
        text = summarize_status(TELEMETRY, OperatingMode.IDLE, CONTROLS, session=session)
        assert text == "ALL PARAMETERS NOMINAL."

        url, kwargs = session.calls[0]
        assert url.endswith("/gemini-test:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        assert "Current State: IDLE" in kwargs["json"]["contents"][0]["parts"][0]["text"]

    @pytest.mark.parametrize("session", [
        FakeSession(FakeResponse(status=500)),
        FakeSession(exc=requests.ConnectionError("no route")),
        FakeSession(exc=requests.Timeout("slow")),
        FakeSession(FakeResponse(payload=None)),
        FakeSession(FakeResponse(payload={"candidates": []})),
        FakeSession(FakeResponse(gemini_payload("   "))),
    ])
    def test_failures_fall_back(self, api_key, session):
        assert summarize_status(TELEMETRY, OperatingMode.FIRE, CONTROLS, session=session) == FALLBACK_SUMMARY


class TestDiagnosticAlert:
    def test_parses_json_alert(self, api_key):
        body = json.dumps({"level": "CRITICAL", "message": "EGT EXCEEDANCE"})
        session = FakeSession(FakeResponse(gemini_payload(body)))
        alert = diagnostic_alert("EGT climbing past redline", session=session)
        assert alert.level == "critical"
        assert alert.message == "EGT EXCEEDANCE"
        _, kwargs = session.calls[0]
        assert kwargs["json"]["generationConfig"] == {"responseMimeType": "application/json"}

    @pytest.mark.parametrize("text", [
        "not json at all",
        json.dumps({"level": "apocalyptic", "message": "X"}),
        json.dumps({"message": "missing level"}),
    ])
    def test_bad_alert_falls_back(self, api_key, text):
        alert = diagnostic_alert("anything", session=FakeSession(FakeResponse(gemini_payload(text))))
        assert alert.level == "info"
        assert alert.message == "SYSTEM CHECK COMPLETE"

    def test_no_key_falls_back(self, no_api_key):
        assert diagnostic_alert("anything").level == "info"
