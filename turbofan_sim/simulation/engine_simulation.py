"""Simulation context and fixed-step tick driver.

One EngineSimulation owns all mutable state of one engine session. Operators
submit intents (controls, failure toggles, fire panel actions) through its
methods; only tick() advances physics and mode. A re-entrant lock keeps
intents from interleaving with a tick.

Per tick:
    1. Scheduled events due by now fire (delayed failures, extinguish).
    2. Controls, failure flags and fire handle are snapshotted.
    3. Cascade rules run (may ignite, may force SEIZED).
    4. The state machine picks the mode and core-speed setpoint.
    5. Physics integrates and produces telemetry.
    6. Observers receive an immutable EngineSnapshot.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import numpy as np

from turbofan_sim.config.constants import BOTTLES, EXTINGUISH_DELAY_MS
from turbofan_sim.config.schema import (
    Controls,
    FailureConfig,
    SimulationConfig,
    validate_simulation_config,
)
from turbofan_sim.faults.event_slot import EventSlot
from turbofan_sim.faults.failure_registry import (
    SOURCE_CASCADE,
    SOURCE_SUPPRESSION,
    FailureFlags,
    FailureRegistry,
)
from turbofan_sim.fire.fire_system import FireSystem, FireSystemState
from turbofan_sim.fuel.fuel_system import FuelSystem, FuelSystemState
from turbofan_sim.simulation.cascade import apply_cascades
from turbofan_sim.simulation.operating_mode import OperatingMode, derive_inputs, next_mode
from turbofan_sim.simulation.physics import PhysicsIntegrator, PhysicsState, Telemetry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineSnapshot:
    """Everything an observer sees after one tick."""

    time_ms: int
    mode: OperatingMode
    telemetry: Telemetry
    fire: FireSystemState
    failures: FailureFlags
    controls: Controls
    fuel: Optional[FuelSystemState] = None

    def to_dict(self) -> dict:
        return {
            "time_ms": self.time_ms,
            "mode": self.mode.value,
            "telemetry": self.telemetry.to_dict(),
            "fire": self.fire.to_dict(),
            "failures": self.failures.to_dict(),
            "controls": self.controls.to_dict(),
            "fuel": self.fuel.to_dict() if self.fuel is not None else None,
        }


TickCallback = Callable[[EngineSnapshot], None]


class EngineSimulation:
    """One engine, one timeline."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        failure_configs: Optional[Dict[str, FailureConfig]] = None,
    ):
        self.config = config or SimulationConfig()
        validate_simulation_config(self.config)

        self.rng = np.random.default_rng(self.config.seed)
        self.time_ms = 0
        self.mode = OperatingMode.OFF
        self.physics = PhysicsState.at_ambient(self.config.ambient_temp)
        self.integrator = PhysicsIntegrator(self.config.ambient_temp)
        self.registry = FailureRegistry(failure_configs)
        self.fire = FireSystem(self.config.extinguish_probability)
        self.fuel = (
            FuelSystem(self.config.tank_capacity_kg, self.config.dump_rate_kg_s)
            if self.config.fuel_system else None
        )

        self._controls = Controls()
        self._extinguish: Dict[str, EventSlot] = {b: EventSlot() for b in BOTTLES}
        self._observers: List[TickCallback] = []
        self._lock = threading.RLock()
        self._latest = self._build_snapshot(self._idle_telemetry())

    # ------------------------------------------------------------------
    # Operator intents
    # ------------------------------------------------------------------

    @property
    def controls(self) -> Controls:
        return self._controls

    def set_controls(self, **patch) -> Controls:
        """Merge a partial control update; it takes effect on the next tick."""
        with self._lock:
            self._controls = self._controls.merged(**patch)
            return self._controls

    def toggle_failure(self, failure_id: str) -> None:
        with self._lock:
            self.registry.toggle(failure_id, self.time_ms)
            self.fire.sync_loops(self.registry.flags.engine_fire)

    def update_failure_config(self, failure_id: str, **patch) -> FailureConfig:
        with self._lock:
            return self.registry.update_config(failure_id, **patch)

    def press_key(self, key: str) -> Optional[str]:
        """Toggle the failure bound to key. Returns its id, or None if unbound."""
        with self._lock:
            failure_id = self.registry.failure_for_key(key)
            if failure_id is not None:
                self.toggle_failure(failure_id)
            return failure_id

    def pull_fire_handle(self) -> None:
        with self._lock:
            self.fire.pull_handle()

    def toggle_fire_master_arm(self) -> None:
        with self._lock:
            self.fire.toggle_master_arm()

    def discharge_bottle(self, bottle: str) -> bool:
        """Fire a suppression bottle. Returns True if it actually discharged."""
        with self._lock:
            result = self.fire.discharge(bottle, self.registry.flags.engine_fire, self.rng)
            if result.extinguish:
                self._extinguish[bottle].schedule(self.time_ms + EXTINGUISH_DELAY_MS)
            return result.discharged

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def on_tick(self, callback: TickCallback) -> Callable[[], None]:
        """Register an observer; returns a function that unregisters it."""
        with self._lock:
            self._observers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return unsubscribe

    def snapshot(self) -> EngineSnapshot:
        with self._lock:
            return self._latest

    # ------------------------------------------------------------------
    # Tick driver
    # ------------------------------------------------------------------

    def tick(self) -> EngineSnapshot:
        dt = self.config.tick_ms
        with self._lock:
            now = self.time_ms
            self._fire_scheduled(now)

            controls = self._controls
            flags = self.registry.flags
            handle_pulled = self.fire.handle_pulled

            cascade = apply_cascades(self.mode, flags, self.physics, dt)
            if cascade.ignite:
                self.registry.set_flag("engine_fire", True, now, SOURCE_CASCADE)
            mode = OperatingMode.SEIZED if cascade.force_seized else self.mode

            fuel_supply = (
                self.fuel.supply_available(controls) if self.fuel is not None
                else controls.fuel_pump
            )
            inputs = derive_inputs(
                mode, controls, flags, handle_pulled, self.physics.core_speed, fuel_supply,
            )
            decision = next_mode(mode, inputs)

            self.time_ms = now + dt
            telemetry = self.integrator.step(
                self.physics, decision.mode, decision.setpoint, inputs, flags, controls,
                self.rng, self.time_ms,
            )
            if self.fuel is not None:
                self.fuel.update(controls, telemetry.fuel_flow, dt)

            if decision.mode != self.mode:
                logger.info("t=%dms mode %s -> %s", now, self.mode.value, decision.mode.value)
                self.mode = decision.mode

            self.fire.sync_loops(self.registry.flags.engine_fire)
            self._latest = self._build_snapshot(telemetry)
            snapshot = self._latest
            observers = list(self._observers)

        for callback in observers:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("Tick observer %r failed", callback)
        return snapshot

    def run(self, n_ticks: int) -> List[EngineSnapshot]:
        return [self.tick() for _ in range(n_ticks)]

    def run_for(self, duration_ms: int) -> List[EngineSnapshot]:
        return self.run(-(-int(duration_ms) // self.config.tick_ms))

    # ------------------------------------------------------------------

    def _fire_scheduled(self, now: int) -> None:
        self.registry.fire_due(now)
        for slot in self._extinguish.values():
            if slot.pop_due(now) is not None:
                self.registry.set_flag("engine_fire", False, now, SOURCE_SUPPRESSION)

    def _idle_telemetry(self) -> Telemetry:
        ps = self.physics
        return Telemetry(
            fan_speed=ps.fan_speed,
            core_speed=ps.core_speed,
            egt=ps.egt,
            fuel_flow=0.0,
            oil_pressure=0.0,
            oil_temp=ps.oil_temp,
            vibration=0.0,
            bleed_psi=ps.bleed_psi,
            timestamp_ms=self.time_ms,
        )

    def _build_snapshot(self, telemetry: Telemetry) -> EngineSnapshot:
        return EngineSnapshot(
            time_ms=self.time_ms,
            mode=self.mode,
            telemetry=telemetry,
            fire=self.fire.state,
            failures=self.registry.flags,
            controls=self._controls,
            fuel=self.fuel.state if self.fuel is not None else None,
        )

