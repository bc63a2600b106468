"""Wall-clock driver that ticks a simulation on a background thread."""

import logging
import threading
import time
from typing import Callable, List, Optional, Tuple

from turbofan_sim.config.schema import SimulationConfig
from turbofan_sim.simulation.engine_simulation import EngineSimulation, TickCallback

logger = logging.getLogger(__name__)


class RealtimeRunner:
    """Ticks the current simulation every config.tick_ms of wall-clock time.

    reset() swaps in a fresh EngineSimulation (the only way out of SEIZED).
    Observers registered through on_tick() survive resets.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        factory: Callable[[SimulationConfig], EngineSimulation] = EngineSimulation,
    ):
        self.config = config or SimulationConfig()
        self._factory = factory
        # (callback, unsubscribe handle on the current simulation)
        self._observers: List[Tuple[TickCallback, Callable[[], None]]] = []
        self._swap_lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.simulation = self._new_simulation()

    def _new_simulation(self) -> EngineSimulation:
        sim = self._factory(self.config)
        self._observers = [(callback, sim.on_tick(callback)) for callback, _ in self._observers]
        return sim

    def on_tick(self, callback: TickCallback) -> Callable[[], None]:
        """Observe every tick of this and all later sessions; returns an unsubscriber."""
        with self._swap_lock:
            self._observers.append((callback, self.simulation.on_tick(callback)))

        def unsubscribe() -> None:
            with self._swap_lock:
                detached = [d for cb, d in self._observers if cb is callback]
                self._observers = [(cb, d) for cb, d in self._observers if cb is not callback]
            for detach in detached:
                detach()

        return unsubscribe

    def reset(self) -> EngineSimulation:
        with self._swap_lock:
            self.simulation = self._new_simulation()
        logger.info("Simulation session reset")
        return self.simulation

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="engine-tick", daemon=True)
        self._thread.start()
        logger.info("Tick loop started (%d ms period)", self.config.tick_ms)

    def stop(self, timeout: float = 1.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("Tick loop stopped")

    def _loop(self) -> None:
        period = self.config.tick_ms / 1000.0
        next_at = time.monotonic()
        while not self._stop.is_set():
            with self._swap_lock:
                sim = self.simulation
            sim.tick()
            next_at += period
            delay = next_at - time.monotonic()
            if delay < 0:
                # Running behind: drop the backlog instead of bursting ticks
                next_at = time.monotonic()
                delay = 0.0
            self._stop.wait(delay)
