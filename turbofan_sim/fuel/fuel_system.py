"""Left/right tank fuel system with tank pumps, crossfeed, and dump valves."""

import logging
from dataclasses import asdict, dataclass
from typing import List

from turbofan_sim.config.constants import DUMP_RATE_KG_S, TANK_CAPACITY_KG
from turbofan_sim.config.schema import Controls

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FuelSystemState:
    tank_l: float
    tank_r: float
    capacity_l: float
    capacity_r: float

    def to_dict(self) -> dict:
        return asdict(self)


class FuelSystem:
    """Tracks tank quantities (kg) and decides whether the engine is fed.

    Each tank pump feeds the engine from its own tank. With crossfeed open a
    single running pump can draw from either tank.
    """

    def __init__(
        self,
        capacity_kg: float = TANK_CAPACITY_KG,
        dump_rate_kg_s: float = DUMP_RATE_KG_S,
    ):
        self.capacity_l = self.capacity_r = capacity_kg
        self.tank_l = self.tank_r = capacity_kg
        self.dump_rate_kg_s = dump_rate_kg_s

    @property
    def state(self) -> FuelSystemState:
        return FuelSystemState(self.tank_l, self.tank_r, self.capacity_l, self.capacity_r)

    def feeding_tanks(self, controls: Controls) -> List[str]:
        pumped = []
        if controls.tank_pump_l and self.tank_l > 0:
            pumped.append("l")
        if controls.tank_pump_r and self.tank_r > 0:
            pumped.append("r")

        if controls.crossfeed and (controls.tank_pump_l or controls.tank_pump_r):
            return [side for side in ("l", "r") if getattr(self, f"tank_{side}") > 0]
        return pumped

    def supply_available(self, controls: Controls) -> bool:
        return bool(self.feeding_tanks(controls))

    def _draw(self, side: str, kg: float) -> float:
        attr = f"tank_{side}"
        available = getattr(self, attr)
        taken = min(available, kg)
        setattr(self, attr, available - taken)
        return taken

    def update(self, controls: Controls, fuel_flow_kg_h: float, dt_ms: int) -> None:
        """Burn engine fuel from the feeding tanks and run the dump valves."""
        dt_s = dt_ms / 1000.0
        before = (self.tank_l, self.tank_r)

        burn = fuel_flow_kg_h * dt_s / 3600.0
        tanks = self.feeding_tanks(controls)
        if burn > 0 and tanks:
            share = burn / len(tanks)
            shortfall = sum(share - self._draw(side, share) for side in tanks)
            # Whatever one tank could not supply comes from the other
            for side in tanks:
                if shortfall <= 0:
                    break
                shortfall -= self._draw(side, shortfall)

        dump = self.dump_rate_kg_s * dt_s
        if controls.dump_l:
            self._draw("l", dump)
        if controls.dump_r:
            self._draw("r", dump)

        for side, was in zip(("l", "r"), before):
            if was > 0 and getattr(self, f"tank_{side}") == 0:
                logger.warning("Tank %s empty", side.upper())
