from __future__ import annotations

import logging
from typing import Callable

from .config import BatteryParams

logger = logging.getLogger(__name__)


class SimulatedBattery:
    """Supply rail shared by every motor in the arena.

    Appliances register a callable returning their present supply current;
    ``update`` sags the rail by the internal resistance once per sub-tick.
    """

    def __init__(self, params: BatteryParams | None = None):
        self.params = params or BatteryParams()
        self._appliances: list[Callable[[], float]] = []
        self._voltage = self.params.nominal_v
        self._browned_out = False

    def add_appliance(self, supply_current_a: Callable[[], float]) -> None:
        self._appliances.append(supply_current_a)

    def total_current_a(self) -> float:
        return sum(abs(fn()) for fn in self._appliances)

    def update(self) -> float:
        p = self.params
        sagged = p.nominal_v - p.internal_r_ohm * self.total_current_a()
        self._voltage = max(p.min_v, sagged)

        browned_out = sagged <= p.min_v
        if browned_out != self._browned_out:
            self._browned_out = browned_out
            logger.debug("battery %s at %.2f V", "browned out" if browned_out else "recovered", self._voltage)
        return self._voltage

    def supply_voltage(self) -> float:
        return self._voltage

    def clamp(self, volts: float) -> float:
        v = self._voltage
        return max(-v, min(v, volts))
