from __future__ import annotations

import logging

from .battery import SimulatedBattery
from .config import BatteryParams, DrivetrainParams, NoiseParams, SimulationTimings
from .drivetrain import SwerveDrivetrainSim
from .types import Pose2d

logger = logging.getLogger(__name__)


class SimulationStateError(RuntimeError):
    """Raised when the arena is reconfigured after simulated objects exist."""


class SimulatedArena:
    """Owns the simulation clock, the battery and every drivetrain.

    One ``simulation_periodic`` call covers one control period and runs
    ``timings.sub_ticks_per_period`` physics sub-ticks.
    """

    def __init__(self, timings: SimulationTimings | None = None, battery_params: BatteryParams | None = None):
        self.timings = timings or SimulationTimings()
        self.battery = SimulatedBattery(battery_params)
        self.drivetrains: list[SwerveDrivetrainSim] = []
        self.time_s = 0.0

    def override_timings(self, timings: SimulationTimings) -> None:
        if self.drivetrains:
            raise SimulationStateError("simulation timings must be set before any drivetrain is constructed")
        self.timings = timings
        logger.info("timings set: period %.4fs, %d sub-ticks", timings.period_s, timings.sub_ticks_per_period)

    def create_drivetrain(
        self,
        params: DrivetrainParams,
        noise: NoiseParams | None = None,
        pose: Pose2d | None = None,
    ) -> SwerveDrivetrainSim:
        return self.add_drivetrain(SwerveDrivetrainSim(params, self.timings, self.battery, noise=noise, pose=pose))

    def add_drivetrain(self, drivetrain: SwerveDrivetrainSim) -> SwerveDrivetrainSim:
        if drivetrain.timings != self.timings:
            raise SimulationStateError("drivetrain was built with timings that differ from the arena's")
        if drivetrain.battery is not self.battery:
            raise SimulationStateError("drivetrain must draw from the arena battery")
        self.drivetrains.append(drivetrain)
        return drivetrain

    def simulation_periodic(self) -> None:
        for _ in range(self.timings.sub_ticks_per_period):
            self._sub_tick(self.timings.dt_s)

    def _sub_tick(self, dt_s: float) -> None:
        self.battery.update()
        for drivetrain in self.drivetrains:
            drivetrain.simulation_sub_tick()
        for drivetrain in self.drivetrains:
            drivetrain.body.step(dt_s)
        self.time_s += dt_s
