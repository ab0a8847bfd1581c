from __future__ import annotations

from typing import Sequence

from wpimath import geometry

from .kinematics import SwerveKinematics
from .mathutil import wrap_angle
from .module import SwerveModuleSim
from .sensors import GyroSim
from .types import ModulePosition, ModuleState, Pose2d


class SwerveOdometry:
    """Dead reckoning from module distance/angle samples plus gyro yaw."""

    def __init__(
        self,
        kinematics: SwerveKinematics,
        gyro_yaw_rad: float,
        module_positions: Sequence[ModulePosition],
        pose: Pose2d | None = None,
    ):
        self.kinematics = kinematics
        self._pose = pose or Pose2d()
        self._yaw_offset = self._pose.theta_rad - gyro_yaw_rad
        self._last_yaw = gyro_yaw_rad
        self._last_positions = list(module_positions)

    def pose(self) -> Pose2d:
        return self._pose

    def update(self, gyro_yaw_rad: float, module_positions: Sequence[ModulePosition]) -> Pose2d:
        deltas = [
            ModuleState(now.distance_m - before.distance_m, now.angle_rad)
            for now, before in zip(module_positions, self._last_positions)
        ]
        moved = self.kinematics.to_chassis_speeds(deltas)
        # Translation comes from the wheels, rotation from the gyro.
        twist = geometry.Twist2d(moved.vx_mps, moved.vy_mps, wrap_angle(gyro_yaw_rad - self._last_yaw))

        start = geometry.Pose2d(self._pose.x_m, self._pose.y_m, geometry.Rotation2d(self._pose.theta_rad))
        end = start.exp(twist)
        self._pose = Pose2d(end.X(), end.Y(), wrap_angle(gyro_yaw_rad + self._yaw_offset))
        self._last_yaw = gyro_yaw_rad
        self._last_positions = list(module_positions)
        return self._pose

    def update_from_caches(self, modules: Sequence[SwerveModuleSim], gyro: GyroSim) -> Pose2d:
        """Replay every cached sub-tick sample of the last period, oldest first."""
        per_module = [m.cached_module_positions() for m in modules]
        yaws = gyro.cached_yaws_rad()
        for i, yaw in enumerate(yaws):
            self.update(yaw, [samples[i] for samples in per_module])
        return self._pose
