from __future__ import annotations

import math
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Pose2d:
    x_m: float = 0.0
    y_m: float = 0.0
    theta_rad: float = 0.0


@dataclass(frozen=True)
class ChassisSpeeds:
    vx_mps: float = 0.0
    vy_mps: float = 0.0
    omega_rps: float = 0.0

    def __sub__(self, other: ChassisSpeeds) -> ChassisSpeeds:
        return ChassisSpeeds(
            self.vx_mps - other.vx_mps,
            self.vy_mps - other.vy_mps,
            self.omega_rps - other.omega_rps,
        )

    def to_field_relative(self, heading_rad: float) -> ChassisSpeeds:
        c = math.cos(heading_rad)
        s = math.sin(heading_rad)
        return ChassisSpeeds(
            c * self.vx_mps - s * self.vy_mps,
            s * self.vx_mps + c * self.vy_mps,
            self.omega_rps,
        )

    def to_robot_relative(self, heading_rad: float) -> ChassisSpeeds:
        return self.to_field_relative(-heading_rad)

    def translation(self) -> tuple[float, float]:
        return (self.vx_mps, self.vy_mps)


@dataclass(frozen=True)
class ModuleState:
    speed_mps: float = 0.0
    angle_rad: float = 0.0


@dataclass(frozen=True)
class ModulePosition:
    distance_m: float = 0.0
    angle_rad: float = 0.0


@dataclass
class SimStepOutput:
    time_s: float
    pose: Pose2d
    speeds: ChassisSpeeds
    desired_speeds: ChassisSpeeds
    module_speeds: ChassisSpeeds
    odometry_pose: Pose2d
    gyro_yaw_rad: float
    battery_v: float
    slipping_modules: int
    module_states: list[ModuleState] = field(default_factory=list)
