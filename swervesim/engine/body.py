from __future__ import annotations

import math
from typing import Protocol

from .mathutil import Vec2, add, clamp, cross, rotate, sub
from .types import Pose2d


class RigidBody(Protocol):
    """What the drivetrain needs from a physics backend."""

    mass_kg: float
    inertia: float
    linear_damping: float
    angular_damping: float

    def apply_force(self, force: Vec2, world_point: Vec2 | None = None) -> None: ...

    def apply_torque(self, torque_nm: float) -> None: ...

    def set_linear_velocity(self, velocity: Vec2) -> None: ...

    def set_angular_velocity(self, omega_rps: float) -> None: ...

    def linear_velocity(self) -> Vec2: ...

    def linear_velocity_at(self, world_point: Vec2) -> Vec2: ...

    def angular_velocity(self) -> float: ...

    def world_point(self, local_point: Vec2) -> Vec2: ...

    def pose(self) -> Pose2d: ...

    def set_pose(self, pose: Pose2d) -> None: ...

    def step(self, dt_s: float) -> None: ...


class PlanarRigidBody:
    """Minimal 2-D rigid body with force accumulation and velocity damping."""

    def __init__(
        self,
        mass_kg: float,
        inertia: float,
        linear_damping: float = 0.0,
        angular_damping: float = 0.0,
        pose: Pose2d | None = None,
    ):
        self.mass_kg = mass_kg
        self.inertia = inertia
        self.linear_damping = linear_damping
        self.angular_damping = angular_damping

        start = pose or Pose2d()
        self._x = start.x_m
        self._y = start.y_m
        self._theta = start.theta_rad
        self._v: Vec2 = (0.0, 0.0)
        self._omega = 0.0

        self._force: Vec2 = (0.0, 0.0)
        self._torque = 0.0

    def apply_force(self, force: Vec2, world_point: Vec2 | None = None) -> None:
        self._force = add(self._force, force)
        if world_point is not None:
            arm = sub(world_point, (self._x, self._y))
            self._torque += cross(arm, force)

    def apply_torque(self, torque_nm: float) -> None:
        self._torque += torque_nm

    def set_linear_velocity(self, velocity: Vec2) -> None:
        self._v = (velocity[0], velocity[1])

    def set_angular_velocity(self, omega_rps: float) -> None:
        self._omega = omega_rps

    def linear_velocity(self) -> Vec2:
        return self._v

    def linear_velocity_at(self, world_point: Vec2) -> Vec2:
        rx = world_point[0] - self._x
        ry = world_point[1] - self._y
        return (self._v[0] - self._omega * ry, self._v[1] + self._omega * rx)

    def angular_velocity(self) -> float:
        return self._omega

    def world_point(self, local_point: Vec2) -> Vec2:
        return add((self._x, self._y), rotate(local_point, self._theta))

    def pose(self) -> Pose2d:
        return Pose2d(self._x, self._y, self._theta)

    def set_pose(self, pose: Pose2d) -> None:
        self._x = pose.x_m
        self._y = pose.y_m
        self._theta = pose.theta_rad

    def pending_force(self) -> Vec2:
        return self._force

    def pending_torque(self) -> float:
        return self._torque

    def step(self, dt_s: float) -> None:
        # Semi-implicit Euler, then multiplicative damping.
        vx = self._v[0] + self._force[0] / self.mass_kg * dt_s
        vy = self._v[1] + self._force[1] / self.mass_kg * dt_s
        omega = self._omega + self._torque / self.inertia * dt_s

        lin = clamp(1.0 - dt_s * self.linear_damping, 0.0, 1.0)
        ang = clamp(1.0 - dt_s * self.angular_damping, 0.0, 1.0)
        self._v = (vx * lin, vy * lin)
        self._omega = omega * ang

        self._x += self._v[0] * dt_s
        self._y += self._v[1] * dt_s
        self._theta = math.remainder(self._theta + self._omega * dt_s, 2.0 * math.pi)

        self._force = (0.0, 0.0)
        self._torque = 0.0
