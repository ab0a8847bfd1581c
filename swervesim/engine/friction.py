from __future__ import annotations

import math
from dataclasses import dataclass

from .mathutil import ZERO_EPS, Vec2, add, angle_of, from_polar, limit_magnitude, norm, rotate, wrap_angle
from .types import ChassisSpeeds

FRICTION_FORCE_GAIN = 3.0
FRICTION_TORQUE_GAIN = 1.0
ROTATION_SNAP_DESIRED_FRACTION = 0.01
ROTATION_SNAP_ACTUAL_FRACTION = 0.02


@dataclass(frozen=True)
class FrictionForce:
    convergence: Vec2
    centripetal: Vec2
    total: Vec2


@dataclass(frozen=True)
class FrictionTorque:
    torque_nm: float
    snap_to_zero: bool


class ChassisFrictionModel:
    """Ground friction between the wheels and the floor, lumped at the chassis.

    The translational part pulls the chassis velocity toward the velocity the
    modules imply and adds the lateral (centripetal) grip needed to bend the
    path. Both are capped jointly by the total grip of all wheels. The
    rotational part does the same for yaw rate.
    """

    def __init__(self, mass_kg: float, dt_s: float):
        self.mass_kg = mass_kg
        self.dt_s = dt_s
        self.previous_module_velocity_field: Vec2 = (0.0, 0.0)

    def reset(self) -> None:
        self.previous_module_velocity_field = (0.0, 0.0)

    def translational(
        self,
        module_speeds: ChassisSpeeds,
        floor_speeds: ChassisSpeeds,
        heading_rad: float,
        total_grip_n: float,
    ) -> FrictionForce:
        """Friction force in the field frame; inputs are robot-relative."""
        diff = rotate((module_speeds - floor_speeds).translation(), heading_rad)
        convergence = from_polar(
            min(FRICTION_FORCE_GAIN * total_grip_n * norm(diff), total_grip_n),
            angle_of(diff),
        )

        current = rotate(module_speeds.translation(), heading_rad)
        previous = self.previous_module_velocity_field
        turn_rate = bearing_change(previous, current) / self.dt_s
        centripetal = from_polar(
            norm(previous) * turn_rate * self.mass_kg,
            angle_of(previous) + math.pi / 2.0,
        )
        self.previous_module_velocity_field = current

        total = limit_magnitude(add(convergence, centripetal), total_grip_n)
        return FrictionForce(convergence=convergence, centripetal=centripetal, total=total)

    @staticmethod
    def rotational(
        module_omega_rps: float,
        floor_omega_rps: float,
        desired_omega_rps: float,
        max_omega_rps: float,
        grip_torque_nm: float,
    ) -> FrictionTorque:
        desired_fraction = abs(desired_omega_rps / max_omega_rps)
        actual_fraction = abs(floor_omega_rps / max_omega_rps)
        if desired_fraction <= ROTATION_SNAP_DESIRED_FRACTION and actual_fraction <= ROTATION_SNAP_ACTUAL_FRACTION:
            return FrictionTorque(torque_nm=0.0, snap_to_zero=True)

        diff = module_omega_rps - floor_omega_rps
        magnitude = min(FRICTION_TORQUE_GAIN * grip_torque_nm * abs(diff), grip_torque_nm)
        return FrictionTorque(torque_nm=math.copysign(magnitude, diff), snap_to_zero=False)


def bearing_change(previous: Vec2, current: Vec2) -> float:
    """Signed heading change from ``previous`` to ``current``; 0 if either is zero."""
    if norm(previous) < ZERO_EPS or norm(current) < ZERO_EPS:
        return 0.0
    return wrap_angle(angle_of(current) - angle_of(previous))
