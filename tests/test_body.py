# tests/test_body.py
import math

import pytest

from swervesim.engine.body import PlanarRigidBody
from swervesim.engine.types import Pose2d


def test_force_integrates_semi_implicitly():
    body = PlanarRigidBody(mass_kg=45.0, inertia=4.0)
    body.apply_force((45.0, 0.0))
    body.step(0.1)
    assert body.linear_velocity() == pytest.approx((0.1, 0.0))
    assert body.pose().x_m == pytest.approx(0.01)
    assert body.pending_force() == (0.0, 0.0)


def test_off_center_force_adds_torque():
    body = PlanarRigidBody(mass_kg=45.0, inertia=4.0)
    body.apply_force((10.0, 0.0), world_point=(0.0, 0.5))
    assert body.pending_torque() == pytest.approx(-5.0)
    body.step(0.1)
    assert body.angular_velocity() == pytest.approx(-5.0 / 4.0 * 0.1)


def test_damping_scales_velocity():
    body = PlanarRigidBody(mass_kg=1.0, inertia=1.0, linear_damping=2.0, angular_damping=100.0)
    body.set_linear_velocity((1.0, 0.0))
    body.set_angular_velocity(1.0)
    body.step(0.1)
    assert body.linear_velocity()[0] == pytest.approx(0.8)
    # Damping never reverses motion.
    assert body.angular_velocity() == 0.0


def test_world_point_and_point_velocity():
    body = PlanarRigidBody(mass_kg=1.0, inertia=1.0, pose=Pose2d(1.0, 2.0, math.pi / 2.0))
    x, y = body.world_point((0.5, 0.0))
    assert x == pytest.approx(1.0)
    assert y == pytest.approx(2.5)

    body.set_angular_velocity(2.0)
    vx, vy = body.linear_velocity_at((x, y))
    assert vx == pytest.approx(-1.0)
    assert vy == pytest.approx(0.0)


def test_heading_stays_wrapped():
    body = PlanarRigidBody(mass_kg=1.0, inertia=1.0, pose=Pose2d(0.0, 0.0, 3.1))
    body.set_angular_velocity(1.0)
    body.step(0.1)
    assert -math.pi <= body.pose().theta_rad <= math.pi
    assert body.pose().theta_rad == pytest.approx(3.2 - 2.0 * math.pi)
