# tests/test_types.py
import math

import pytest

from swervesim.engine.types import ChassisSpeeds


def test_field_and_robot_frames():
    robot = ChassisSpeeds(1.0, 0.0, 0.5)
    field = robot.to_field_relative(math.pi / 2.0)
    assert field.vx_mps == pytest.approx(0.0, abs=1e-12)
    assert field.vy_mps == pytest.approx(1.0)
    assert field.omega_rps == 0.5

    back = field.to_robot_relative(math.pi / 2.0)
    assert back.vx_mps == pytest.approx(1.0)
    assert back.vy_mps == pytest.approx(0.0, abs=1e-12)


def test_difference_and_translation():
    d = ChassisSpeeds(1.0, 2.0, 3.0) - ChassisSpeeds(0.5, 0.5, 0.5)
    assert d == ChassisSpeeds(0.5, 1.5, 2.5)
    assert d.translation() == (0.5, 1.5)
