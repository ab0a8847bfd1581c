# tests/test_mathutil.py
import math

import pytest

from swervesim.engine.mathutil import (
    angle_of,
    apply_deadband,
    limit_magnitude,
    norm,
    rotate,
    wrap_angle,
)


@pytest.mark.parametrize(
    "angle, expected",
    [
        (0.0, 0.0),
        (math.pi, -math.pi),
        (-math.pi, -math.pi),
        (3.0 * math.pi / 2.0, -math.pi / 2.0),
        (-5.0 * math.pi / 2.0, -math.pi / 2.0),
    ],
)
def test_wrap_angle(angle, expected):
    assert wrap_angle(angle) == pytest.approx(expected)


def test_angle_of_zero_vector_is_zero():
    assert angle_of((0.0, 0.0)) == 0.0
    assert angle_of((0.0, 2.0)) == pytest.approx(math.pi / 2.0)


def test_rotate_quarter_turn():
    x, y = rotate((1.0, 0.0), math.pi / 2.0)
    assert x == pytest.approx(0.0, abs=1e-12)
    assert y == pytest.approx(1.0)


def test_limit_magnitude():
    assert limit_magnitude((3.0, 4.0), 10.0) == (3.0, 4.0)
    assert norm(limit_magnitude((3.0, 4.0), 2.5)) == pytest.approx(2.5)
    assert limit_magnitude((0.0, 0.0), 0.0) == (0.0, 0.0)


def test_apply_deadband():
    assert apply_deadband(0.2, 0.3) == 0.0
    assert apply_deadband(-0.3, 0.3) == 0.0
    assert apply_deadband(1.0, 0.3) == pytest.approx(0.7)
    assert apply_deadband(-1.0, 0.3) == pytest.approx(-0.7)
