# tests/test_friction.py
import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from swervesim.engine.friction import (
    ROTATION_SNAP_ACTUAL_FRACTION,
    ROTATION_SNAP_DESIRED_FRACTION,
    ChassisFrictionModel,
    bearing_change,
)
from swervesim.engine.mathutil import norm
from swervesim.engine.types import ChassisSpeeds

speeds = st.floats(min_value=-8.0, max_value=8.0, allow_nan=False)
angles = st.floats(min_value=-10.0, max_value=10.0, allow_nan=False)


def test_no_slip_and_straight_path_gives_no_friction():
    model = ChassisFrictionModel(mass_kg=45.0, dt_s=0.004)
    model.previous_module_velocity_field = (2.0, 0.0)
    s = ChassisSpeeds(2.0, 0.0, 0.0)
    f = model.translational(s, s, 0.0, 529.2)
    assert f.convergence == pytest.approx((0.0, 0.0))
    assert f.centripetal == pytest.approx((0.0, 0.0))
    assert f.total == pytest.approx((0.0, 0.0))


def test_matching_speeds_leave_only_centripetal_force():
    model = ChassisFrictionModel(mass_kg=45.0, dt_s=0.004)
    model.previous_module_velocity_field = (1.0, 0.0)
    turn = 0.01
    s = ChassisSpeeds(math.cos(turn), math.sin(turn), 0.0)
    f = model.translational(s, s, 0.0, 1000.0)

    assert norm(f.convergence) == 0.0
    # |v| * (dtheta / dt) * m, pointing left of the previous heading.
    assert f.centripetal[0] == pytest.approx(0.0, abs=1e-9)
    assert f.centripetal[1] == pytest.approx(1.0 * turn / 0.004 * 45.0)
    assert f.total == f.centripetal


def test_convergence_pulls_floor_toward_modules_and_saturates():
    model = ChassisFrictionModel(mass_kg=45.0, dt_s=0.004)
    f = model.translational(ChassisSpeeds(0.01, 0.0, 0.0), ChassisSpeeds(), 0.0, 500.0)
    assert f.convergence[0] == pytest.approx(3.0 * 500.0 * 0.01)

    model.reset()
    f = model.translational(ChassisSpeeds(0.0, -2.0, 0.0), ChassisSpeeds(), 0.0, 500.0)
    assert f.convergence[0] == pytest.approx(0.0, abs=1e-9)
    assert f.convergence[1] == pytest.approx(-500.0)


def test_inputs_are_rotated_into_the_field_frame():
    model = ChassisFrictionModel(mass_kg=45.0, dt_s=0.004)
    f = model.translational(ChassisSpeeds(0.01, 0.0, 0.0), ChassisSpeeds(), math.pi / 2.0, 500.0)
    assert f.convergence[0] == pytest.approx(0.0, abs=1e-9)
    assert f.convergence[1] == pytest.approx(15.0)
    assert model.previous_module_velocity_field == pytest.approx((0.0, 0.01))


def test_stopping_does_not_produce_centripetal_force():
    model = ChassisFrictionModel(mass_kg=45.0, dt_s=0.004)
    model.previous_module_velocity_field = (1.5, 0.0)
    f = model.translational(ChassisSpeeds(), ChassisSpeeds(), 0.0, 529.2)
    assert f.centripetal == (0.0, 0.0)
    assert all(math.isfinite(v) for v in f.total)


def test_bearing_change():
    assert bearing_change((0.0, 0.0), (1.0, 0.0)) == 0.0
    assert bearing_change((1.0, 0.0), (0.0, 0.0)) == 0.0
    assert bearing_change((1.0, 0.0), (0.0, 1.0)) == pytest.approx(math.pi / 2.0)
    # Crossing the +-pi seam takes the short way round.
    assert bearing_change((-1.0, 0.01), (-1.0, -0.01)) == pytest.approx(0.02, abs=1e-4)


@settings(max_examples=200, deadline=None)
@given(
    module=st.tuples(speeds, speeds, speeds),
    floor=st.tuples(speeds, speeds, speeds),
    previous=st.tuples(speeds, speeds),
    heading=angles,
    grip=st.floats(min_value=0.0, max_value=2000.0, allow_nan=False),
)
def test_total_friction_never_exceeds_grip(module, floor, previous, heading, grip):
    model = ChassisFrictionModel(mass_kg=45.0, dt_s=0.004)
    model.previous_module_velocity_field = previous
    f = model.translational(ChassisSpeeds(*module), ChassisSpeeds(*floor), heading, grip)
    assert norm(f.total) <= grip * (1.0 + 1e-9) + 1e-9
    assert norm(f.convergence) <= grip * (1.0 + 1e-9) + 1e-9


@settings(max_examples=200, deadline=None)
@given(
    module_omega=speeds,
    floor_omega=speeds,
    desired_omega=speeds,
    max_omega=st.floats(min_value=0.5, max_value=20.0),
    grip_torque=st.floats(min_value=0.0, max_value=1000.0),
)
def test_friction_torque_never_exceeds_ceiling(module_omega, floor_omega, desired_omega, max_omega, grip_torque):
    t = ChassisFrictionModel.rotational(module_omega, floor_omega, desired_omega, max_omega, grip_torque)
    assert abs(t.torque_nm) <= grip_torque * (1.0 + 1e-12)
    if not t.snap_to_zero and module_omega != floor_omega and grip_torque > 0.0:
        assert math.copysign(1.0, t.torque_nm) == math.copysign(1.0, module_omega - floor_omega)


def test_friction_torque_is_proportional_below_ceiling():
    t = ChassisFrictionModel.rotational(1.0, 0.8, 5.0, 10.0, 200.0)
    assert not t.snap_to_zero
    assert t.torque_nm == pytest.approx(200.0 * 0.2)


@pytest.mark.parametrize(
    "desired_fraction, actual_fraction, snaps",
    [
        (0.0, 0.0, True),
        (ROTATION_SNAP_DESIRED_FRACTION, ROTATION_SNAP_ACTUAL_FRACTION, True),
        (0.005, -0.015, True),
        (0.02, 0.005, False),
        (0.005, 0.03, False),
    ],
)
def test_rotation_snap_thresholds(desired_fraction, actual_fraction, snaps):
    max_omega = 10.0
    t = ChassisFrictionModel.rotational(
        0.0,
        actual_fraction * max_omega,
        desired_fraction * max_omega,
        max_omega,
        200.0,
    )
    assert t.snap_to_zero is snaps
    if snaps:
        assert t.torque_nm == 0.0
