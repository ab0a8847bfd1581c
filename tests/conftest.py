# tests/conftest.py
from __future__ import annotations

from pathlib import Path

import pytest

from swervesim.engine.arena import SimulatedArena
from swervesim.engine.battery import SimulatedBattery
from swervesim.engine.config import (
    DrivetrainParams,
    ModuleParams,
    MotorParams,
    SimulationTimings,
)

ROOT = Path(__file__).resolve().parents[1]

SQUARE_POSITIONS = ((0.29, 0.29), (0.29, -0.29), (-0.29, 0.29), (-0.29, -0.29))


def neo(**overrides) -> MotorParams:
    values = dict(
        nominal_voltage_v=12.0,
        stall_torque_nm=2.6,
        stall_current_a=105.0,
        free_current_a=1.8,
        free_speed_rpm=5676.0,
    )
    values.update(overrides)
    return MotorParams(**values)


def make_module_params(**overrides) -> ModuleParams:
    values = dict(
        wheel_radius_m=0.0508,
        drive_gear_ratio=6.75,
        steer_gear_ratio=21.43,
        wheel_cof=1.2,
        drive_motor=neo(),
        steer_motor=neo(),
    )
    values.update(overrides)
    return ModuleParams(**values)


def make_drivetrain_params(**overrides) -> DrivetrainParams:
    values = dict(
        mass_kg=45.0,
        bumper_length_m=0.76,
        bumper_width_m=0.76,
        module_positions_m=SQUARE_POSITIONS,
        module=make_module_params(),
    )
    values.update(overrides)
    return DrivetrainParams(**values)


def run_for(arena: SimulatedArena, seconds: float) -> None:
    for _ in range(int(round(seconds / arena.timings.period_s))):
        arena.simulation_periodic()


@pytest.fixture
def timings() -> SimulationTimings:
    return SimulationTimings(period_s=0.02, sub_ticks_per_period=5)


@pytest.fixture
def battery() -> SimulatedBattery:
    return SimulatedBattery()


@pytest.fixture
def arena(timings) -> SimulatedArena:
    return SimulatedArena(timings)


@pytest.fixture
def drivetrain(arena):
    return arena.create_drivetrain(make_drivetrain_params())
