from __future__ import annotations

from typing import Sequence

from wpimath import kinematics as wpikin
from wpimath.geometry import Rotation2d, Translation2d

from .config import SUPPORTED_MODULE_COUNTS, ConfigError
from .types import ChassisSpeeds, ModuleState

_KINEMATICS_BY_COUNT = {
    2: wpikin.SwerveDrive2Kinematics,
    3: wpikin.SwerveDrive3Kinematics,
    4: wpikin.SwerveDrive4Kinematics,
    6: wpikin.SwerveDrive6Kinematics,
}


class SwerveKinematics:
    """Maps between chassis speeds and per-module (speed, angle) states.

    Wraps the wpimath swerve kinematics for the configured module count.
    Forward kinematics is the least-squares solution over all modules, so
    inconsistent module states (e.g. while skidding) still produce a single
    best-fit chassis motion.
    """

    def __init__(self, module_positions_m: Sequence[tuple[float, float]]):
        self.positions = tuple((float(x), float(y)) for x, y in module_positions_m)
        n = len(self.positions)
        if n not in _KINEMATICS_BY_COUNT:
            counts = ", ".join(str(c) for c in SUPPORTED_MODULE_COUNTS)
            raise ConfigError(f"swerve kinematics supports {counts} modules, got {n}")

        # Determinant of the normal matrix of [1 0 -y; 0 1 x] over all modules, divided by n.
        sx = sum(x for x, _ in self.positions)
        sy = sum(y for _, y in self.positions)
        sr = n * sum(x * x + y * y for x, y in self.positions)
        if sr - sx * sx - sy * sy <= 1e-9 * sr:
            raise ConfigError("module positions are degenerate; chassis rotation is unobservable")

        self._kinematics = _KINEMATICS_BY_COUNT[n](*(Translation2d(x, y) for x, y in self.positions))

    @property
    def module_count(self) -> int:
        return len(self.positions)

    def to_module_states(self, speeds: ChassisSpeeds) -> list[ModuleState]:
        states = self._kinematics.toSwerveModuleStates(
            wpikin.ChassisSpeeds(speeds.vx_mps, speeds.vy_mps, speeds.omega_rps)
        )
        return [ModuleState(speed_mps=s.speed, angle_rad=s.angle.radians()) for s in states]

    def to_chassis_speeds(self, states: Sequence[ModuleState]) -> ChassisSpeeds:
        if len(states) != len(self.positions):
            raise ValueError(f"expected {len(self.positions)} module states, got {len(states)}")

        speeds = self._kinematics.toChassisSpeeds(
            tuple(wpikin.SwerveModuleState(s.speed_mps, Rotation2d(s.angle_rad)) for s in states)
        )
        return ChassisSpeeds(speeds.vx, speeds.vy, speeds.omega)
