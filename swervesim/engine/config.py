from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SUPPORTED_MODULE_COUNTS = (2, 3, 4, 6)

GRAVITY_MPS2 = 9.8


class ConfigError(ValueError):
    """Invalid or inconsistent simulation configuration."""


def _require_positive(owner: str, **values: float) -> None:
    for name, value in values.items():
        if not value > 0.0 or math.isinf(value):
            raise ConfigError(f"{owner}.{name} must be positive and finite, got {value!r}")


def _require_non_negative(owner: str, **values: float) -> None:
    for name, value in values.items():
        if not value >= 0.0:
            raise ConfigError(f"{owner}.{name} must be >= 0, got {value!r}")


def _build(cls: type, raw: Any, where: str):
    if not isinstance(raw, dict):
        raise ConfigError(f"{where} must be a mapping")
    try:
        return cls(**raw)
    except TypeError as exc:
        raise ConfigError(f"{where}: {exc}") from exc


@dataclass(frozen=True)
class MotorParams:
    nominal_voltage_v: float
    stall_torque_nm: float
    stall_current_a: float
    free_current_a: float
    free_speed_rpm: float
    count: int = 1

    def __post_init__(self) -> None:
        _require_positive(
            "MotorParams",
            nominal_voltage_v=self.nominal_voltage_v,
            stall_torque_nm=self.stall_torque_nm,
            stall_current_a=self.stall_current_a,
            free_speed_rpm=self.free_speed_rpm,
        )
        _require_non_negative("MotorParams", free_current_a=self.free_current_a)
        if self.count < 1:
            raise ConfigError(f"MotorParams.count must be >= 1, got {self.count}")
        if self.free_current_a >= self.stall_current_a:
            raise ConfigError("MotorParams.free_current_a must be below stall_current_a")

    @property
    def free_speed_rad_s(self) -> float:
        return self.free_speed_rpm * 2.0 * math.pi / 60.0

    @property
    def resistance_ohm(self) -> float:
        return self.nominal_voltage_v / (self.stall_current_a * self.count)

    @property
    def kv_rad_s_per_v(self) -> float:
        return self.free_speed_rad_s / (
            self.nominal_voltage_v - self.resistance_ohm * self.free_current_a * self.count
        )

    @property
    def kt_nm_per_a(self) -> float:
        return self.stall_torque_nm / self.stall_current_a


@dataclass(frozen=True)
class ModuleParams:
    wheel_radius_m: float
    drive_gear_ratio: float
    steer_gear_ratio: float
    wheel_cof: float
    drive_motor: MotorParams
    steer_motor: MotorParams
    drive_friction_voltage: float = 0.2
    steer_friction_voltage: float = 0.3
    steer_moi_kgm2: float = 0.03

    def __post_init__(self) -> None:
        _require_positive(
            "ModuleParams",
            wheel_radius_m=self.wheel_radius_m,
            drive_gear_ratio=self.drive_gear_ratio,
            steer_gear_ratio=self.steer_gear_ratio,
            wheel_cof=self.wheel_cof,
            steer_moi_kgm2=self.steer_moi_kgm2,
        )
        _require_non_negative(
            "ModuleParams",
            drive_friction_voltage=self.drive_friction_voltage,
            steer_friction_voltage=self.steer_friction_voltage,
        )
        if self.drive_friction_voltage >= self.drive_motor.nominal_voltage_v:
            raise ConfigError("ModuleParams.drive_friction_voltage must be below the drive motor's nominal voltage")

    @classmethod
    def from_mapping(cls, raw: Any) -> ModuleParams:
        if not isinstance(raw, dict):
            raise ConfigError("module must be a mapping")
        data = dict(raw)
        data["drive_motor"] = _build(MotorParams, data.get("drive_motor"), "module.drive_motor")
        data["steer_motor"] = _build(MotorParams, data.get("steer_motor"), "module.steer_motor")
        return _build(cls, data, "module")

    def gripping_force_n(self, normal_force_n: float) -> float:
        return self.wheel_cof * max(0.0, normal_force_n)


@dataclass(frozen=True)
class BatteryParams:
    nominal_v: float = 12.0
    internal_r_ohm: float = 0.015
    min_v: float = 6.0

    def __post_init__(self) -> None:
        _require_positive("BatteryParams", nominal_v=self.nominal_v)
        _require_non_negative("BatteryParams", internal_r_ohm=self.internal_r_ohm, min_v=self.min_v)
        if self.min_v > self.nominal_v:
            raise ConfigError("BatteryParams.min_v must not exceed nominal_v")


@dataclass(frozen=True)
class DrivetrainParams:
    mass_kg: float
    bumper_length_m: float
    bumper_width_m: float
    module_positions_m: tuple[tuple[float, float], ...]
    module: ModuleParams
    linear_damping: float = 1.4
    angular_damping: float = 1.4
    downforce_n: float = 0.0
    battery: BatteryParams = field(default_factory=BatteryParams)

    def __post_init__(self) -> None:
        _require_positive(
            "DrivetrainParams",
            mass_kg=self.mass_kg,
            bumper_length_m=self.bumper_length_m,
            bumper_width_m=self.bumper_width_m,
        )
        _require_non_negative(
            "DrivetrainParams",
            linear_damping=self.linear_damping,
            angular_damping=self.angular_damping,
            downforce_n=self.downforce_n,
        )
        positions = tuple((float(x), float(y)) for x, y in self.module_positions_m)
        if len(positions) not in SUPPORTED_MODULE_COUNTS:
            raise ConfigError(f"a swerve drivetrain needs 2, 3, 4 or 6 modules, got {len(positions)}")
        if all(math.hypot(x, y) == 0.0 for x, y in positions):
            raise ConfigError("module positions must not all sit at the chassis center")
        object.__setattr__(self, "module_positions_m", positions)

    @classmethod
    def from_mapping(cls, raw: Any) -> DrivetrainParams:
        if not isinstance(raw, dict):
            raise ConfigError("drivetrain config must be a mapping")
        data = dict(raw)
        data["module"] = ModuleParams.from_mapping(data.get("module"))
        data["battery"] = _build(BatteryParams, data.get("battery", {}), "battery")
        positions = data.get("module_positions_m")
        if not isinstance(positions, list):
            raise ConfigError("module_positions_m must be a list of [x, y] pairs")
        try:
            data["module_positions_m"] = tuple((float(p[0]), float(p[1])) for p in positions)
        except (TypeError, IndexError, ValueError) as exc:
            raise ConfigError(f"module_positions_m: {exc}") from exc
        return _build(cls, data, "drivetrain")

    @property
    def module_count(self) -> int:
        return len(self.module_positions_m)

    @property
    def normal_force_per_module_n(self) -> float:
        return (self.mass_kg * GRAVITY_MPS2 + self.downforce_n) / self.module_count

    @property
    def moment_of_inertia_kgm2(self) -> float:
        # Uniform rectangle the size of the bumpers.
        return self.mass_kg * (self.bumper_length_m**2 + self.bumper_width_m**2) / 12.0


@dataclass(frozen=True)
class NoiseParams:
    seed: int = 0
    gyro_drift_deg_per_30s: float = 0.0
    gyro_velocity_sigma_pct: float = 0.0
    steer_encoder_offset_range_rad: float = 30.0

    def __post_init__(self) -> None:
        _require_non_negative(
            "NoiseParams",
            gyro_drift_deg_per_30s=self.gyro_drift_deg_per_30s,
            gyro_velocity_sigma_pct=self.gyro_velocity_sigma_pct,
            steer_encoder_offset_range_rad=self.steer_encoder_offset_range_rad,
        )


@dataclass(frozen=True)
class SimulationTimings:
    period_s: float = 0.02
    sub_ticks_per_period: int = 5

    def __post_init__(self) -> None:
        _require_positive("SimulationTimings", period_s=self.period_s)
        if int(self.sub_ticks_per_period) != self.sub_ticks_per_period or self.sub_ticks_per_period < 1:
            raise ConfigError(
                f"SimulationTimings.sub_ticks_per_period must be a positive integer, got {self.sub_ticks_per_period!r}"
            )

    @property
    def dt_s(self) -> float:
        return self.period_s / self.sub_ticks_per_period


@dataclass
class RunParams:
    duration_s: float
    realtime: bool = False
    timings: SimulationTimings = field(default_factory=SimulationTimings)

    @classmethod
    def from_mapping(cls, raw: Any) -> RunParams:
        if not isinstance(raw, dict):
            raise ConfigError("run config must be a mapping")
        data = dict(raw)
        timings = SimulationTimings(
            period_s=float(data.pop("period_s", 0.02)),
            sub_ticks_per_period=int(data.pop("sub_ticks_per_period", 5)),
        )
        run = _build(cls, data, "run")
        run.timings = timings
        return run


class ConfigManager:
    def __init__(self, config_dir: Path):
        self.config_dir = config_dir
        self.paths = {
            "drivetrain": config_dir / "drivetrain.yaml",
            "noise": config_dir / "noise.yaml",
            "run": config_dir / "run.yaml",
        }

    def load_all(self) -> tuple[DrivetrainParams, NoiseParams, RunParams]:
        drivetrain = DrivetrainParams.from_mapping(self._load_yaml("drivetrain"))
        noise = _build(NoiseParams, self._load_yaml("noise"), "noise")
        run = RunParams.from_mapping(self._load_yaml("run"))
        logger.info(
            "loaded config from %s: %d modules, %.1f kg, dt=%.4fs",
            self.config_dir,
            drivetrain.module_count,
            drivetrain.mass_kg,
            run.timings.dt_s,
        )
        return drivetrain, noise, run

    def _load_yaml(self, name: str) -> dict[str, Any]:
        path = self.paths[name]
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError as exc:
            raise ConfigError(f"Config {path} not found") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config {path} is not a mapping")
        return data
