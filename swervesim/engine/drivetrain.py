from __future__ import annotations

import logging
import math
from random import Random
from typing import Sequence

from .battery import SimulatedBattery
from .body import PlanarRigidBody, RigidBody
from .config import ConfigError, DrivetrainParams, NoiseParams, SimulationTimings
from .friction import ChassisFrictionModel, FrictionForce, FrictionTorque
from .kinematics import SwerveKinematics
from .module import SwerveModuleSim
from .sensors import GyroSim
from .types import ChassisSpeeds, ModuleState, Pose2d

logger = logging.getLogger(__name__)

DEFAULT_MODULE_NAMES = ("front_left", "front_right", "back_left", "back_right")


class SwerveDrivetrainSim:
    """Composes N swerve modules, the ground friction model and a rigid body.

    Per sub-tick: translational friction, rotational friction, each module's
    propelling force applied at its world position, then the gyro. The body
    itself is integrated by whoever owns it (normally ``SimulatedArena``).
    """

    def __init__(
        self,
        params: DrivetrainParams,
        timings: SimulationTimings,
        battery: SimulatedBattery,
        body: RigidBody | None = None,
        modules: Sequence[SwerveModuleSim] | None = None,
        gyro: GyroSim | None = None,
        noise: NoiseParams | None = None,
        pose: Pose2d | None = None,
    ):
        self.params = params
        self.timings = timings
        self.battery = battery
        self.kinematics = SwerveKinematics(params.module_positions_m)
        noise = noise or NoiseParams()
        rng = Random(noise.seed)

        if modules is None:
            names = DEFAULT_MODULE_NAMES if params.module_count == 4 else tuple(
                f"module_{i}" for i in range(params.module_count)
            )
            modules = [
                SwerveModuleSim(params.module, timings, battery, rng, noise.steer_encoder_offset_range_rad, name)
                for name in names
            ]
        if len(modules) != self.kinematics.module_count:
            raise ConfigError(
                f"{len(modules)} modules given but {self.kinematics.module_count} module positions configured"
            )
        for module in modules:
            if module.timings.sub_ticks_per_period != timings.sub_ticks_per_period or module.timings.dt_s != timings.dt_s:
                raise ConfigError(f"module {module.name!r} was built with different simulation timings")
        self.modules: tuple[SwerveModuleSim, ...] = tuple(modules)

        if body is None:
            body = PlanarRigidBody(
                params.mass_kg,
                params.moment_of_inertia_kgm2,
                params.linear_damping,
                params.angular_damping,
                pose,
            )
        else:
            body.linear_damping = params.linear_damping
            body.angular_damping = params.angular_damping
            if pose is not None:
                body.set_pose(pose)
        self.body = body

        self.gyro = gyro or GyroSim(noise, timings, rng)
        self.gyro.set_yaw(self.body.pose().theta_rad)
        self.friction = ChassisFrictionModel(params.mass_kg, timings.dt_s)
        self._normal_force_n = params.normal_force_per_module_n
        self.last_friction_force: FrictionForce | None = None
        self.last_friction_torque: FrictionTorque | None = None

        logger.info(
            "swerve drivetrain: %d modules, %.1f kg, max %.2f m/s, %.2f rad/s",
            len(self.modules),
            params.mass_kg,
            self.max_linear_velocity(),
            self.max_angular_velocity(),
        )

    # -- simulation -------------------------------------------------------

    def simulation_sub_tick(self) -> None:
        self._apply_friction_force()
        self._apply_friction_torque()
        self._apply_module_forces()
        self.gyro.update_sub_tick(self.body.angular_velocity())

    def _apply_friction_force(self) -> None:
        friction = self.friction.translational(
            self.module_speeds(),
            self.actual_speeds_robot_relative(),
            self.body.pose().theta_rad,
            self.total_grip_force_n(),
        )
        self.last_friction_force = friction
        self.body.apply_force(friction.total)

    def _apply_friction_torque(self) -> None:
        friction = self.friction.rotational(
            self.module_speeds().omega_rps,
            self.body.angular_velocity(),
            self.desired_speeds().omega_rps,
            self.max_angular_velocity(),
            self.grip_torque_ceiling_nm(),
        )
        self.last_friction_torque = friction
        if friction.snap_to_zero:
            self.body.set_angular_velocity(0.0)
        else:
            self.body.apply_torque(friction.torque_nm)

    def _apply_module_forces(self) -> None:
        heading = self.body.pose().theta_rad
        for module, local in zip(self.modules, self.kinematics.positions):
            world_point = self.body.world_point(local)
            force = module.update_sub_tick(
                self.body.linear_velocity_at(world_point),
                heading,
                self._normal_force_n,
            )
            self.body.apply_force(force, world_point)

    def reset_pose(self, pose: Pose2d) -> None:
        self.body.set_pose(pose)
        self.body.set_linear_velocity((0.0, 0.0))
        self.body.set_angular_velocity(0.0)
        self.friction.reset()
        for module in self.modules:
            module.reset_motion()
        self.gyro.set_yaw(pose.theta_rad)
        logger.info("drivetrain pose reset to (%.3f, %.3f, %.3f)", pose.x_m, pose.y_m, pose.theta_rad)

    # -- state ------------------------------------------------------------

    def pose(self) -> Pose2d:
        return self.body.pose()

    def current_module_states(self) -> list[ModuleState]:
        return [m.current_state() for m in self.modules]

    def module_speeds(self) -> ChassisSpeeds:
        """Robot-relative chassis motion implied by the wheels; may differ from the floor while skidding."""
        return self.kinematics.to_chassis_speeds(self.current_module_states())

    def desired_speeds(self) -> ChassisSpeeds:
        """Robot-relative motion the modules would settle at if the present voltages were held."""
        return self.kinematics.to_chassis_speeds([m.free_spin_state() for m in self.modules])

    def actual_speeds_field_relative(self) -> ChassisSpeeds:
        vx, vy = self.body.linear_velocity()
        return ChassisSpeeds(vx, vy, self.body.angular_velocity())

    def actual_speeds_robot_relative(self) -> ChassisSpeeds:
        return self.actual_speeds_field_relative().to_robot_relative(self.body.pose().theta_rad)

    def slipping_module_count(self) -> int:
        return sum(1 for m in self.modules if m.slipping)

    # -- limits -----------------------------------------------------------

    def drive_base_radius_m(self) -> float:
        return max(math.hypot(x, y) for x, y in self.kinematics.positions)

    def total_grip_force_n(self) -> float:
        return sum(m.params.gripping_force_n(self._normal_force_n) for m in self.modules)

    def grip_torque_ceiling_nm(self) -> float:
        return sum(
            m.params.gripping_force_n(self._normal_force_n) * math.hypot(x, y)
            for m, (x, y) in zip(self.modules, self.kinematics.positions)
        )

    def max_linear_velocity(self) -> float:
        module = self.modules[0]
        return module.drive_motor.free_speed_rad_s() * module.params.wheel_radius_m

    def max_angular_velocity(self) -> float:
        return self.max_linear_velocity() / self.drive_base_radius_m()

    def propelling_force_per_module_n(self, stator_current_limit_a: float) -> float:
        module = self.modules[0]
        thrust = module.drive_motor.torque(abs(stator_current_limit_a)) / module.params.wheel_radius_m
        return min(thrust, module.params.gripping_force_n(self._normal_force_n))

    def max_linear_acceleration(self, stator_current_limit_a: float) -> float:
        force = self.propelling_force_per_module_n(stator_current_limit_a)
        return force * len(self.modules) / self.params.mass_kg

    def max_angular_acceleration(self, stator_current_limit_a: float) -> float:
        force = self.propelling_force_per_module_n(stator_current_limit_a)
        lever = sum(math.hypot(x, y) for x, y in self.kinematics.positions)
        return force * lever / self.body.inertia
