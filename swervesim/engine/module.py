from __future__ import annotations

import logging
import math
from random import Random

from .battery import SimulatedBattery
from .config import ModuleParams, SimulationTimings
from .mathutil import Vec2, from_polar, wrap_angle
from .motor import (
    MechanismSim,
    MotorController,
    MotorModel,
    MotorOutput,
    PositionController,
    VoltageController,
)
from .ring import SampleRing
from .types import ModulePosition, ModuleState

logger = logging.getLogger(__name__)

SLIP_BLEND = 0.5


class SwerveModuleSim:
    """One wheel-and-steer assembly.

    Each sub-tick the steer mechanism advances, the drive motor produces a
    torque that becomes a propelling force, and that force is clamped to the
    wheel's grip. A clamped (skidding) wheel no longer follows the floor, so
    its speed is blended toward the speed the motor would settle at under the
    clamped load. Encoder readings from every sub-tick are kept in a ring so
    odometry can run at the sub-tick rate.
    """

    def __init__(
        self,
        params: ModuleParams,
        timings: SimulationTimings,
        battery: SimulatedBattery,
        rng: Random | None = None,
        steer_offset_range_rad: float = 30.0,
        name: str = "",
    ):
        self.params = params
        self.timings = timings
        self.battery = battery
        self.name = name

        self.drive_motor = MotorModel(params.drive_motor, params.drive_gear_ratio, params.drive_friction_voltage)
        steer_motor = MotorModel(params.steer_motor, params.steer_gear_ratio, params.steer_friction_voltage)

        self._drive_voltage = VoltageController(self.drive_motor)
        self._steer_voltage = VoltageController(steer_motor)
        self._steer_position = PositionController(steer_motor, kp_v_per_rad=10.0)
        self.drive_controller: MotorController = self._drive_voltage
        self.steer = MechanismSim(steer_motor, params.steer_moi_kgm2, battery, self._steer_voltage)

        self.drive_output = MotorOutput()
        self.wheel_position_rad = 0.0
        self.wheel_speed_rad_s = 0.0
        self.slipping = False

        rng = rng or Random()
        self.steer_encoder_offset_rad = (rng.random() - 0.5) * steer_offset_range_rad

        self._samples: SampleRing[tuple[float, float]] = SampleRing(
            timings.sub_ticks_per_period,
            (self.wheel_position_rad, self.steer_facing_rad()),
        )
        battery.add_appliance(lambda: self.drive_supply_current_a() + self.steer_supply_current_a())

    # -- commands ---------------------------------------------------------

    def request_drive_voltage(self, volts: float) -> None:
        self._drive_voltage.request_voltage(volts)
        self.drive_controller = self._drive_voltage

    def request_steer_voltage(self, volts: float) -> None:
        self._steer_voltage.request_voltage(volts)
        self.steer.use_controller(self._steer_voltage)

    def request_steer_angle(self, angle_rad: float) -> None:
        self._steer_position.request_position(angle_rad)
        self.steer.use_controller(self._steer_position)

    def use_drive_controller(self, controller: MotorController) -> MotorController:
        self.drive_controller = controller
        return controller

    def use_steer_controller(self, controller: MotorController) -> MotorController:
        return self.steer.use_controller(controller)

    # -- simulation -------------------------------------------------------

    def update_sub_tick(self, ground_velocity_world: Vec2, robot_heading_rad: float, normal_force_n: float) -> Vec2:
        """Advance one sub-tick and return the world-frame propelling force."""
        dt = self.timings.dt_s
        self.steer.update(dt)

        grip_n = self.params.gripping_force_n(normal_force_n)
        world_facing = self.steer_facing_rad() + robot_heading_rad
        force_n = self._propelling_force(grip_n, world_facing, ground_velocity_world)

        self.wheel_position_rad += self.wheel_speed_rad_s * dt
        self._samples.push((self.wheel_position_rad, self.steer_facing_rad()))

        return from_polar(force_n, world_facing)

    def _propelling_force(self, grip_n: float, world_facing_rad: float, ground_velocity: Vec2) -> float:
        r = self.params.wheel_radius_m
        force_n = self._drive_wheel_torque() / r
        slipping = abs(force_n) > grip_n
        if slipping:
            force_n = math.copysign(grip_n, force_n)

        along_wheel = ground_velocity[0] * math.cos(world_facing_rad) + ground_velocity[1] * math.sin(world_facing_rad)
        self.wheel_speed_rad_s = along_wheel / r

        if slipping:
            equilibrium = self.drive_motor.mechanism_velocity(
                self.drive_motor.current_for_torque(force_n * r),
                self.drive_output.applied_v,
            )
            self.wheel_speed_rad_s = (1.0 - SLIP_BLEND) * self.wheel_speed_rad_s + SLIP_BLEND * equilibrium

        if slipping != self.slipping:
            logger.debug("module %s %s (force %.1f N, grip %.1f N)", self.name, "slipping" if slipping else "gripped", force_n, grip_n)
        self.slipping = slipping
        return force_n

    def _drive_wheel_torque(self) -> float:
        requested = self.drive_controller.update_control_signal(self.wheel_position_rad, self.wheel_speed_rad_s)
        self.drive_output = self.drive_motor.evaluate(requested, self.wheel_speed_rad_s, self.battery)
        return self.drive_output.torque_nm

    def reset_motion(self) -> None:
        self.wheel_speed_rad_s = 0.0
        self.slipping = False

    # -- state ------------------------------------------------------------

    def current_state(self) -> ModuleState:
        return ModuleState(self.wheel_speed_rad_s * self.params.wheel_radius_m, self.steer_facing_rad())

    def free_spin_state(self) -> ModuleState:
        """Where this module's speed would settle under the current voltage with no load."""
        speed = self.drive_motor.free_spin_velocity(self.drive_output.applied_v) * self.params.wheel_radius_m
        return ModuleState(speed, self.steer_facing_rad())

    def position(self) -> ModulePosition:
        return ModulePosition(self.wheel_position_rad * self.params.wheel_radius_m, self.steer_facing_rad())

    def steer_absolute_angle_rad(self) -> float:
        return self.steer.position_rad

    def steer_facing_rad(self) -> float:
        return wrap_angle(self.steer.position_rad)

    def steer_velocity_rad_s(self) -> float:
        return self.steer.velocity_rad_s

    def steer_relative_encoder_position_rad(self) -> float:
        return self.steer.position_rad * self.params.steer_gear_ratio + self.steer_encoder_offset_rad

    def drive_encoder_position_rad(self) -> float:
        return self.wheel_position_rad * self.params.drive_gear_ratio

    def drive_encoder_velocity_rad_s(self) -> float:
        return self.wheel_speed_rad_s * self.params.drive_gear_ratio

    def drive_applied_voltage(self) -> float:
        return self.drive_output.applied_v

    def drive_stator_current_a(self) -> float:
        return self.drive_output.current_a

    def drive_supply_current_a(self) -> float:
        return MotorModel.supply_current(self.drive_output, self.battery.supply_voltage())

    def steer_applied_voltage(self) -> float:
        return self.steer.output.applied_v

    def steer_supply_current_a(self) -> float:
        return self.steer.supply_current_a()

    # -- high-frequency odometry -----------------------------------------

    def cached_samples(self) -> list[tuple[float, float]]:
        """(wheel angle, steer facing) per sub-tick of the last period, oldest first."""
        return self._samples.snapshot()

    def cached_drive_wheel_positions_rad(self) -> list[float]:
        return [pos for pos, _ in self._samples]

    def cached_drive_encoder_positions_rad(self) -> list[float]:
        ratio = self.params.drive_gear_ratio
        return [pos * ratio for pos, _ in self._samples]

    def cached_steer_facings_rad(self) -> list[float]:
        return [angle for _, angle in self._samples]

    def cached_module_positions(self) -> list[ModulePosition]:
        r = self.params.wheel_radius_m
        return [ModulePosition(pos * r, angle) for pos, angle in self._samples]
