from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from .battery import SimulatedBattery
from .config import MotorParams
from .mathutil import apply_deadband, clamp, wrap_angle


@dataclass
class MotorOutput:
    applied_v: float = 0.0
    current_a: float = 0.0
    torque_nm: float = 0.0


class MotorModel:
    """Brushed/brushless DC motor behind a gearbox.

    Velocities and torques are mechanism-side (after the gearbox); voltages
    and currents are motor-side.
    """

    def __init__(self, params: MotorParams, gearing: float, friction_voltage: float):
        self.params = params
        self.gearing = gearing
        self.resistance_ohm = params.resistance_ohm
        self.kv_rad_s_per_v = params.kv_rad_s_per_v
        self.kt_nm_per_a = params.kt_nm_per_a
        self.friction_voltage = friction_voltage
        self.friction_torque_nm = self.torque(friction_voltage / self.resistance_ohm)

    def back_emf(self, mechanism_rad_s: float) -> float:
        return mechanism_rad_s * self.gearing / self.kv_rad_s_per_v

    def current(self, mechanism_rad_s: float, voltage: float) -> float:
        return (voltage - self.back_emf(mechanism_rad_s)) / self.resistance_ohm

    def torque(self, current_a: float) -> float:
        return current_a * self.kt_nm_per_a * self.gearing

    def current_for_torque(self, torque_nm: float) -> float:
        return torque_nm / (self.kt_nm_per_a * self.gearing)

    def mechanism_velocity(self, current_a: float, voltage: float) -> float:
        return (voltage - current_a * self.resistance_ohm) * self.kv_rad_s_per_v / self.gearing

    def torque_with_friction(self, torque_nm: float) -> float:
        return apply_deadband(torque_nm, self.friction_torque_nm)

    def free_spin_velocity(self, voltage: float) -> float:
        """Steady speed at ``voltage`` with only internal friction as load."""
        if abs(voltage) <= self.friction_voltage:
            return 0.0
        friction_current = self.current_for_torque(self.friction_torque_nm)
        return math.copysign(self.mechanism_velocity(friction_current, abs(voltage)), voltage)

    def free_speed_rad_s(self) -> float:
        return self.free_spin_velocity(self.params.nominal_voltage_v)

    def evaluate(self, requested_v: float, mechanism_rad_s: float, battery: SimulatedBattery) -> MotorOutput:
        applied = battery.clamp(requested_v)
        current = self.current(mechanism_rad_s, applied)
        torque = self.torque_with_friction(self.torque(current))
        return MotorOutput(applied_v=applied, current_a=current, torque_nm=torque)

    @staticmethod
    def supply_current(output: MotorOutput, supply_v: float) -> float:
        if supply_v <= 0.0:
            return 0.0
        return output.current_a * output.applied_v / supply_v


class MotorController(Protocol):
    def update_control_signal(self, position_rad: float, velocity_rad_s: float) -> float: ...


class VoltageController:
    """Open-loop voltage request with an optional stator current limit."""

    def __init__(self, motor: MotorModel, current_limit_a: float | None = None):
        self.motor = motor
        self.current_limit_a = current_limit_a
        self.requested_v = 0.0

    def request_voltage(self, volts: float) -> None:
        self.requested_v = volts

    def update_control_signal(self, position_rad: float, velocity_rad_s: float) -> float:
        if self.current_limit_a is None:
            return self.requested_v
        # Keep |V - backEMF| / R within the limit.
        emf = self.motor.back_emf(velocity_rad_s)
        headroom = abs(self.current_limit_a) * self.motor.resistance_ohm
        return clamp(self.requested_v, emf - headroom, emf + headroom)


class PositionController:
    """PD loop on mechanism angle, wrapping the error for continuous joints."""

    def __init__(
        self,
        motor: MotorModel,
        kp_v_per_rad: float,
        kd_v_per_rad_s: float = 0.0,
        max_voltage: float = 12.0,
        continuous: bool = True,
    ):
        self.motor = motor
        self.kp_v_per_rad = kp_v_per_rad
        self.kd_v_per_rad_s = kd_v_per_rad_s
        self.max_voltage = abs(max_voltage)
        self.continuous = continuous
        self.target_rad = 0.0

    def request_position(self, angle_rad: float) -> None:
        self.target_rad = angle_rad

    def update_control_signal(self, position_rad: float, velocity_rad_s: float) -> float:
        error = self.target_rad - position_rad
        if self.continuous:
            error = wrap_angle(error)
        volts = self.kp_v_per_rad * error - self.kd_v_per_rad_s * velocity_rad_s
        return clamp(volts, -self.max_voltage, self.max_voltage)


class VelocityController:
    """Feedforward on back-EMF and friction plus a proportional correction."""

    def __init__(self, motor: MotorModel, kp_v_per_rad_s: float = 0.0, max_voltage: float = 12.0):
        self.motor = motor
        self.kp_v_per_rad_s = kp_v_per_rad_s
        self.max_voltage = abs(max_voltage)
        self.target_rad_s = 0.0

    def request_velocity(self, velocity_rad_s: float) -> None:
        self.target_rad_s = velocity_rad_s

    def update_control_signal(self, position_rad: float, velocity_rad_s: float) -> float:
        target = self.target_rad_s
        if target == 0.0:
            feedforward = 0.0
        else:
            feedforward = self.motor.back_emf(target) + math.copysign(self.motor.friction_voltage, target)
        volts = feedforward + self.kp_v_per_rad_s * (target - velocity_rad_s)
        return clamp(volts, -self.max_voltage, self.max_voltage)


class MechanismSim:
    """A motor driving an inertial load; integrates its own angle and speed."""

    def __init__(
        self,
        motor: MotorModel,
        moi_kgm2: float,
        battery: SimulatedBattery,
        controller: MotorController | None = None,
    ):
        self.motor = motor
        self.moi_kgm2 = moi_kgm2
        self.battery = battery
        self.controller: MotorController = controller or VoltageController(motor)
        self.position_rad = 0.0
        self.velocity_rad_s = 0.0
        self.output = MotorOutput()

    def use_controller(self, controller: MotorController) -> MotorController:
        self.controller = controller
        return controller

    def set_state(self, position_rad: float, velocity_rad_s: float = 0.0) -> None:
        self.position_rad = position_rad
        self.velocity_rad_s = velocity_rad_s

    def update(self, dt_s: float) -> MotorOutput:
        requested = self.controller.update_control_signal(self.position_rad, self.velocity_rad_s)
        self.output = self.motor.evaluate(requested, self.velocity_rad_s, self.battery)

        if self.output.torque_nm == 0.0:
            # Inside the friction band: static friction brakes the load.
            arrest = self.motor.friction_torque_nm * dt_s / self.moi_kgm2
            if abs(self.velocity_rad_s) <= arrest:
                self.velocity_rad_s = 0.0
            else:
                self.velocity_rad_s -= math.copysign(arrest, self.velocity_rad_s)
        else:
            self.velocity_rad_s += self.output.torque_nm / self.moi_kgm2 * dt_s

        self.position_rad += self.velocity_rad_s * dt_s
        return self.output

    def supply_current_a(self) -> float:
        return MotorModel.supply_current(self.output, self.battery.supply_voltage())
