from __future__ import annotations

import math
from random import Random

from .config import NoiseParams, SimulationTimings
from .mathutil import wrap_angle
from .ring import SampleRing


class GyroSim:
    """Yaw gyro fed with the chassis' true angular velocity every sub-tick.

    Readings drift slowly and the measured rate carries proportional noise.
    Yaw samples from every sub-tick of the last period are cached like the
    module encoder samples.
    """

    def __init__(self, params: NoiseParams, timings: SimulationTimings, rng: Random):
        self.params = params
        self.timings = timings
        self.rng = rng
        self.yaw_rad = 0.0
        self.measured_rate_rps = 0.0
        self._yaw_cache: SampleRing[float] = SampleRing(timings.sub_ticks_per_period, 0.0)

    def set_yaw(self, yaw_rad: float) -> None:
        self.yaw_rad = wrap_angle(yaw_rad)
        for _ in range(len(self._yaw_cache)):
            self._yaw_cache.push(self.yaw_rad)

    def update_sub_tick(self, actual_omega_rps: float) -> None:
        p = self.params
        dt = self.timings.dt_s

        noise = self.rng.gauss(0.0, p.gyro_velocity_sigma_pct / 100.0) if p.gyro_velocity_sigma_pct > 0 else 0.0
        self.measured_rate_rps = actual_omega_rps * (1.0 + noise)

        drift_rps = math.radians(p.gyro_drift_deg_per_30s) / 30.0
        if drift_rps > 0:
            drift_rps *= self.rng.choice((-1.0, 1.0)) * self.rng.random()

        self.yaw_rad = wrap_angle(self.yaw_rad + (self.measured_rate_rps + drift_rps) * dt)
        self._yaw_cache.push(self.yaw_rad)

    def cached_yaws_rad(self) -> list[float]:
        return self._yaw_cache.snapshot()
