from __future__ import annotations

import csv
import json
import math
from pathlib import Path

from .types import SimStepOutput

TRACE_COLUMNS = [
    "time_s",
    "x_m",
    "y_m",
    "theta_rad",
    "vx_mps",
    "vy_mps",
    "omega_rps",
    "desired_vx_mps",
    "desired_vy_mps",
    "desired_omega_rps",
    "module_vx_mps",
    "module_vy_mps",
    "module_omega_rps",
    "odom_x_m",
    "odom_y_m",
    "odom_theta_rad",
    "gyro_yaw_rad",
    "battery_v",
    "slipping_modules",
]


class TraceWriter:
    def __init__(self, out_dir: Path):
        self.out_dir = out_dir
        self.out_dir.mkdir(parents=True, exist_ok=True)

        self.trace_path = out_dir / "trace.csv"
        self._trace_f = self.trace_path.open("w", newline="", encoding="utf-8")
        self._trace = csv.writer(self._trace_f)
        self._trace.writerow(TRACE_COLUMNS)

        self.max_speed_mps = 0.0
        self.max_omega_rps = 0.0
        self.min_battery_v = math.inf
        self.slipping_samples = 0
        self.samples = 0
        self.last: SimStepOutput | None = None

    def write(self, out: SimStepOutput) -> None:
        s = out.speeds
        self.max_speed_mps = max(self.max_speed_mps, math.hypot(s.vx_mps, s.vy_mps))
        self.max_omega_rps = max(self.max_omega_rps, abs(s.omega_rps))
        self.min_battery_v = min(self.min_battery_v, out.battery_v)
        self.slipping_samples += 1 if out.slipping_modules else 0
        self.samples += 1
        self.last = out

        d = out.desired_speeds
        m = out.module_speeds
        self._trace.writerow(
            [
                f"{out.time_s:.6f}",
                f"{out.pose.x_m:.6f}",
                f"{out.pose.y_m:.6f}",
                f"{out.pose.theta_rad:.6f}",
                f"{s.vx_mps:.6f}",
                f"{s.vy_mps:.6f}",
                f"{s.omega_rps:.6f}",
                f"{d.vx_mps:.6f}",
                f"{d.vy_mps:.6f}",
                f"{d.omega_rps:.6f}",
                f"{m.vx_mps:.6f}",
                f"{m.vy_mps:.6f}",
                f"{m.omega_rps:.6f}",
                f"{out.odometry_pose.x_m:.6f}",
                f"{out.odometry_pose.y_m:.6f}",
                f"{out.odometry_pose.theta_rad:.6f}",
                f"{out.gyro_yaw_rad:.6f}",
                f"{out.battery_v:.4f}",
                out.slipping_modules,
            ]
        )

    def close(self) -> None:
        self._trace_f.close()

    def write_report(
        self,
        out_dir: Path,
        duration_s: float,
        diagnostics: dict[str, object] | None = None,
    ) -> Path:
        report_path = out_dir / "report.json"
        last = self.last
        summary = {
            "duration_s": duration_s,
            "samples": self.samples,
            "max_speed_mps": self.max_speed_mps,
            "max_omega_rps": self.max_omega_rps,
            "min_battery_v": self.min_battery_v if last else None,
            "slip_fraction": self.slipping_samples / self.samples if self.samples else 0.0,
            "final_state": {
                "x_m": last.pose.x_m if last else 0.0,
                "y_m": last.pose.y_m if last else 0.0,
                "theta_rad": last.pose.theta_rad if last else 0.0,
                "vx_mps": last.speeds.vx_mps if last else 0.0,
                "vy_mps": last.speeds.vy_mps if last else 0.0,
                "omega_rps": last.speeds.omega_rps if last else 0.0,
            },
            "diagnostics": diagnostics or {},
        }
        report_path.write_text(json.dumps(summary, indent=2), encoding="utf-8")
        return report_path
