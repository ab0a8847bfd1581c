from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .types import ChassisSpeeds, Pose2d


@dataclass
class _RestWindow:
    start_s: float
    anchor: Pose2d
    max_drift_m: float = 0.0


class DiagnosticsTracker:
    def __init__(
        self,
        dt_s: float,
        slip_window_s: float = 0.10,
        rest_speed_threshold_mps: float = 0.02,
        rest_omega_threshold_rps: float = 0.02,
        rest_drift_issue_m: float = 0.05,
        odometry_error_issue_m: float = 0.25,
    ):
        self.dt_s = dt_s
        self.slip_window_s = slip_window_s
        self.rest_speed_threshold_mps = rest_speed_threshold_mps
        self.rest_omega_threshold_rps = rest_omega_threshold_rps
        self.rest_drift_issue_m = rest_drift_issue_m
        self.odometry_error_issue_m = odometry_error_issue_m

        self._slip_steps: list[int] = []
        self._slip_open: list[bool] = []
        self._slip_events: list[dict[str, float | int]] = []

        self._rest: _RestWindow | None = None
        self._rest_windows: list[dict[str, float]] = []
        self._max_odometry_error_m = 0.0

    def process(
        self,
        time_s: float,
        pose: Pose2d,
        odometry_pose: Pose2d,
        desired_speeds: ChassisSpeeds,
        slipping: Sequence[bool],
    ) -> None:
        self._track_slip(time_s, slipping)
        self._track_rest(time_s, pose, desired_speeds)

        err = math.hypot(pose.x_m - odometry_pose.x_m, pose.y_m - odometry_pose.y_m)
        self._max_odometry_error_m = max(self._max_odometry_error_m, err)

    def finalize(self) -> dict[str, object]:
        self._close_rest()
        max_rest_drift = max((w["max_drift_m"] for w in self._rest_windows), default=0.0)

        issues: list[str] = []
        if self._slip_events:
            issues.append("sustained_wheel_slip")
        if max_rest_drift > self.rest_drift_issue_m:
            issues.append("rest_drift_high")
        if self._max_odometry_error_m > self.odometry_error_issue_m:
            issues.append("odometry_error_high")

        return {
            "slip_check": {"event_count": len(self._slip_events), "events": self._slip_events},
            "rest_check": {"max_rest_drift_m": round(max_rest_drift, 5), "windows": self._rest_windows},
            "odometry_check": {"max_error_m": round(self._max_odometry_error_m, 5)},
            "issues": issues,
            "issue_count": len(issues),
        }

    def _track_slip(self, time_s: float, slipping: Sequence[bool]) -> None:
        if not self._slip_steps:
            self._slip_steps = [0] * len(slipping)
            self._slip_open = [False] * len(slipping)

        for i, slip in enumerate(slipping):
            if not slip:
                self._slip_steps[i] = 0
                self._slip_open[i] = False
                continue
            self._slip_steps[i] += 1
            if self._slip_steps[i] * self.dt_s >= self.slip_window_s and not self._slip_open[i]:
                self._slip_open[i] = True
                self._slip_events.append({"module": i, "time_s": round(time_s, 4)})

    def _track_rest(self, time_s: float, pose: Pose2d, desired: ChassisSpeeds) -> None:
        at_rest = (
            math.hypot(desired.vx_mps, desired.vy_mps) < self.rest_speed_threshold_mps
            and abs(desired.omega_rps) < self.rest_omega_threshold_rps
        )
        if not at_rest:
            self._close_rest()
            return
        if self._rest is None:
            self._rest = _RestWindow(start_s=time_s, anchor=pose)
            return
        drift = math.hypot(pose.x_m - self._rest.anchor.x_m, pose.y_m - self._rest.anchor.y_m)
        self._rest.max_drift_m = max(self._rest.max_drift_m, drift)

    def _close_rest(self) -> None:
        if self._rest is None:
            return
        self._rest_windows.append(
            {"start_s": round(self._rest.start_s, 4), "max_drift_m": round(self._rest.max_drift_m, 5)}
        )
        self._rest = None
