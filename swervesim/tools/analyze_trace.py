#!/usr/bin/env python3
from __future__ import annotations

import argparse
import csv
import json
import math
from pathlib import Path


def summarize_trace(path: Path) -> dict[str, float | int] | None:
    with path.open("r", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    if not rows:
        return None

    final = rows[-1]
    return {
        "samples": len(rows),
        "final_x_m": float(final["x_m"]),
        "final_y_m": float(final["y_m"]),
        "final_theta_rad": float(final["theta_rad"]),
        "max_speed_mps": max(math.hypot(float(r["vx_mps"]), float(r["vy_mps"])) for r in rows),
        "max_omega_rps": max(abs(float(r["omega_rps"])) for r in rows),
        "min_battery_v": min(float(r["battery_v"]) for r in rows),
        "slipping_samples": sum(1 for r in rows if int(r["slipping_modules"]) > 0),
        "final_odometry_error_m": math.hypot(
            float(final["x_m"]) - float(final["odom_x_m"]),
            float(final["y_m"]) - float(final["odom_y_m"]),
        ),
    }


def main() -> None:
    p = argparse.ArgumentParser(description="Analyze simulator trace")
    p.add_argument("trace", type=str)
    p.add_argument("--report", type=str, default=None, help="Optional report.json path")
    args = p.parse_args()

    summary = summarize_trace(Path(args.trace))
    if summary is None:
        print("Empty trace")
        return

    print(f"samples: {summary['samples']}")
    print(
        f"final pose: x={summary['final_x_m']:.3f} m, y={summary['final_y_m']:.3f} m, "
        f"theta={summary['final_theta_rad']:.3f} rad"
    )
    print(f"max speed: {summary['max_speed_mps']:.3f} m/s, max turn rate: {summary['max_omega_rps']:.3f} rad/s")
    print(f"min battery: {summary['min_battery_v']:.2f} V")
    print(f"slipping samples: {summary['slipping_samples']}")
    print(f"final odometry error: {summary['final_odometry_error_m']:.4f} m")

    if args.report:
        report_path = Path(args.report)
        if report_path.exists():
            report = json.loads(report_path.read_text(encoding="utf-8"))
            diag = report.get("diagnostics", {})
            issues = diag.get("issues", [])
            print(f"diagnostic issues: {len(issues)}")
            if issues:
                print(f"issues list: {issues}")


if __name__ == "__main__":
    main()
