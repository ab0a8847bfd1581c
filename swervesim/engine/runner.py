from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path

from .arena import SimulatedArena
from .auton import ScriptedAuton
from .config import ConfigManager, DrivetrainParams, NoiseParams, RunParams
from .diagnostics import DiagnosticsTracker
from .odometry import SwerveOdometry
from .reporter import TraceWriter
from .types import SimStepOutput

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[2]


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


def run_simulation(
    drivetrain_params: DrivetrainParams,
    noise: NoiseParams,
    run: RunParams,
    auton: ScriptedAuton,
    out_dir: Path,
) -> tuple[Path, Path]:
    """Drive one scripted scenario; returns (trace path, report path)."""
    arena = SimulatedArena(run.timings, drivetrain_params.battery)
    drivetrain = arena.create_drivetrain(drivetrain_params, noise)
    odometry = SwerveOdometry(
        drivetrain.kinematics,
        drivetrain.gyro.yaw_rad,
        [m.position() for m in drivetrain.modules],
        drivetrain.pose(),
    )
    diagnostics = DiagnosticsTracker(run.timings.period_s)
    writer = TraceWriter(out_dir)

    period = run.timings.period_s
    periods = int(round(run.duration_s / period))
    logger.info("running %d periods of %.3fs (%s)", periods, period, out_dir)
    label = ""

    try:
        for _ in range(periods):
            wall_loop_start = time.perf_counter()

            commands = auton.command(period)
            if auton.current_label() != label:
                label = auton.current_label()
                logger.info("segment %s at %.2fs", label, arena.time_s)
            if commands is None:
                for module in drivetrain.modules:
                    module.request_drive_voltage(0.0)
            else:
                for module, (drive_v, steer_rad) in zip(drivetrain.modules, commands):
                    module.request_drive_voltage(drive_v)
                    module.request_steer_angle(steer_rad)

            arena.simulation_periodic()
            odom_pose = odometry.update_from_caches(drivetrain.modules, drivetrain.gyro)

            pose = drivetrain.pose()
            desired = drivetrain.desired_speeds()
            slipping = [m.slipping for m in drivetrain.modules]
            diagnostics.process(arena.time_s, pose, odom_pose, desired, slipping)
            writer.write(
                SimStepOutput(
                    time_s=arena.time_s,
                    pose=pose,
                    speeds=drivetrain.actual_speeds_field_relative(),
                    desired_speeds=desired,
                    module_speeds=drivetrain.module_speeds(),
                    odometry_pose=odom_pose,
                    gyro_yaw_rad=drivetrain.gyro.yaw_rad,
                    battery_v=arena.battery.supply_voltage(),
                    slipping_modules=sum(slipping),
                    module_states=drivetrain.current_module_states(),
                )
            )

            if run.realtime:
                sleep_s = period - (time.perf_counter() - wall_loop_start)
                if sleep_s > 0:
                    time.sleep(sleep_s)
    finally:
        writer.close()

    report_path = writer.write_report(out_dir, arena.time_s, diagnostics.finalize())
    return writer.trace_path, report_path


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Headless swerve drivetrain simulator")
    p.add_argument("--config-dir", default="config", type=str)
    p.add_argument("--scenario", default="scenarios/straight_then_spin.yaml", type=str)
    p.add_argument("--out", default="output/run", type=str)
    p.add_argument("--duration", default=None, type=float)
    p.add_argument("--realtime", action="store_true")
    p.add_argument("--log-level", default="INFO", type=str)
    return p


def main() -> None:
    args = _build_arg_parser().parse_args()
    setup_logging(args.log_level)

    cfg = ConfigManager((ROOT / args.config_dir).resolve())
    drivetrain_params, noise, run = cfg.load_all()
    auton = ScriptedAuton.from_yaml((ROOT / args.scenario).resolve(), drivetrain_params.module_positions_m)
    if args.duration is not None:
        run.duration_s = args.duration
    elif run.duration_s <= 0:
        run.duration_s = auton.total_duration_s()
    if args.realtime:
        run.realtime = True

    sim_start = time.perf_counter()
    trace_path, report_path = run_simulation(drivetrain_params, noise, run, auton, (ROOT / args.out).resolve())
    sim_elapsed = time.perf_counter() - sim_start

    print(f"Simulation complete in {sim_elapsed:.3f}s (sim time {run.duration_s:.3f}s)")
    print(f"Trace: {trace_path}")
    print(f"Report: {report_path}")


if __name__ == "__main__":
    main()
