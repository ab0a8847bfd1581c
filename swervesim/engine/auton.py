from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import yaml

from .config import ConfigError

TANGENT = "tangent"


@dataclass
class Segment:
    duration_s: float
    drive_v: list[float]
    steer_rad: list[float]
    label: str = ""


def _per_module(value: Any, count: int, name: str) -> list[float]:
    if isinstance(value, (int, float)):
        return [float(value)] * count
    if isinstance(value, list) and len(value) == count:
        return [float(v) for v in value]
    raise ConfigError(f"{name} must be a number or a list of {count} numbers")


class ScriptedAuton:
    """Timed open-loop segments of per-module drive voltage and steer angle."""

    def __init__(self, segments: list[Segment]):
        self.segments = segments
        self._seg_i = 0
        self._seg_t = 0.0
        self._last_label = "IDLE"

    @classmethod
    def from_yaml(cls, path: Path, module_positions_m: Sequence[tuple[float, float]]) -> ScriptedAuton:
        with path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
        if not isinstance(raw, dict) or "segments" not in raw:
            raise ConfigError(f"Invalid scenario file: {path}")
        return cls.from_mapping(raw, module_positions_m)

    @classmethod
    def from_mapping(cls, raw: dict[str, Any], module_positions_m: Sequence[tuple[float, float]]) -> ScriptedAuton:
        count = len(module_positions_m)
        # Steering each wheel perpendicular to its lever arm spins the chassis in place.
        tangent = [math.atan2(y, x) + math.pi / 2.0 for x, y in module_positions_m]

        segs: list[Segment] = []
        for item in raw["segments"]:
            steer = item.get("steer_deg", 0.0)
            if steer == TANGENT:
                steer_rad = list(tangent)
            else:
                steer_rad = [math.radians(v) for v in _per_module(steer, count, "steer_deg")]
            segs.append(
                Segment(
                    duration_s=float(item["duration_s"]),
                    drive_v=_per_module(item.get("drive_v", 0.0), count, "drive_v"),
                    steer_rad=steer_rad,
                    label=str(item.get("label", "")),
                )
            )
        return cls(segs)

    def total_duration_s(self) -> float:
        return sum(seg.duration_s for seg in self.segments)

    def command(self, dt_s: float) -> list[tuple[float, float]] | None:
        """(drive volts, steer angle) per module, or None once the script has finished."""
        if self._seg_i >= len(self.segments):
            self._last_label = "DONE"
            return None

        seg = self.segments[self._seg_i]
        self._last_label = seg.label or f"SEGMENT_{self._seg_i + 1}"
        self._seg_t += dt_s
        if self._seg_t >= seg.duration_s:
            self._seg_i += 1
            self._seg_t = 0.0
        return list(zip(seg.drive_v, seg.steer_rad))

    def segment_count(self) -> int:
        return len(self.segments)

    def current_label(self) -> str:
        return self._last_label
