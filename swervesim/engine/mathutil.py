from __future__ import annotations

import math

Vec2 = tuple[float, float]

ZERO_EPS = 1e-9


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def norm(v: Vec2) -> float:
    return math.hypot(v[0], v[1])


def angle_of(v: Vec2) -> float:
    # Zero-length vectors have no bearing; report 0 instead of atan2 noise.
    if norm(v) < ZERO_EPS:
        return 0.0
    return math.atan2(v[1], v[0])


def from_polar(magnitude: float, angle_rad: float) -> Vec2:
    return (magnitude * math.cos(angle_rad), magnitude * math.sin(angle_rad))


def rotate(v: Vec2, angle_rad: float) -> Vec2:
    c = math.cos(angle_rad)
    s = math.sin(angle_rad)
    return (c * v[0] - s * v[1], s * v[0] + c * v[1])


def add(a: Vec2, b: Vec2) -> Vec2:
    return (a[0] + b[0], a[1] + b[1])


def sub(a: Vec2, b: Vec2) -> Vec2:
    return (a[0] - b[0], a[1] - b[1])


def scale(v: Vec2, k: float) -> Vec2:
    return (v[0] * k, v[1] * k)


def cross(a: Vec2, b: Vec2) -> float:
    return a[0] * b[1] - a[1] * b[0]


def limit_magnitude(v: Vec2, max_magnitude: float) -> Vec2:
    n = norm(v)
    if n <= max_magnitude or n < ZERO_EPS:
        return v
    return scale(v, max_magnitude / n)


def wrap_angle(a: float) -> float:
    """Wrap an angle to [-pi, pi)."""
    return (a + math.pi) % (2.0 * math.pi) - math.pi


def apply_deadband(value: float, deadband: float) -> float:
    """Odd dead-zone: zero inside +-deadband, shifted toward zero outside it."""
    if abs(value) <= deadband:
        return 0.0
    return math.copysign(abs(value) - deadband, value)
