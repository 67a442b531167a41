"""Synthetic sample streams for tests, demos and benchmarks.

All generators return ``list[Sample]`` in normalized [-1, 1] space with
evenly spaced timestamps. Use ``to_pixels`` to turn a trace into raw
screen coordinates.
"""

from __future__ import annotations

import math
from typing import Callable, Optional

import numpy as np

from circle_gesture.config import ScreenSize
from circle_gesture.recognizer import Sample


def _to_samples(points: np.ndarray, duration: float, t0: float) -> list[Sample]:
    n = len(points)
    if n == 0:
        return []
    step = duration / (n - 1) if n > 1 else 0.0
    return [
        Sample(x=float(p[0]), y=float(p[1]), timestamp=t0 + i * step)
        for i, p in enumerate(points)
    ]


def circle_trace(
    n_samples: int = 40,
    radius: float = 0.3,
    center: tuple[float, float] = (0.0, 0.0),
    turns: float = 1.0,
    start_angle: float = 0.0,
    clockwise: bool = False,
    duration: float = 0.8,
    t0: float = 0.0,
) -> list[Sample]:
    """Points on a circle, ``n_samples`` per ``turns`` revolutions.

    The angular step is ``360 * turns / (n_samples - 1)`` degrees when the
    trace is meant to end where it began; pass ``turns`` > 1 to overshoot.
    """
    sign = -1.0 if clockwise else 1.0
    angles = math.radians(start_angle) + sign * np.linspace(0, 2 * math.pi * turns, n_samples)
    pts = np.column_stack([
        center[0] + radius * np.cos(angles),
        center[1] + radius * np.sin(angles),
    ])
    return _to_samples(pts, duration, t0)


def spiral_trace(
    n_samples: int = 73,
    start_radius: float = 0.2,
    end_radius: float = 0.6,
    center: tuple[float, float] = (0.0, 0.0),
    turns: float = 2.0,
    clockwise: bool = False,
    duration: float = 1.44,
    t0: float = 0.0,
) -> list[Sample]:
    """An Archimedean spiral: keeps turning but never closes."""
    sign = -1.0 if clockwise else 1.0
    angles = sign * np.linspace(0, 2 * math.pi * turns, n_samples)
    radii = np.linspace(start_radius, end_radius, n_samples)
    pts = np.column_stack([
        center[0] + radii * np.cos(angles),
        center[1] + radii * np.sin(angles),
    ])
    return _to_samples(pts, duration, t0)


def polygon_trace(
    sides: int = 4,
    points_per_side: int = 5,
    radius: float = 0.4,
    center: tuple[float, float] = (0.0, 0.0),
    duration: float = 1.0,
    t0: float = 0.0,
) -> list[Sample]:
    """A closed regular polygon with straight edges and sharp corners."""
    corners = [
        (center[0] + radius * math.cos(2 * math.pi * k / sides),
         center[1] + radius * math.sin(2 * math.pi * k / sides))
        for k in range(sides + 1)
    ]
    pts = []
    for (x0, y0), (x1, y1) in zip(corners, corners[1:]):
        for i in range(points_per_side):
            t = i / points_per_side
            pts.append([x0 + (x1 - x0) * t, y0 + (y1 - y0) * t])
    pts.append(list(corners[-1]))
    return _to_samples(np.array(pts, dtype=np.float64), duration, t0)


def line_trace(
    start: tuple[float, float] = (-0.5, 0.0),
    end: tuple[float, float] = (0.5, 0.0),
    n_samples: int = 20,
    duration: float = 0.4,
    t0: float = 0.0,
) -> list[Sample]:
    """Straight motion from ``start`` to ``end``."""
    pts = np.linspace(start, end, n_samples)
    return _to_samples(pts, duration, t0)


def add_jitter(samples: list[Sample], amount: float = 0.005, seed: Optional[int] = 0) -> list[Sample]:
    """Add uniform positional noise in [-amount, amount] per axis."""
    rng = np.random.default_rng(seed)
    noise = rng.uniform(-amount, amount, size=(len(samples), 2))
    return [
        Sample(x=s.x + float(dx), y=s.y + float(dy), timestamp=s.timestamp)
        for s, (dx, dy) in zip(samples, noise)
    ]


def to_pixels(samples: list[Sample], screen: ScreenSize) -> list[Sample]:
    """Map normalized samples onto raw screen pixels."""
    return [
        Sample(
            x=(s.x + 1.0) / 2.0 * screen.width,
            y=(s.y + 1.0) / 2.0 * screen.height,
            timestamp=s.timestamp,
        )
        for s in samples
    ]


TRACE_SHAPES: dict[str, Callable[..., list[Sample]]] = {
    "circle": circle_trace,
    "spiral": spiral_trace,
    "square": polygon_trace,
    "line": line_trace,
}
