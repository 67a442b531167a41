"""Recognizer configuration and screen extents.

The four tuning parameters of the circle detector live in an immutable
``CircleConfig``. Screen extents are host-provided and only used when the
incoming coordinates turn out to be raw pixels.

Configuration can be stored as YAML:

    circle:
      idle_timeout: 0.5
      gesture_max_duration: 2.0
      circle_close_tolerance: 0.075
      max_delta_angle: 89.0
    screen:
      width: 1920
      height: 1080
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger("circle_gesture.config")

# Minimum distance (normalized units) between two samples to count as motion.
DEBOUNCE_DISTANCE = 0.02

# A full turn minus the unclosed final edge.
CIRCLE_ANGLE_THRESHOLD = 345.0


def _require_positive(name: str, value: Any):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a finite positive number, got {value!r}")


def _known_keys(cls, data: dict, section: str) -> dict:
    names = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - names)
    if unknown:
        logger.warning("Ignoring unknown %s settings: %s", section, ", ".join(unknown))
    return {k: v for k, v in data.items() if k in names}


@dataclass(frozen=True)
class CircleConfig:
    """Tuning parameters for circle recognition."""
    idle_timeout: float = 0.5  # seconds without motion before a restart
    gesture_max_duration: float = 2.0  # seconds a candidate may live
    circle_close_tolerance: float = 0.075  # normalized distance to the anchor
    max_delta_angle: float = 89.0  # degrees between consecutive motions

    def __post_init__(self):
        for f in fields(self):
            _require_positive(f.name, getattr(self, f.name))

    def replace(self, **changes) -> CircleConfig:
        """Return a validated copy with the given fields changed."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> CircleConfig:
        return cls(**_known_keys(cls, data, "circle"))

    @classmethod
    def from_yaml(cls, path: str | Path) -> CircleConfig:
        """Load only the ``circle`` section of a settings file."""
        config, _screen = load_settings(path)
        return config

    def to_yaml(self, path: str | Path):
        save_settings(path, self, None)


@dataclass(frozen=True)
class ScreenSize:
    """Screen or viewport extents in pixels."""
    width: float = 1920
    height: float = 1080

    def __post_init__(self):
        _require_positive("width", self.width)
        _require_positive("height", self.height)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> ScreenSize:
        return cls(**_known_keys(cls, data, "screen"))


def load_settings(path: str | Path) -> tuple[CircleConfig, ScreenSize]:
    """Load recognizer settings from a YAML file.

    Both sections are optional; missing values fall back to defaults.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")

    unknown = sorted(set(data) - {"circle", "screen"})
    if unknown:
        logger.warning("Ignoring unknown settings sections in %s: %s", path, ", ".join(unknown))

    config = CircleConfig.from_dict(data.get("circle") or {})
    screen = ScreenSize.from_dict(data.get("screen") or {})
    logger.debug("Loaded settings from %s: %s, %s", path, config, screen)
    return config, screen


def save_settings(path: str | Path, config: CircleConfig, screen: ScreenSize | None = None):
    """Write settings to a YAML file, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    data: dict[str, Any] = {"circle": config.to_dict()}
    if screen is not None:
        data["screen"] = screen.to_dict()

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)
