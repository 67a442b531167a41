"""Real-time circle gesture recognition from a stream of 2D samples.

The recognizer is fed one timestamped position at a time (pointer, touch,
hand centroid...) and reports lifecycle transitions: ``STARTED`` as soon as
it begins watching, ``CANCELED`` + ``STARTED`` when the motion goes idle or
turns too sharply, and ``PERFORMED`` once a smooth closed circle has been
traced within the time budget.

Every turn between consecutive motion steps is accumulated into a set of
circle candidates. A new candidate is seeded whenever the turning direction
flips, so a circle can begin at any inflection. A candidate that has turned
through more than 345 degrees and whose anchor lies within
``circle_close_tolerance`` of the current position closes the circle.

Usage:
    recognizer = GestureRecognizer()
    # In the input loop:
    for transition in recognizer.on_sample((x, y), timestamp=now):
        if transition is Transition.PERFORMED:
            print("Circle!")

Time is always supplied by the caller, so the recognizer is fully
deterministic. It holds no locks; feed it from one thread.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Sequence

import numpy as np

from circle_gesture.config import (
    CIRCLE_ANGLE_THRESHOLD,
    DEBOUNCE_DISTANCE,
    CircleConfig,
    ScreenSize,
)

if TYPE_CHECKING:
    from circle_gesture.metrics import MetricsCollector

logger = logging.getLogger("circle_gesture.recognizer")


class Transition(Enum):
    STARTED = "started"
    CANCELED = "canceled"
    PERFORMED = "performed"


class CancelReason(Enum):
    IDLE_TIMEOUT = "idle_timeout"
    SHARP_TURN = "sharp_turn"


class RecognizerPhase(Enum):
    WAITING = "waiting"
    STARTED = "started"


@dataclass(frozen=True)
class Sample:
    """A 2D position and the time it was observed."""
    x: float
    y: float
    timestamp: float

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)


@dataclass
class CircleEvent:
    """Passed to transition listeners."""
    transition: Transition
    timestamp: float
    reason: Optional[CancelReason] = None  # set for CANCELED
    duration: float = 0.0  # PERFORMED: seconds since the closing candidate began
    angle_sum: float = 0.0  # PERFORMED: degrees turned by the closing candidate


@dataclass
class CircleCandidate:
    """One hypothesis of an in-progress circular arc."""
    anchor: np.ndarray  # normalized position where the arc began
    start_time: float
    angle_sum: float = 0.0

    @property
    def is_potential_circle(self) -> bool:
        return abs(self.angle_sum) > CIRCLE_ANGLE_THRESHOLD


@dataclass
class MotionState:
    """Motion tracking state between samples."""
    last_position: Optional[np.ndarray] = None  # raw; None until a baseline exists
    last_direction: np.ndarray = field(default_factory=lambda: np.zeros(2))
    last_update_time: float = 0.0
    last_angle_positive: bool = True
    is_normalized_space: bool = True

    @property
    def has_direction(self) -> bool:
        return bool(np.any(self.last_direction))

    def clear_motion(self):
        """Forget the baseline. The normalization mode is kept."""
        self.last_position = None
        self.last_direction = np.zeros(2)
        self.last_angle_positive = True


def to_normalized_space(point: np.ndarray, screen: ScreenSize) -> np.ndarray:
    """Map raw screen coordinates into [-1, 1] per axis."""
    extents = np.array([screen.width, screen.height], dtype=np.float64)
    return (point / extents) * 2.0 - 1.0


def signed_angle(a: np.ndarray, b: np.ndarray) -> float:
    """Angle in degrees from ``a`` to ``b``, counter-clockwise positive.

    Range is (-180, 180]. Zero-length vectors give 0.
    """
    cross = float(a[0] * b[1] - a[1] * b[0])
    dot = float(a[0] * b[0] + a[1] * b[1])
    if cross == 0.0 and dot == 0.0:
        return 0.0
    angle = math.degrees(math.atan2(cross, dot))
    return 180.0 if angle == -180.0 else angle


def _as_point(position: Sequence[float] | np.ndarray) -> np.ndarray:
    try:
        point = np.asarray(position).reshape(-1)
    except (TypeError, ValueError) as e:
        raise ValueError(f"position must be two numbers, got {position!r}") from e
    # Strings and objects are rejected, not coerced
    if point.shape != (2,) or point.dtype.kind not in "iuf":
        raise ValueError(f"position must be two numbers, got {position!r}")
    return point.astype(np.float64)


class GestureRecognizer:
    """Detects closed circular motion in a stream of 2D samples.

    Coordinates may be in a normalized [-1, 1] space or in raw screen
    pixels. The first sample with a coordinate beyond 1.0 switches the
    recognizer to raw mode for good (until ``reset()``), after which all
    positions are mapped through the screen extents.
    """

    def __init__(
        self,
        config: Optional[CircleConfig] = None,
        screen: Optional[ScreenSize] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self._config = config or CircleConfig()
        self._screen = screen or ScreenSize()
        self._metrics = metrics

        self._phase = RecognizerPhase.WAITING
        self._state = MotionState()
        self._candidates: deque[CircleCandidate] = deque()
        self._callbacks: list[Callable[[CircleEvent], None]] = []

    # --- configuration ---

    @property
    def config(self) -> CircleConfig:
        return self._config

    def configure(self, **changes) -> CircleConfig:
        """Replace configuration fields. Meant to be called between gestures."""
        self._config = self._config.replace(**changes)
        logger.info("Recognizer reconfigured: %s", self._config)
        return self._config

    @property
    def screen(self) -> ScreenSize:
        return self._screen

    def set_screen_size(self, width: float, height: float):
        self._screen = ScreenSize(width=width, height=height)

    def on_transition(self, callback: Callable[[CircleEvent], None]):
        """Register a callback for every emitted transition."""
        self._callbacks.append(callback)

    def remove_transition_listener(self, callback: Callable[[CircleEvent], None]):
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    # --- introspection ---

    @property
    def phase(self) -> RecognizerPhase:
        return self._phase

    @property
    def state(self) -> MotionState:
        return self._state

    @property
    def candidates(self) -> tuple[CircleCandidate, ...]:
        """Active candidates, oldest first."""
        return tuple(self._candidates)

    @property
    def is_normalized_space(self) -> bool:
        return self._state.is_normalized_space

    # --- lifecycle ---

    def reset(self):
        """Drop all candidates and motion state and go back to waiting."""
        self._candidates.clear()
        self._state = MotionState()
        self._phase = RecognizerPhase.WAITING
        logger.debug("Recognizer reset")

    def on_sample(
        self, position: Sequence[float] | np.ndarray, timestamp: float
    ) -> list[Transition]:
        """Feed one sample. Returns the transitions it caused (usually none)."""
        point = _as_point(position)
        timestamp = float(timestamp)

        if not (np.all(np.isfinite(point)) and math.isfinite(timestamp)):
            logger.debug("Ignoring non-finite sample %s at t=%s", point, timestamp)
            if self._metrics:
                self._metrics.record_sample(ignored="non_finite")
            return []

        events: list[CircleEvent] = []
        if self._phase is RecognizerPhase.WAITING:
            self._phase = RecognizerPhase.STARTED
            events.append(CircleEvent(Transition.STARTED, timestamp))

        events.extend(self._process(point, timestamp))

        if self._metrics:
            self._metrics.set_active_candidates(len(self._candidates))
        for event in events:
            if self._metrics:
                self._metrics.record_transition(event)
            for cb in self._callbacks:
                cb(event)

        return [e.transition for e in events]

    def _process(self, point: np.ndarray, now: float) -> list[CircleEvent]:
        state = self._state

        if state.last_position is None:
            state.last_position = point
            logger.debug("Baseline at %s", point)
            if self._metrics:
                self._metrics.record_sample()
            return []

        if np.any(np.abs(point) > 1.0) or np.any(np.abs(state.last_position) > 1.0):
            if state.is_normalized_space:
                logger.debug("Raw screen coordinates detected, normalizing from now on")
            state.is_normalized_space = False

        if state.is_normalized_space:
            current = point
            last = state.last_position
        else:
            current = to_normalized_space(point, self._screen)
            last = to_normalized_space(state.last_position, self._screen)

        direction = last - current
        if float(np.linalg.norm(direction)) <= DEBOUNCE_DISTANCE:
            if self._metrics:
                self._metrics.record_sample(ignored="debounce")
            return []

        if self._metrics:
            self._metrics.record_sample()

        if state.has_direction:
            angle = signed_angle(state.last_direction, direction)

            reason = None
            if now - state.last_update_time > self._config.idle_timeout:
                reason = CancelReason.IDLE_TIMEOUT
            elif abs(angle) > self._config.max_delta_angle:
                reason = CancelReason.SHARP_TURN

            if reason is not None:
                return self._restart(point, direction, now, reason)

            while self._candidates and (now - self._candidates[0].start_time) > self._config.gesture_max_duration:
                self._candidates.popleft()
                logger.debug("Evicted expired candidate (%d left)", len(self._candidates))

            angle_positive = angle >= 0
            if not self._candidates or angle_positive != state.last_angle_positive:
                self._candidates.append(CircleCandidate(anchor=last.copy(), start_time=now))
                logger.debug("Seeded candidate at %s (%d active)", last, len(self._candidates))

            closed = self._accumulate(angle, current)
            if closed is not None:
                return self._perform(closed, now)

            state.last_angle_positive = angle_positive

        state.last_position = point
        state.last_direction = direction
        state.last_update_time = now
        return []

    def _accumulate(self, angle: float, current: np.ndarray) -> Optional[CircleCandidate]:
        """Add the turn to every candidate, newest first. Returns the one that closes."""
        for candidate in reversed(self._candidates):
            candidate.angle_sum += angle
            if not candidate.is_potential_circle:
                continue
            if float(np.linalg.norm(current - candidate.anchor)) < self._config.circle_close_tolerance:
                return candidate
        return None

    def _restart(
        self, point: np.ndarray, direction: np.ndarray, now: float, reason: CancelReason
    ) -> list[CircleEvent]:
        """Cancel the current attempt and start over from this sample."""
        logger.debug("Gesture canceled (%s), restarting", reason.value)
        self._candidates.clear()
        state = self._state
        state.last_angle_positive = True
        state.last_position = point
        state.last_direction = direction
        state.last_update_time = now
        return [
            CircleEvent(Transition.CANCELED, now, reason=reason),
            CircleEvent(Transition.STARTED, now),
        ]

    def _perform(self, candidate: CircleCandidate, now: float) -> list[CircleEvent]:
        duration = now - candidate.start_time
        logger.info(
            "Circle performed (%.0f degrees in %.2fs)", candidate.angle_sum, duration
        )
        self._candidates.clear()
        self._state.clear_motion()
        self._state.last_update_time = now
        self._phase = RecognizerPhase.WAITING
        return [CircleEvent(
            Transition.PERFORMED,
            now,
            duration=duration,
            angle_sum=candidate.angle_sum,
        )]


CircleRecognizer = GestureRecognizer
