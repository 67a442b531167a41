"""Prometheus-compatible metrics for circle recognition.

Exposes recognizer activity in Prometheus text exposition format.
No external dependencies — generates the text format directly.

Tracked metrics:
- circle_gesture_samples_total (counter)
- circle_gesture_samples_ignored_total (counter, by reason)
- circle_gesture_transitions_total (counter, by transition)
- circle_gesture_cancels_total (counter, by reason)
- circle_gesture_circle_duration_seconds (histogram)
- circle_gesture_active_candidates (gauge)
- circle_gesture_active_connections (gauge)
"""

from __future__ import annotations

import threading
import time
from collections import Counter
from typing import TYPE_CHECKING, Optional

from circle_gesture.recognizer import Transition

if TYPE_CHECKING:
    from circle_gesture.recognizer import CircleEvent


class _Histogram:
    """Simple histogram with configurable buckets."""

    def __init__(self, buckets: list[float]):
        self.buckets = sorted(buckets)
        self.bucket_counts = [0] * len(self.buckets)
        self.count = 0
        self.sum = 0.0
        self._lock = threading.Lock()

    def observe(self, value: float):
        with self._lock:
            self.count += 1
            self.sum += value
            for i, b in enumerate(self.buckets):
                if value <= b:
                    self.bucket_counts[i] += 1
                    break

    def render(self, name: str, help_text: str) -> str:
        lines = [
            f"# HELP {name} {help_text}",
            f"# TYPE {name} histogram",
        ]
        with self._lock:
            cumulative = 0
            for i, b in enumerate(self.buckets):
                cumulative += self.bucket_counts[i]
                lines.append(f'{name}_bucket{{le="{b}"}} {cumulative}')
            lines.append(f'{name}_bucket{{le="+Inf"}} {self.count}')
            lines.append(f"{name}_sum {self.sum:.6f}")
            lines.append(f"{name}_count {self.count}")
        return "\n".join(lines)


class MetricsCollector:
    """Collects and exposes Prometheus metrics for circle recognizers.

    One collector can be shared by many recognizers.
    """

    def __init__(self):
        self._samples_total = 0
        self._ignored_counts: Counter = Counter()
        self._transition_counts: Counter = Counter()
        self._cancel_counts: Counter = Counter()
        self._active_candidates = 0
        self._active_connections = 0
        self._lock = threading.Lock()

        # Circle durations: buckets from 250ms up to the default max duration
        self._durations = _Histogram([0.25, 0.5, 0.75, 1.0, 1.25, 1.5, 2.0, 3.0])

        self._start_time = time.time()

    def record_sample(self, ignored: Optional[str] = None):
        """Count one incoming sample, optionally as ignored (with a reason)."""
        with self._lock:
            self._samples_total += 1
            if ignored:
                self._ignored_counts[ignored] += 1

    def record_transition(self, event: CircleEvent):
        with self._lock:
            self._transition_counts[event.transition.value] += 1
            if event.reason is not None:
                self._cancel_counts[event.reason.value] += 1
        if event.transition is Transition.PERFORMED:
            self._durations.observe(event.duration)

    def set_active_candidates(self, count: int):
        self._active_candidates = count

    def set_connections(self, count: int):
        self._active_connections = count

    def render(self) -> str:
        """Render all metrics in Prometheus text exposition format."""
        lines: list[str] = []

        uptime = time.time() - self._start_time
        lines.append("# HELP circle_gesture_uptime_seconds Time since collector creation")
        lines.append("# TYPE circle_gesture_uptime_seconds gauge")
        lines.append(f"circle_gesture_uptime_seconds {uptime:.1f}")
        lines.append("")

        with self._lock:
            samples_total = self._samples_total
            ignored = sorted(self._ignored_counts.items())
            transitions = sorted(self._transition_counts.items())
            cancels = sorted(self._cancel_counts.items())

        lines.append("# HELP circle_gesture_samples_total Total samples fed to recognizers")
        lines.append("# TYPE circle_gesture_samples_total counter")
        lines.append(f"circle_gesture_samples_total {samples_total}")
        lines.append("")

        lines.append("# HELP circle_gesture_samples_ignored_total Samples ignored by reason")
        lines.append("# TYPE circle_gesture_samples_ignored_total counter")
        for reason, count in ignored:
            lines.append(f'circle_gesture_samples_ignored_total{{reason="{reason}"}} {count}')
        lines.append("")

        lines.append("# HELP circle_gesture_transitions_total Lifecycle transitions by type")
        lines.append("# TYPE circle_gesture_transitions_total counter")
        for name, count in transitions:
            lines.append(f'circle_gesture_transitions_total{{transition="{name}"}} {count}')
        lines.append("")

        lines.append("# HELP circle_gesture_cancels_total Canceled gestures by reason")
        lines.append("# TYPE circle_gesture_cancels_total counter")
        for reason, count in cancels:
            lines.append(f'circle_gesture_cancels_total{{reason="{reason}"}} {count}')
        lines.append("")

        lines.append(self._durations.render(
            "circle_gesture_circle_duration_seconds",
            "Time taken by recognized circles in seconds",
        ))
        lines.append("")

        lines.append("# HELP circle_gesture_active_candidates Circle candidates after the last sample")
        lines.append("# TYPE circle_gesture_active_candidates gauge")
        lines.append(f"circle_gesture_active_candidates {self._active_candidates}")
        lines.append("")

        lines.append("# HELP circle_gesture_active_connections Current WebSocket connections")
        lines.append("# TYPE circle_gesture_active_connections gauge")
        lines.append(f"circle_gesture_active_connections {self._active_connections}")
        lines.append("")

        return "\n".join(lines) + "\n"

    @property
    def samples_total(self) -> int:
        with self._lock:
            return self._samples_total

    @property
    def transition_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._transition_counts)

    @property
    def cancel_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._cancel_counts)

    @property
    def ignored_counts(self) -> dict[str, int]:
        with self._lock:
            return dict(self._ignored_counts)
