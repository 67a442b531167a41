"""Sample stream recording and replay — capture pointer traces to disk.

Record real input sessions for:
- Reproducible recognizer tests without an input device
- Tuning the four circle parameters against the same motion
- Demo traces that play back deterministically
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Optional, Sequence

import numpy as np

from circle_gesture.config import ScreenSize
from circle_gesture.recognizer import CircleEvent, Sample

if TYPE_CHECKING:
    from circle_gesture.recognizer import GestureRecognizer


class SampleRecorder:
    """Records timestamped 2D samples to a file.

    Usage:
        recorder = SampleRecorder(screen=ScreenSize(2560, 1440))
        recorder.start()
        # In your input loop:
        recorder.add_sample((x, y))
        # When done:
        recorder.save("session.json")
    """

    def __init__(self, screen: Optional[ScreenSize] = None):
        self.screen = screen or ScreenSize()
        self._samples: list[Sample] = []
        self._start_time: Optional[float] = None
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._samples = []
        self._start_time = time.monotonic()
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of samples captured."""
        self._recording = False
        return len(self._samples)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> list[Sample]:
        return list(self._samples)

    @property
    def duration(self) -> float:
        """Time between first and last sample in seconds."""
        if len(self._samples) < 2:
            return 0.0
        return self._samples[-1].timestamp - self._samples[0].timestamp

    def add_sample(self, position: Sequence[float], timestamp: Optional[float] = None):
        """Add a sample to the recording.

        Args:
            position: (x, y) in normalized or raw screen space.
            timestamp: Seconds; defaults to time since ``start()``.
        """
        if not self._recording:
            return

        if timestamp is None:
            timestamp = time.monotonic() - self._start_time

        self._samples.append(Sample(
            x=float(position[0]),
            y=float(position[1]),
            timestamp=float(timestamp),
        ))

    def extend(self, samples: list[Sample]):
        """Add pre-built samples (e.g. a synthetic trace)."""
        if not self._recording:
            return
        self._samples.extend(samples)

    def save(self, path: str | Path):
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": 1,
            "sample_count": len(self._samples),
            "duration": self.duration,
            "screen": self.screen.to_dict(),
            "samples": [asdict(s) for s in self._samples],
        }

        with open(path, "w") as f:
            json.dump(data, f)

    def save_compact(self, path: str | Path) -> Path:
        """Save in compact binary format (numpy npz) for smaller files."""
        path = Path(path).with_suffix(".npz")
        path.parent.mkdir(parents=True, exist_ok=True)

        samples = np.array(
            [[s.timestamp, s.x, s.y] for s in self._samples], dtype=np.float64
        ).reshape(-1, 3)

        np.savez_compressed(
            path,
            samples=samples,
            screen=np.array([self.screen.width, self.screen.height], dtype=np.float64),
        )
        return path


class TracePlayer:
    """Replays a recorded sample stream.

    Usage:
        player = TracePlayer.load("session.json")
        events = player.replay(GestureRecognizer(screen=player.screen))

        # Or feed at original speed:
        for sample in player.play_realtime():
            recognizer.on_sample(sample.position, sample.timestamp)
    """

    def __init__(self, samples: list[Sample], screen: Optional[ScreenSize] = None):
        self._samples = samples
        self.screen = screen or ScreenSize()

    @classmethod
    def load(cls, path: str | Path) -> TracePlayer:
        """Load recording from JSON or npz file."""
        path = Path(path)

        if path.suffix == ".npz":
            return cls._load_compact(path)

        with open(path) as f:
            data = json.load(f)

        samples = [
            Sample(x=s["x"], y=s["y"], timestamp=s["timestamp"])
            for s in data["samples"]
        ]
        screen = ScreenSize.from_dict(data["screen"]) if "screen" in data else None
        return cls(samples, screen)

    @classmethod
    def _load_compact(cls, path: Path) -> TracePlayer:
        """Load from compact npz format."""
        data = np.load(path, allow_pickle=False)
        rows = data["samples"]
        samples = [
            Sample(x=float(x), y=float(y), timestamp=float(t))
            for t, x, y in rows
        ]
        width, height = (float(v) for v in data["screen"])
        return cls(samples, ScreenSize(width=width, height=height))

    @property
    def sample_count(self) -> int:
        return len(self._samples)

    @property
    def duration(self) -> float:
        if len(self._samples) < 2:
            return 0.0
        return self._samples[-1].timestamp - self._samples[0].timestamp

    def play(self) -> Iterator[Sample]:
        """Iterate through all samples instantly (no timing)."""
        yield from self._samples

    def play_realtime(self, speed: float = 1.0) -> Iterator[Sample]:
        """Replay at original timing (or scaled by speed factor).

        Args:
            speed: Playback speed multiplier (2.0 = double speed).
        """
        if not self._samples:
            return

        start = time.monotonic()
        t0 = self._samples[0].timestamp

        for sample in self._samples:
            target_time = (sample.timestamp - t0) / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield sample

    def get_sample(self, index: int) -> Optional[Sample]:
        """Get a specific sample by index."""
        if 0 <= index < len(self._samples):
            return self._samples[index]
        return None

    def replay(self, recognizer: GestureRecognizer) -> list[CircleEvent]:
        """Feed every sample into ``recognizer``. Returns the emitted events."""
        events: list[CircleEvent] = []
        recognizer.on_transition(events.append)
        try:
            for sample in self.play():
                recognizer.on_sample(sample.position, sample.timestamp)
        finally:
            recognizer.remove_transition_listener(events.append)
        return events
