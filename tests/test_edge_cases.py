"""Edge case and stress tests for circle recognition."""

import math

import numpy as np
import pytest

from circle_gesture.config import CircleConfig
from circle_gesture.metrics import MetricsCollector
from circle_gesture.recognizer import GestureRecognizer, RecognizerPhase, Transition
from circle_gesture.traces import add_jitter, circle_trace, polygon_trace


class TestMalformedSamples:
    """Non-finite input is ignored without touching state."""

    @pytest.mark.parametrize("position", [
        (math.nan, 0.0), (0.0, math.inf), (-math.inf, math.nan),
    ])
    def test_non_finite_position_ignored(self, position):
        r = GestureRecognizer()
        assert r.on_sample(position, 0.0) == []
        assert r.phase is RecognizerPhase.WAITING

    def test_non_finite_mid_gesture(self):
        metrics = MetricsCollector()
        r = GestureRecognizer(metrics=metrics)
        r.on_sample((0.0, 0.0), 0.0)
        r.on_sample((0.1, 0.0), 0.05)
        assert r.on_sample((math.nan, 0.2), 0.10) == []
        np.testing.assert_allclose(r.state.last_position, [0.1, 0.0])
        assert r.is_normalized_space is True
        assert metrics.ignored_counts == {"non_finite": 1}

    def test_non_finite_timestamp_ignored(self):
        r = GestureRecognizer()
        assert r.on_sample((0.1, 0.1), math.nan) == []
        assert r.phase is RecognizerPhase.WAITING

    def test_numpy_input(self):
        r = GestureRecognizer()
        assert r.on_sample(np.array([0.1, 0.1], dtype=np.float32), 0.0) == [Transition.STARTED]

    @pytest.mark.parametrize("position", [
        (1.0,), (1.0, 2.0, 3.0), ("a", "b"), ("1", "2"), (1.0, "2"), None,
    ])
    def test_wrong_shape_raises(self, position):
        r = GestureRecognizer()
        with pytest.raises(ValueError):
            r.on_sample(position, 0.0)


class TestTiming:
    def test_constant_timestamp(self):
        r = GestureRecognizer()
        trace = circle_trace()
        results = [r.on_sample(s.position, 1.0) for s in trace]
        assert sum(res.count(Transition.PERFORMED) for res in results) == 1

    def test_time_going_backwards(self):
        r = GestureRecognizer()
        trace = circle_trace()
        for i, s in enumerate(trace):
            r.on_sample(s.position, 10.0 - i * 0.01)
        assert r.phase in (RecognizerPhase.WAITING, RecognizerPhase.STARTED)


class TestShapes:
    def test_triangle_cancels_at_corners(self):
        r = GestureRecognizer()
        results = [r.on_sample(s.position, s.timestamp) for s in polygon_trace(sides=3)]
        flat = [t for res in results for t in res]
        assert Transition.PERFORMED not in flat
        assert flat.count(Transition.CANCELED) >= 2

    def test_repeated_identical_samples(self):
        r = GestureRecognizer()
        for i in range(100):
            r.on_sample((0.3, 0.3), i * 0.01)
        assert r.state.last_position is not None
        assert not r.state.has_direction
        assert r.candidates == ()

    def test_jittered_circle_still_performs(self):
        r = GestureRecognizer()
        trace = add_jitter(circle_trace(n_samples=44, turns=1.1, duration=0.9), amount=0.003, seed=1)
        results = [r.on_sample(s.position, s.timestamp) for s in trace]
        assert sum(res.count(Transition.PERFORMED) for res in results) == 1


class TestHighVolume:
    def test_random_walk_keeps_window_bounded(self):
        config = CircleConfig()
        r = GestureRecognizer(config)
        rng = np.random.default_rng(42)
        pos = np.zeros(2)
        for i in range(10_000):
            pos = np.clip(pos + rng.normal(0, 0.05, size=2), -1, 1)
            now = i * 0.01
            r.on_sample(pos, now)
            for c in r.candidates:
                assert now - c.start_time <= config.gesture_max_duration

    def test_many_circles(self):
        r = GestureRecognizer()
        t0 = 0.0
        performed = 0
        for _ in range(50):
            trace = circle_trace(t0=t0)
            for s in trace:
                performed += r.on_sample(s.position, s.timestamp).count(Transition.PERFORMED)
            t0 = trace[-1].timestamp + 0.05
        assert performed == 50
