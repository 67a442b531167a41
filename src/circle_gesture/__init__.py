"""circle-gesture - Real-time circle gesture recognition from 2D input streams."""

__version__ = "0.1.0"

from circle_gesture.config import CircleConfig, ScreenSize, load_settings, save_settings
from circle_gesture.recognizer import (
    CancelReason,
    CircleCandidate,
    CircleEvent,
    CircleRecognizer,
    GestureRecognizer,
    MotionState,
    RecognizerPhase,
    Sample,
    Transition,
)
from circle_gesture.recorder import SampleRecorder, TracePlayer
from circle_gesture.metrics import MetricsCollector
