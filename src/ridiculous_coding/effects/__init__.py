"""Keystroke cue scheduling."""

from .timer import (
    AsyncioTimerBackend,
    EffectTimer,
    ManualTimerBackend,
    PeriodicTimer,
    TimerBackend,
)
from .scheduler import (
    DEFAULT_MAX_CONCURRENT,
    KIND_TIMINGS,
    CueRenderer,
    EffectKind,
    EffectScheduler,
    JitterSide,
    Position,
    Surface,
    SurfaceEffectState,
    min_interval,
    shake_duration,
    visible_duration,
)
from .recording import RecordingRenderer, RenderCall

__all__ = [
    # Timers
    "AsyncioTimerBackend",
    "EffectTimer",
    "ManualTimerBackend",
    "PeriodicTimer",
    "TimerBackend",
    # Scheduler
    "DEFAULT_MAX_CONCURRENT",
    "KIND_TIMINGS",
    "CueRenderer",
    "EffectKind",
    "EffectScheduler",
    "JitterSide",
    "Position",
    "Surface",
    "SurfaceEffectState",
    "min_interval",
    "shake_duration",
    "visible_duration",
    # Recording
    "RecordingRenderer",
    "RenderCall",
]
