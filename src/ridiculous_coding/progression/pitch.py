"""Blip pitch that climbs while typing fast and relaxes when typing stops."""

from ..effects.timer import PeriodicTimer, TimerBackend

PITCH_STEP = 1.0            # Added per blip
PITCH_DECAY_PER_MS = 2.0 / 1000
PITCH_SCALE = 0.05          # Pitch multiplier per unit of increase
DECAY_TICK_MS = 50


class PitchTracker:
    """Tracks the pitch increase and decays it on a periodic tick."""

    def __init__(self, backend: TimerBackend, tick_ms: float = DECAY_TICK_MS):
        self.backend = backend
        self.increase = 0.0
        self._last_decay = backend.now()
        self._ticker = PeriodicTimer(backend, tick_ms, self.decay)

    @property
    def pitch(self) -> float:
        return 1.0 + self.increase * PITCH_SCALE

    @property
    def running(self) -> bool:
        return self._ticker.running

    def start(self) -> None:
        self._last_decay = self.backend.now()
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()

    def bump(self) -> float:
        """Register a blip. Returns the pitch to play it at."""
        self.increase += PITCH_STEP
        return self.pitch

    def decay(self) -> None:
        now = self.backend.now()
        elapsed = now - self._last_decay
        self._last_decay = now
        if self.increase > 0:
            self.increase = max(0.0, self.increase - elapsed * PITCH_DECAY_PER_MS)
