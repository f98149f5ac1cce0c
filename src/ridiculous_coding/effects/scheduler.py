"""
Effect scheduling for keystroke cues.

Decides whether a cue may fire on a surface (one open editor), renders it at
the caret and clears it again after the kind's visible duration.

Per-surface state lives in a weak side table, so editors that close without
telling us don't leak. Expiry timers are never cancelled on close; they hold
a weak reference and fall through to a no-op once the surface is gone.
"""

from __future__ import annotations

import logging
import random
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol, runtime_checkable

from ..errors import SurfaceClosedError
from .timer import EffectTimer, TimerBackend

logger = logging.getLogger(__name__)


DEFAULT_MAX_CONCURRENT = 5
JITTER_TICK_MS = 16


class EffectKind(str, Enum):
    BLIP = "blip"
    BOOM = "boom"
    NEWLINE = "newline"


class JitterSide(str, Enum):
    LEFT = "left"
    RIGHT = "right"


@dataclass(frozen=True)
class KindTiming:
    """Fixed timings for one effect kind, in milliseconds."""
    min_interval: float
    visible_duration: float
    shake_duration: float


KIND_TIMINGS: dict[EffectKind, KindTiming] = {
    EffectKind.BLIP: KindTiming(min_interval=20, visible_duration=120, shake_duration=50),
    EffectKind.BOOM: KindTiming(min_interval=100, visible_duration=250, shake_duration=200),
    EffectKind.NEWLINE: KindTiming(min_interval=0, visible_duration=120, shake_duration=50),
}


def min_interval(kind: EffectKind) -> float:
    return KIND_TIMINGS[kind].min_interval


def visible_duration(kind: EffectKind) -> float:
    return KIND_TIMINGS[kind].visible_duration


def shake_duration(kind: EffectKind) -> float:
    return KIND_TIMINGS[kind].shake_duration


@dataclass(frozen=True)
class Position:
    """Caret position on a surface (zero-based)."""
    line: int
    character: int = 0


@runtime_checkable
class Surface(Protocol):
    """An open editor. Must be weak-referenceable; compared by identity."""

    @property
    def caret(self) -> Position:
        ...


@runtime_checkable
class CueRenderer(Protocol):
    """
    Presentation collaborator that paints cues.

    Any method may raise SurfaceClosedError when the surface is gone.
    """

    def render_cue(
        self,
        surface: Any,
        kind: EffectKind,
        position: Position,
        label: str | None = None,
        color: str | None = None,
    ) -> None:
        ...

    def clear_cue(self, surface: Any, kind: EffectKind) -> None:
        ...

    def render_jitter(self, surface: Any, side: JitterSide, position: Position) -> None:
        ...

    def clear_jitter(self, surface: Any, side: JitterSide) -> None:
        ...


@dataclass
class SurfaceEffectState:
    """Rate-limit and concurrency bookkeeping for one surface."""

    last_fire_at: dict[EffectKind, float] = field(default_factory=dict)
    active_count: dict[EffectKind, int] = field(
        default_factory=lambda: {kind: 0 for kind in EffectKind}
    )
    jitters: list[EffectTimer] = field(default_factory=list)

    def reset_counts(self) -> None:
        for kind in EffectKind:
            self.active_count[kind] = 0


class EffectScheduler:
    """
    Fires rate-limited, capped, self-expiring cues on surfaces.

    request_effect() returns True only when the cue was actually fired;
    callers use a False result to skip follow-up effects such as sounds.
    """

    def __init__(
        self,
        renderer: CueRenderer,
        backend: TimerBackend,
        max_concurrent: int = DEFAULT_MAX_CONCURRENT,
        rng: random.Random | None = None,
    ):
        self.renderer = renderer
        self.backend = backend
        self.max_concurrent = max(1, max_concurrent)
        self._rng = rng or random.Random()
        self._states: "weakref.WeakKeyDictionary[Any, SurfaceEffectState]" = weakref.WeakKeyDictionary()

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    def state_for(self, surface: Any) -> SurfaceEffectState:
        """Get (or lazily create) the state for a surface."""
        state = self._states.get(surface)
        if state is None:
            state = SurfaceEffectState()
            self._states[surface] = state
        return state

    def has_state(self, surface: Any) -> bool:
        return surface in self._states

    def active_count(self, surface: Any, kind: EffectKind) -> int:
        state = self._states.get(surface)
        if state is None:
            return 0
        return state.active_count[kind]

    @property
    def tracked_surfaces(self) -> int:
        return len(self._states)

    # -------------------------------------------------------------------------
    # Firing
    # -------------------------------------------------------------------------

    def request_effect(
        self,
        surface: Any,
        kind: EffectKind,
        label: str | None = None,
        shake: bool = False,
    ) -> bool:
        """
        Fire a cue if the rate limit and concurrency cap allow it.

        A request over the cap still shakes when asked to; a rate-limited
        request does nothing at all.

        Args:
            surface: Target surface
            kind: Effect kind
            label: Optional text shown next to the cue
            shake: Also run the jitter animation

        Returns:
            True if the cue was fired
        """
        try:
            position = surface.caret
        except SurfaceClosedError:
            logger.debug(f"Surface closed, dropped {kind.value} request")
            return False

        existing = self._states.get(surface)
        if existing is not None and self._rate_limited(existing, kind):
            return False

        state = self.state_for(surface)
        if state.active_count[kind] >= self.max_concurrent:
            if shake:
                self._start_jitter(surface, state, shake_duration(kind), position)
            return False

        state.last_fire_at[kind] = self.backend.now()
        state.active_count[kind] += 1

        color = self._random_color() if label else None
        self._safely(self.renderer.render_cue, surface, kind, position, label, color)

        surface_ref = weakref.ref(surface)
        EffectTimer(
            self.backend,
            visible_duration(kind),
            lambda: self._expire(surface_ref, kind),
        ).start()

        if shake:
            self._start_jitter(surface, state, shake_duration(kind), position)

        return True

    def clear_all(self, surface: Any) -> None:
        """
        Remove every rendered cue and jitter on a surface.

        Counts drop to zero; last fire times are kept so rate limits still
        apply afterwards.
        """
        for kind in EffectKind:
            self._safely(self.renderer.clear_cue, surface, kind)
        for side in JitterSide:
            self._safely(self.renderer.clear_jitter, surface, side)

        state = self._states.get(surface)
        if state is None:
            return
        state.reset_counts()
        for jitter in state.jitters:
            jitter.cancel()
        state.jitters.clear()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _expire(self, surface_ref: "weakref.ref[Any]", kind: EffectKind) -> None:
        surface = surface_ref()
        if surface is None:
            return
        self._safely(self.renderer.clear_cue, surface, kind)
        state = self._states.get(surface)
        if state is not None:
            state.active_count[kind] = max(0, state.active_count[kind] - 1)

    def _start_jitter(
        self,
        surface: Any,
        state: SurfaceEffectState,
        duration_ms: float,
        position: Position,
    ) -> None:
        surface_ref = weakref.ref(surface)
        started = self.backend.now()
        current: list[EffectTimer] = []

        def tick() -> None:
            if current:
                _discard(state.jitters, current.pop())
            target = surface_ref()
            if target is None:
                return
            if self.backend.now() - started > duration_ms:
                for side in JitterSide:
                    self._safely(self.renderer.clear_jitter, target, side)
                return
            side = self._rng.choice((JitterSide.LEFT, JitterSide.RIGHT))
            other = JitterSide.RIGHT if side is JitterSide.LEFT else JitterSide.LEFT
            self._safely(self.renderer.clear_jitter, target, other)
            self._safely(self.renderer.render_jitter, target, side, position)
            timer = EffectTimer(self.backend, JITTER_TICK_MS, tick).start()
            current.append(timer)
            state.jitters.append(timer)

        tick()

    def _rate_limited(self, state: SurfaceEffectState, kind: EffectKind) -> bool:
        last = state.last_fire_at.get(kind)
        return last is not None and self.backend.now() - last < min_interval(kind)

    def _random_color(self) -> str:
        return f"hsl({self._rng.randrange(360)}, 90%, 65%)"

    def _safely(self, call: Callable[..., None], surface: Any, *args: Any) -> bool:
        try:
            call(surface, *args)
            return True
        except SurfaceClosedError:
            logger.debug(f"Surface closed, dropped {call.__name__}")
            return False


def _discard(items: list, item: object) -> None:
    try:
        items.remove(item)
    except ValueError:
        pass
