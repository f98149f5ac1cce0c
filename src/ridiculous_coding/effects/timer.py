"""
Delayed actions for effect expiry, jitter ticks and decay ticks.

All times are milliseconds. Two backends are provided:

    AsyncioTimerBackend   - runs on an asyncio event loop (production)
    ManualTimerBackend    - virtual clock advanced by hand (tests, headless)

Usage:
    backend = AsyncioTimerBackend()
    timer = EffectTimer(backend, 120, lambda: renderer.clear_cue(surface, kind))
    timer.start()
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from typing import Callable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

Action = Callable[[], None]


@runtime_checkable
class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


@runtime_checkable
class TimerBackend(Protocol):
    """
    Clock plus deferred-callback source.

    Implementations:
    - AsyncioTimerBackend: asyncio loop time and call_later
    - ManualTimerBackend: virtual time for deterministic tests
    """

    def now(self) -> float:
        """Current time in milliseconds."""
        ...

    def call_later(self, delay_ms: float, callback: Action) -> Cancellable:
        """Run callback once after delay_ms."""
        ...


class AsyncioTimerBackend:
    """Timer backend on top of an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Action) -> asyncio.TimerHandle:
        return self.loop.call_later(max(0.0, delay_ms) / 1000.0, callback)


class _ManualHandle:
    __slots__ = ("due", "seq", "callback", "cancelled")

    def __init__(self, due: float, seq: int, callback: Action):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __lt__(self, other: "_ManualHandle") -> bool:
        return (self.due, self.seq) < (other.due, other.seq)


class ManualTimerBackend:
    """
    Virtual clock. Nothing runs until advance() is called.

    Callbacks fire in due-time order; ties fire in scheduling order.
    Callbacks scheduled while advancing fire in the same advance() call
    when they fall due inside the window.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: list[_ManualHandle] = []
        self._seq = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Action) -> _ManualHandle:
        handle = _ManualHandle(self._now + max(0.0, delay_ms), next(self._seq), callback)
        heapq.heappush(self._queue, handle)
        return handle

    def advance(self, ms: float) -> int:
        """Move the clock forward, firing due callbacks. Returns how many ran."""
        target = self._now + ms
        fired = 0
        while self._queue and self._queue[0].due <= target:
            handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self._now = handle.due
            handle.callback()
            fired += 1
        self._now = target
        return fired

    def advance_to(self, timestamp: float) -> int:
        """Advance to an absolute time."""
        return self.advance(max(0.0, timestamp - self._now))

    @property
    def pending(self) -> int:
        """Number of callbacks still waiting."""
        return sum(1 for h in self._queue if not h.cancelled)


class EffectTimer:
    """
    Cancellable one-shot delayed action.

    The action runs at most once. Cancelling after it ran is a no-op.
    """

    def __init__(self, backend: TimerBackend, delay_ms: float, action: Action):
        self.backend = backend
        self.delay_ms = delay_ms
        self._action = action
        self._handle: Cancellable | None = None
        self._fired = False

    def start(self) -> "EffectTimer":
        """Arm the timer. Starting twice keeps the first arming."""
        if self._handle is None and not self._fired:
            self._handle = self.backend.call_later(self.delay_ms, self._run)
        return self

    def cancel(self) -> bool:
        """Disarm. Returns True if the action was still pending."""
        if self._handle is None or self._fired:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    @property
    def pending(self) -> bool:
        return self._handle is not None and not self._fired

    @property
    def fired(self) -> bool:
        return self._fired

    def _run(self) -> None:
        if self._fired:
            return
        self._fired = True
        self._handle = None
        self._action()


class PeriodicTimer:
    """Repeating tick built from EffectTimer. Stops when stop() is called."""

    def __init__(self, backend: TimerBackend, interval_ms: float, action: Action):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        self.backend = backend
        self.interval_ms = interval_ms
        self._action = action
        self._timer: EffectTimer | None = None

    @property
    def running(self) -> bool:
        return self._timer is not None

    def start(self) -> "PeriodicTimer":
        if self._timer is None:
            self._arm()
        return self

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm(self) -> None:
        self._timer = EffectTimer(self.backend, self.interval_ms, self._tick).start()

    def _tick(self) -> None:
        try:
            self._action()
        except Exception as e:
            # Keep ticking; one bad tick shouldn't kill the loop
            logger.error(f"Periodic tick failed: {e}")
        if self._timer is not None:
            self._arm()
