"""
XP accumulation and leveling.

Only total XP and the curve's base XP are stored; level and level bounds
are recomputed from those two numbers on every read. Changing base XP can
therefore move the current level up or down at once.

XP gains are saved in batches: with a timer backend, the first gain after a
save arms a single delayed save and later gains ride along with it. Reset and
base XP changes save at once. Call flush() before shutting down.
"""

import logging

from ..effects.timer import EffectTimer, TimerBackend
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.schema import Progress, ProgressionState, coerce_base_xp
from ..state.store import ProgressionStore
from .curve import level_bounds, level_for_xp

logger = logging.getLogger(__name__)

SAVE_DELAY_MS = 2000


class ProgressionEngine:
    """
    Owns the process-wide XP state.

    Mutations save through the store (when one is given) and announce
    themselves on the event bus.
    """

    def __init__(
        self,
        state: ProgressionState | None = None,
        store: ProgressionStore | None = None,
        bus: EventBus | None = None,
        backend: TimerBackend | None = None,
        save_delay_ms: float = SAVE_DELAY_MS,
    ):
        self.store = store
        self.bus = bus or get_event_bus()
        self.backend = backend
        self.save_delay_ms = save_delay_ms
        self._dirty = False
        self._save_timer: EffectTimer | None = None
        if state is None and store is not None:
            state = store.load()
        self._state = state or ProgressionState()

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ProgressionState:
        return self._state

    @property
    def total_xp(self) -> int:
        return self._state.total_xp

    @property
    def base_xp(self) -> int:
        return self._state.base_xp

    @property
    def level(self) -> int:
        return level_for_xp(self._state.total_xp, self._state.base_xp)

    @property
    def xp_at_level_start(self) -> int:
        return level_bounds(self._state.total_xp, self._state.base_xp)[1]

    @property
    def xp_at_next_level(self) -> int:
        return level_bounds(self._state.total_xp, self._state.base_xp)[2]

    @property
    def progress(self) -> Progress:
        """XP into the current level and the width of the level."""
        _, start, nxt = level_bounds(self._state.total_xp, self._state.base_xp)
        return Progress(current=self._state.total_xp - start, max=nxt - start)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_xp(self, amount: int) -> bool:
        """
        Add XP.

        Args:
            amount: Points to add; zero or negative is ignored

        Returns:
            True if the level went up (one or more boundaries crossed)
        """
        if amount <= 0:
            return False

        before = self.level
        self._state.total_xp += amount
        after = self.level
        self._schedule_save()

        self.bus.emit(EventType.XP_GAINED, amount=amount, total=self._state.total_xp)
        if after > before:
            logger.info(f"Level up: {before} -> {after} ({self._state.total_xp} XP)")
            self.bus.emit(
                EventType.LEVEL_UP,
                before=before,
                after=after,
                total=self._state.total_xp,
            )
            return True
        return False

    def reset(self) -> None:
        """Drop all XP. Base XP is kept."""
        previous = self._state.total_xp
        self._state.total_xp = 0
        self._save()
        logger.info(f"Progression reset (was {previous} XP)")
        self.bus.emit(EventType.XP_RESET, previous_total=previous)

    def set_base_xp(self, base_xp: object) -> int:
        """
        Change the curve parameter.

        Total XP is untouched. Non-positive or unparseable values are coerced.

        Returns:
            The base XP actually applied
        """
        new_base = coerce_base_xp(base_xp)
        old_base = self._state.base_xp
        if new_base == old_base:
            return new_base

        level_before = self.level
        self._state.base_xp = new_base
        self._save()
        self.bus.emit(
            EventType.BASE_XP_CHANGED,
            before=old_base,
            after=new_base,
            level_before=level_before,
            level_after=self.level,
        )
        return new_base

    @property
    def unsaved(self) -> bool:
        """True while XP gains are waiting for the batched save."""
        return self._dirty

    def flush(self) -> bool:
        """Write pending XP now. Returns True if anything was written."""
        if not self._dirty:
            return False
        self._save()
        return True

    def _schedule_save(self) -> None:
        if self.store is None:
            return
        if self.backend is None or self.save_delay_ms <= 0:
            self._save()
            return
        self._dirty = True
        if self._save_timer is None or not self._save_timer.pending:
            self._save_timer = EffectTimer(self.backend, self.save_delay_ms, self.flush).start()

    def _save(self) -> None:
        if self._save_timer is not None:
            self._save_timer.cancel()
            self._save_timer = None
        self._dirty = False
        if self.store is not None:
            self.store.save(self._state)
