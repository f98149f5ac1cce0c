"""
Editor notification handling.

Turns raw editor notifications (text edits, caret moves, configuration
changes) into cue requests, XP and panel messages.

Usage:
    controller = FeedbackController.create(renderer, AsyncioTimerBackend())
    controller.activate()

    # from the editor host
    controller.on_text_change(editor, TextChange(inserted_text="a"))
    controller.on_selection_change(editor, new_line=12)
"""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..effects.scheduler import CueRenderer, EffectKind, EffectScheduler
from ..effects.timer import TimerBackend
from ..progression.engine import ProgressionEngine
from ..progression.pitch import PitchTracker
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.schema import Settings
from ..state.store import JsonProgressionStore, ProgressionStore
from . import config
from .messages import BlipMessage, BoomMessage, FireworksMessage
from .status import StatusLine
from .sync import StateSync

logger = logging.getLogger(__name__)

XP_PER_INSERT = 1
DELETE_LABEL = "⌫"


@dataclass(frozen=True)
class TextChange:
    """One keystroke-equivalent edit reported by the editor."""
    inserted_text: str = ""
    removed_char_count: int = 0

    @property
    def is_insert(self) -> bool:
        return len(self.inserted_text) > 0

    @property
    def is_delete(self) -> bool:
        return self.removed_char_count > 0 and not self.is_insert


def sanitize_label(ch: str) -> str:
    """Make a typed character visible as a cue label."""
    if ch == "\n":
        return "⏎"
    if ch == "\t":
        return "↹"
    if ch.strip() == "":
        return "•"
    return ch


class FeedbackController:
    """Wires editor events to the effect scheduler, progression and panel."""

    def __init__(
        self,
        scheduler: EffectScheduler,
        engine: ProgressionEngine,
        settings: Settings | None = None,
        bus: EventBus | None = None,
        config_dir: Path | str | None = None,
    ):
        self.scheduler = scheduler
        self.engine = engine
        self.bus = bus or engine.bus
        self.config_dir = config_dir
        self.settings = settings or (
            config.load_settings(config_dir) if config_dir is not None else Settings()
        )
        self.engine.set_base_xp(self.settings.base_xp)

        self.pitch = PitchTracker(scheduler.backend)
        self.sync = StateSync(
            engine,
            settings=lambda: self.settings,
            backend=scheduler.backend,
            on_toggle=self.toggle,
            on_reset=self.reset_xp,
        )
        self.status = StatusLine(engine, self.bus, enabled=self.settings.enable_status_bar)

        self._surfaces: "weakref.WeakSet[Any]" = weakref.WeakSet()
        self._last_line: "weakref.WeakKeyDictionary[Any, int]" = weakref.WeakKeyDictionary()

    @classmethod
    def create(
        cls,
        renderer: CueRenderer,
        backend: TimerBackend,
        config_dir: Path | str = config.DEFAULT_CONFIG_DIR,
        store: ProgressionStore | None = None,
        bus: EventBus | None = None,
    ) -> "FeedbackController":
        """Build a controller with file-backed settings and XP."""
        bus = bus or get_event_bus()
        store = store or JsonProgressionStore(config_dir)
        engine = ProgressionEngine(store=store, bus=bus, backend=backend)
        scheduler = EffectScheduler(renderer, backend)
        return cls(scheduler, engine, bus=bus, config_dir=config_dir)

    def activate(self) -> None:
        """Start background ticks and schedule the initial panel push."""
        self.pitch.start()
        self.sync.activate()

    def deactivate(self) -> None:
        """Stop ticks and write any batched XP."""
        self.pitch.stop()
        self.status.close()
        self.engine.flush()

    # -------------------------------------------------------------------------
    # Editor notifications
    # -------------------------------------------------------------------------

    def on_text_change(self, surface: Any, change: TextChange) -> None:
        """Handle one edit in the active editor."""
        self._surfaces.add(surface)
        s = self.settings
        effects_on = s.effects_enabled

        label = None
        if s.chars and change.is_insert:
            label = sanitize_label(change.inserted_text[0])
        elif s.chars and change.is_delete:
            label = DELETE_LABEL

        if change.is_insert and s.blips and effects_on:
            fired = self._request(surface, EffectKind.BLIP, label=label, shake=s.shake)
            if fired:
                pitch = self.pitch.bump()
                self.sync.publish(BlipMessage(pitch=pitch, enabled=s.sound))
            leveled = self.engine.add_xp(XP_PER_INSERT)
            if leveled and s.fireworks:
                self.sync.publish(FireworksMessage(enabled=s.sound))
            self.sync.push_state()
        elif change.is_insert:
            # XP still counts with cues off
            self.engine.add_xp(XP_PER_INSERT)
            self.sync.push_state()
        elif change.is_delete and s.explosions and effects_on:
            fired = self._request(surface, EffectKind.BOOM, label=label, shake=s.shake)
            if fired:
                self.sync.publish(BoomMessage(enabled=s.sound))
            self.sync.push_state()

        if s.blips and effects_on and "\n" in change.inserted_text:
            self._request(surface, EffectKind.NEWLINE, shake=s.shake)

        self._last_line[surface] = surface.caret.line

    def on_selection_change(self, surface: Any, new_line: int) -> None:
        """Caret moved; a line change gets a newline cue."""
        self._surfaces.add(surface)
        last = self._last_line.get(surface)
        s = self.settings
        if last is not None and new_line != last and s.blips and s.effects_enabled:
            self._request(surface, EffectKind.NEWLINE, shake=s.shake)
        self._last_line[surface] = new_line

    def on_configuration_change(self, settings: Settings) -> None:
        """Apply a fresh settings snapshot."""
        previous = self.settings
        self.settings = settings

        if settings.reduced_effects and not previous.reduced_effects:
            for surface in list(self._surfaces):
                self.scheduler.clear_all(surface)
            self.bus.emit(EventType.EFFECTS_CLEARED, surfaces=len(self._surfaces))

        self.engine.set_base_xp(settings.base_xp)
        self.status.set_enabled(settings.enable_status_bar)
        self.bus.emit(EventType.SETTINGS_CHANGED, settings=settings.to_wire())

        self.sync.push_state()
        self.sync.push_init()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def toggle(self, key: str, value: bool | None = None) -> bool:
        """
        Flip or set a boolean setting.

        Returns:
            False if the key isn't a toggleable setting
        """
        name = Settings.field_for_key(key)
        if name is None:
            logger.warning(f"Unknown toggle: {key}")
            return False

        if self.config_dir is not None:
            updated = config.toggle_setting(name, value, self.config_dir)
            if updated is None:
                return False
        else:
            new_value = (not getattr(self.settings, name)) if value is None else bool(value)
            updated = self.settings.model_copy(update={name: new_value})

        self.on_configuration_change(updated)
        return True

    def set_base_xp(self, base_xp: object) -> int:
        """Change the leveling base XP, saving it when settings are file-backed."""
        if self.config_dir is not None:
            updated = config.set_base_xp(base_xp, self.config_dir)
        else:
            updated = Settings.model_validate({**self.settings.to_wire(), "baseXp": base_xp})
        self.on_configuration_change(updated)
        return updated.base_xp

    def reset_xp(self) -> None:
        self.engine.reset()
        self.sync.push_state()
        if self.settings.fireworks:
            self.sync.publish(FireworksMessage(enabled=self.settings.sound))

    def status_text(self) -> str | None:
        return self.status.text

    def _request(
        self,
        surface: Any,
        kind: EffectKind,
        label: str | None = None,
        shake: bool = False,
    ) -> bool:
        fired = self.scheduler.request_effect(surface, kind, label=label, shake=shake)
        if fired:
            self.bus.emit(EventType.EFFECT_FIRED, kind=kind.value, label=label)
        return fired
