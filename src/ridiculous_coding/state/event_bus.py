"""
Event bus for progression and effect changes.

Decouples the engines from whatever presents them (status line, panel sync).

Usage:
    from .event_bus import get_event_bus, EventType

    bus = get_event_bus()
    bus.on(EventType.LEVEL_UP, on_level_up)

    # Emit (in the engine when state changes)
    bus.emit(EventType.LEVEL_UP, before=1, after=2)

    def on_level_up(event: ProgressEvent):
        print(f"Reached level {event.data['after']}!")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Events that can be published."""

    # Progression events
    XP_GAINED = "xp.gained"
    LEVEL_UP = "xp.level_up"
    XP_RESET = "xp.reset"
    BASE_XP_CHANGED = "xp.base_changed"

    # Effect events
    EFFECT_FIRED = "effect.fired"
    EFFECTS_CLEARED = "effect.cleared"

    # Settings events
    SETTINGS_CHANGED = "settings.changed"


@dataclass
class ProgressEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


EventHandler = Callable[[ProgressEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), on the caller's thread.
    A listener that raises is logged and skipped; the rest still run.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[ProgressEvent] = []
        self._history_limit = history_limit

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        """Unsubscribe from an event type."""
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(self, event_type: EventType, **data) -> ProgressEvent:
        """
        Emit an event to all subscribers.

        Returns:
            The emitted ProgressEvent (for chaining/testing)
        """
        event = ProgressEvent(type=event_type, data=data)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit :]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception as e:
                logger.error(f"Error in handler for {event_type.value}: {e}")

        return event

    def clear(self) -> None:
        """Clear all listeners. Useful for testing."""
        self._listeners.clear()

    def get_history(self, event_type: EventType | None = None) -> list[ProgressEvent]:
        """Recent events, optionally filtered by type."""
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the process-wide event bus."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Reset the global event bus. Useful for testing."""
    global _event_bus
    _event_bus = None
