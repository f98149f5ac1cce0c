"""State for ridiculous_coding: settings, progression, events."""

from .schema import (
    DEFAULT_BASE_XP,
    Progress,
    ProgressionState,
    Settings,
    coerce_base_xp,
)
from .store import JsonProgressionStore, MemoryProgressionStore, ProgressionStore
from .event_bus import (
    EventBus,
    EventType,
    ProgressEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "DEFAULT_BASE_XP",
    "Progress",
    "ProgressionState",
    "Settings",
    "coerce_base_xp",
    # Store
    "JsonProgressionStore",
    "MemoryProgressionStore",
    "ProgressionStore",
    # Event Bus
    "EventBus",
    "EventType",
    "ProgressEvent",
    "get_event_bus",
    "reset_event_bus",
]
