"""
Pytest fixtures for ridiculous_coding tests.

Provides a manual clock, a recording renderer and in-memory stores so
timing behavior is tested without sleeping.
"""

import random
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ridiculous_coding.effects import (
    EffectScheduler,
    ManualTimerBackend,
    Position,
    RecordingRenderer,
)
from ridiculous_coding.errors import ChannelClosedError
from ridiculous_coding.progression import ProgressionEngine
from ridiculous_coding.state import EventBus, MemoryProgressionStore, Settings


class FakeSurface:
    """Editor stand-in with a movable caret."""

    def __init__(self, line: int = 0, character: int = 0):
        self.caret = Position(line, character)

    def move(self, line: int, character: int = 0) -> None:
        self.caret = Position(line, character)


class ListChannel:
    """Message channel that keeps everything it is sent."""

    def __init__(self):
        self.messages: list[dict] = []
        self.closed = False

    def send(self, payload: dict) -> None:
        if self.closed:
            raise ChannelClosedError("closed")
        self.messages.append(payload)

    def of_type(self, msg_type: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == msg_type]

    def types(self) -> list[str]:
        return [m["type"] for m in self.messages]


@pytest.fixture
def backend():
    """Virtual clock starting at t=0."""
    return ManualTimerBackend()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def scheduler(renderer, backend):
    """Scheduler with a seeded RNG for repeatable jitter and colors."""
    return EffectScheduler(renderer, backend, rng=random.Random(7))


@pytest.fixture
def surface():
    return FakeSurface(line=3, character=5)


@pytest.fixture
def bus():
    """Fresh event bus, not the process-wide one."""
    return EventBus()


@pytest.fixture
def memory_store():
    return MemoryProgressionStore()


@pytest.fixture
def engine(memory_store, bus):
    return ProgressionEngine(store=memory_store, bus=bus)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def channel():
    return ListChannel()
