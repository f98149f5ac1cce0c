"""
Progression storage abstraction.

Keeps persistence out of the engine so it can be tested in memory.
"""

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from .schema import ProgressionState

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressionStore(Protocol):
    """
    Storage interface for XP state.

    Implementations:
    - JsonProgressionStore: File-based persistence (production)
    - MemoryProgressionStore: In-memory storage (testing)
    """

    def load(self) -> ProgressionState | None:
        """Load saved state. Returns None if nothing was saved."""
        ...

    def save(self, state: ProgressionState) -> None:
        """Persist state."""
        ...


class JsonProgressionStore:
    """
    File-based progression storage.

    The previous save is kept as a .bak next to the file.
    """

    FILENAME = "progression.json"

    def __init__(self, data_dir: Path | str = ".ridiculous_coding"):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.data_dir / self.FILENAME

    def load(self) -> ProgressionState | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return ProgressionState.model_validate(data)
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.warning(f"Ignoring unreadable progression file {self.path}: {e}")
            return None

    def save(self, state: ProgressionState) -> None:
        state.touch()
        if self.path.exists():
            backup = self.path.with_suffix(".json.bak")
            backup.write_text(self.path.read_text(encoding="utf-8"), encoding="utf-8")
        self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")


class MemoryProgressionStore:
    """In-memory progression storage for testing."""

    def __init__(self, state: ProgressionState | None = None):
        self._state = state.model_copy() if state else None
        self.saves = 0

    def load(self) -> ProgressionState | None:
        if self._state is None:
            return None
        return self._state.model_copy()

    def save(self, state: ProgressionState) -> None:
        state.touch()
        self._state = state.model_copy()
        self.saves += 1
