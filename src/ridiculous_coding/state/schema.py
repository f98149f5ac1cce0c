"""
Pydantic models for settings and progression state.

Field names are snake_case in Python and camelCase on the wire (panel
messages, config file), matching what the panel script reads.
"""

from datetime import datetime
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_BASE_XP = 50


def coerce_base_xp(value: object, default: int = DEFAULT_BASE_XP) -> int:
    """Clamp a user-supplied base XP to a usable positive integer."""
    if isinstance(value, bool):
        return default
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(1, number)


class Settings(BaseModel):
    """User-facing feedback settings."""

    model_config = ConfigDict(populate_by_name=True)

    # Keys the panel may flip with a toggle command
    TOGGLEABLE: ClassVar[tuple[str, ...]] = (
        "explosions",
        "blips",
        "chars",
        "shake",
        "sound",
        "fireworks",
        "enable_status_bar",
        "reduced_effects",
    )

    explosions: bool = True      # Boom cue on delete
    blips: bool = True           # Blip cue on insert, newline cue
    chars: bool = True           # Show typed character next to the cue
    shake: bool = True           # Jitter animation
    sound: bool = True           # Panel plays blip/boom audio
    fireworks: bool = True       # Panel fireworks on level-up
    base_xp: int = Field(default=DEFAULT_BASE_XP, alias="baseXp")
    enable_status_bar: bool = Field(default=True, alias="enableStatusBar")
    reduced_effects: bool = Field(default=False, alias="reducedEffects")

    @field_validator("base_xp", mode="before")
    @classmethod
    def _coerce_base_xp(cls, value: object) -> int:
        return coerce_base_xp(value)

    @classmethod
    def field_for_key(cls, key: str) -> str | None:
        """Resolve a wire key (camelCase) or field name to a toggleable field."""
        for name in cls.TOGGLEABLE:
            info = cls.model_fields[name]
            if key == name or key == info.alias:
                return name
        return None

    @property
    def effects_enabled(self) -> bool:
        """Visual cues allowed at all."""
        return not self.reduced_effects

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class ProgressionState(BaseModel):
    """Persisted XP state. Level is always derived, never stored."""

    version: int = 1
    total_xp: int = 0
    base_xp: int = DEFAULT_BASE_XP
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("total_xp", mode="before")
    @classmethod
    def _non_negative(cls, value: object) -> int:
        try:
            return max(0, int(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0

    @field_validator("base_xp", mode="before")
    @classmethod
    def _coerce_base_xp(cls, value: object) -> int:
        return coerce_base_xp(value)

    def touch(self) -> None:
        self.updated_at = datetime.now()


class Progress(BaseModel):
    """XP within the current level, for bar rendering."""

    current: int
    max: int

    @property
    def fraction(self) -> float:
        return min(1.0, max(0.0, self.current / max(1, self.max)))
