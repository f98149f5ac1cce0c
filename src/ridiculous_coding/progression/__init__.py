"""XP progression: level curve, engine, blip pitch."""

from .curve import level_bounds, level_for_xp, threshold
from .engine import ProgressionEngine
from .pitch import PitchTracker

__all__ = [
    "PitchTracker",
    "ProgressionEngine",
    "level_bounds",
    "level_for_xp",
    "threshold",
]
