"""
Ridiculous Coding - keystroke cues and XP leveling for text editors.

Subpackages:
    effects      - rate-limited, self-expiring cue scheduling
    progression  - XP level curve and engine
    state        - settings/progression models, storage, event bus
    interface    - panel sync, editor notification handling
"""

__version__ = "0.3.0"
