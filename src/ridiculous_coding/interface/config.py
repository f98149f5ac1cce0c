"""
User settings persistence.

Stores feedback toggles and the leveling base XP in a JSON file. Keys are
written in the panel's camelCase form.
"""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..state.schema import Settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = ".ridiculous_coding"


def get_config_path(config_dir: Path | str = DEFAULT_CONFIG_DIR) -> Path:
    """Get path to config file."""
    return Path(config_dir) / "settings.json"


def load_settings(config_dir: Path | str = DEFAULT_CONFIG_DIR) -> Settings:
    """Load settings from file, or return defaults if not found."""
    path = get_config_path(config_dir)

    if not path.exists():
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            saved = json.load(f)
        # Merge with defaults to handle missing keys
        merged = Settings().to_wire()
        merged.update(saved)
        return Settings.model_validate(merged)
    except (json.JSONDecodeError, ValidationError, TypeError, ValueError, OSError) as e:
        logger.warning(f"Using default settings, could not read {path}: {e}")
        return Settings()


def save_settings(settings: Settings, config_dir: Path | str = DEFAULT_CONFIG_DIR) -> bool:
    """Save settings to file. Returns True on success."""
    path = get_config_path(config_dir)

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(settings.to_wire(), f, indent=2)
        return True
    except IOError as e:
        logger.error(f"Failed to save settings to {path}: {e}")
        return False


def toggle_setting(
    key: str,
    value: bool | None = None,
    config_dir: Path | str = DEFAULT_CONFIG_DIR,
) -> Settings | None:
    """
    Flip (or set) one boolean setting and save it.

    Args:
        key: Field name or camelCase key, e.g. "reducedEffects"
        value: New value, or None to flip the current one

    Returns:
        The updated settings, or None if the key isn't toggleable
    """
    name = Settings.field_for_key(key)
    if name is None:
        logger.warning(f"Setting is not toggleable: {key}")
        return None

    settings = load_settings(config_dir)
    new_value = (not getattr(settings, name)) if value is None else bool(value)
    settings = settings.model_copy(update={name: new_value})
    save_settings(settings, config_dir)
    return settings


def set_base_xp(base_xp: object, config_dir: Path | str = DEFAULT_CONFIG_DIR) -> Settings:
    """Save the leveling base XP (coerced to at least 1)."""
    settings = load_settings(config_dir)
    settings = Settings.model_validate({**settings.to_wire(), "baseXp": base_xp})
    save_settings(settings, config_dir)
    return settings
