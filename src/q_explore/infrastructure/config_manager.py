"""Settings Management Module.

Handles locating the data directory and loading, saving and resetting the
persisted display settings. Enforces the strictly typed DisplaySettings
schema; a corrupt or unreadable settings slot degrades to the defaults.
"""

import json
import logging
import os
from pathlib import Path

from pydantic import ValidationError

from q_explore.errors import PersistenceUnavailable
from q_explore.infrastructure.storage import KeyValueStore
from q_explore.schemas import DisplaySettings
from q_explore.schemas.defaults import SETTINGS_STORAGE_KEY

DATA_DIR = Path(os.getenv("Q_EXPLORE_DATA_DIR", Path.cwd() / "data"))

logger = logging.getLogger(__name__)


def load_settings(store: KeyValueStore) -> DisplaySettings:
    """Load display settings from the settings slot.

    Returns:
        The stored settings, or DisplaySettings() when the slot is empty,
        unreadable, not JSON, or fails validation.
    """
    try:
        blob = store.get(SETTINGS_STORAGE_KEY)
    except PersistenceUnavailable as e:
        logger.warning(f"Settings unavailable, using defaults: {e}")
        return DisplaySettings()

    if not blob:
        return DisplaySettings()

    try:
        data = json.loads(blob)
        if not isinstance(data, dict):
            raise ValueError(f"expected an object, got {type(data).__name__}")
        # validate via Pydantic
        return DisplaySettings(**data)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"Corrupt settings blob, using defaults: {e}")
        return DisplaySettings()


def save_settings(store: KeyValueStore, settings: DisplaySettings) -> None:
    """Persist display settings.

    Raises:
        PersistenceUnavailable: If the store cannot be written.
    """
    store.set(SETTINGS_STORAGE_KEY, settings.model_dump_json())
    logger.info(f"Saved settings: units={settings.units}")


def reset_settings(store: KeyValueStore) -> DisplaySettings:
    """Remove stored settings and return the defaults."""
    store.remove(SETTINGS_STORAGE_KEY)
    logger.info("Settings reset to defaults")
    return DisplaySettings()
