"""Explorer context - the single owner of client-side state.

Holds the key-value store, the display settings, the history store and the
replay engine for one client instance. Everything is created lazily: the
history is read from storage on first access and flushed after each
mutation by the HistoryStore itself.

`get_context()` returns the process-wide instance backed by DATA_DIR;
tests and embedders build their own ExplorerContext instead.
"""

import logging
from pathlib import Path

from q_explore.core.units import (
    MeasurementUnit,
    display_string,
    from_canonical,
    to_canonical,
    unit_for_system,
)
from q_explore.errors import PersistenceUnavailable
from q_explore.infrastructure import config_manager
from q_explore.infrastructure.log_setup import configure_logging
from q_explore.infrastructure.storage import FileKeyValueStore, KeyValueStore
from q_explore.schemas import DisplaySettings
from q_explore.schemas.defaults import HISTORY_CAPACITY
from q_explore.services.history import HistoryStore
from q_explore.services.replay import ReplayEngine

logger = logging.getLogger(__name__)


class ExplorerContext:
    """Client state container with dependency injection.

    Args:
        store: Backing key-value store for history and settings.
        capacity: History capacity bound.
    """

    def __init__(self, store: KeyValueStore, capacity: int = HISTORY_CAPACITY) -> None:
        self.store = store
        self.capacity = capacity
        self._settings: DisplaySettings | None = None
        self._history: HistoryStore | None = None
        self._replay: ReplayEngine | None = None

    @classmethod
    def from_data_dir(cls, data_dir: Path, **kwargs) -> "ExplorerContext":
        return cls(FileKeyValueStore(Path(data_dir)), **kwargs)

    # --- Settings ------------------------------------------------------------

    @property
    def settings(self) -> DisplaySettings:
        if self._settings is None:
            self._settings = config_manager.load_settings(self.store)
        return self._settings

    def update_settings(self, **changes) -> DisplaySettings:
        """Apply and persist settings changes.

        The new settings take effect for the session even if they cannot be
        persisted; the PersistenceUnavailable error is then re-raised.

        Raises:
            pydantic.ValidationError: If a changed value is invalid.
            PersistenceUnavailable: If the settings could not be saved.
        """
        updated = DisplaySettings(**{**self.settings.model_dump(), **changes})
        self._settings = updated
        config_manager.save_settings(self.store, updated)
        return updated

    def reset_settings(self) -> DisplaySettings:
        try:
            self._settings = config_manager.reset_settings(self.store)
        except PersistenceUnavailable as e:
            logger.warning(f"Settings slot not cleared: {e}")
            self._settings = DisplaySettings()
            raise
        return self._settings

    @property
    def display_unit(self) -> MeasurementUnit:
        """Distance unit of the active measurement system."""
        return unit_for_system(self.settings.units)

    def set_default_radius(self, value: float) -> DisplaySettings:
        """Store a default radius typed in the active display unit."""
        meters = to_canonical(value, self.display_unit)
        return self.update_settings(default_radius_meters=meters)

    def default_radius_display(self) -> float:
        """Default radius converted for the radius input control."""
        return from_canonical(self.settings.default_radius_meters, self.display_unit)

    def format_radius(self, meters: float) -> str:
        return display_string(meters, self.display_unit)

    # --- History -------------------------------------------------------------

    @property
    def history(self) -> HistoryStore:
        if self._history is None:
            self._history = HistoryStore(self.store, capacity=self.capacity)
        return self._history

    @property
    def replay(self) -> ReplayEngine:
        if self._replay is None:
            self._replay = ReplayEngine(self.history, lambda: self.settings)
        return self._replay


_context: ExplorerContext | None = None


def get_context() -> ExplorerContext:
    """Process-wide context backed by DATA_DIR (created on first call)."""
    global _context
    if _context is None:
        configure_logging(config_manager.DATA_DIR / "logs")
        _context = ExplorerContext.from_data_dir(config_manager.DATA_DIR)
        logger.info(f"Initialized explorer context at {config_manager.DATA_DIR}")
    return _context


def reset_context() -> None:
    """Drop the process-wide context; the next get_context() rebuilds it."""
    global _context
    _context = None
