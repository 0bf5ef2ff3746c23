"""Schemas package.

- config.py: Display settings (DisplaySettings)
- data.py: Generation and history models (HistoryRecord, ReplayState, etc.)
- defaults.py: Default values and storage keys
- columns.py: Column names for tabular export
"""

from .config import DisplaySettings
from .data import (
    Coordinates,
    GenerationMetadata,
    GenerationMode,
    GenerationRequest,
    GenerationResponse,
    HistoryRecord,
    ImportReport,
    Point,
    ReplayState,
    ResultType,
    SharedView,
    WinnerResult,
)

__all__ = [
    "DisplaySettings",
    "Coordinates",
    "GenerationMetadata",
    "GenerationMode",
    "GenerationRequest",
    "GenerationResponse",
    "HistoryRecord",
    "ImportReport",
    "Point",
    "ReplayState",
    "ResultType",
    "SharedView",
    "WinnerResult",
]
