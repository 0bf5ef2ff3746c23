"""Services package for history management.

This package contains:
- codec.py: HistoryRecord encode/decode and API payload conversion
- history.py: HistoryStore (add, remove, clear, merge-import, bulk import)
- replay.py: ReplayEngine for rebuilding map state from a record
- sync.py: Server history fetch and merge
- export.py: JSON, GPX and CSV export
- links.py: External map links and share links
- context.py: ExplorerContext owning the per-client state
"""

from q_explore.services.context import ExplorerContext, get_context
from q_explore.services.history import HistoryStore
from q_explore.services.replay import ReplayEngine

__all__ = ["ExplorerContext", "get_context", "HistoryStore", "ReplayEngine"]
