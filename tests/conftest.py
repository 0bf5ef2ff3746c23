"""Shared test fixtures."""

from typing import Callable

import pytest

from q_explore.errors import PersistenceUnavailable
from q_explore.infrastructure.storage import MemoryKeyValueStore
from q_explore.schemas import HistoryRecord
from q_explore.services.context import ExplorerContext
from q_explore.services.history import HistoryStore

from .factories import create_record


class FailingKeyValueStore(MemoryKeyValueStore):
    """Memory store whose writes (and optionally reads) fail on demand."""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = True) -> None:
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise PersistenceUnavailable("read failed")
        return super().get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise PersistenceUnavailable("quota exceeded")
        super().set(key, value)

    def remove(self, key: str) -> None:
        if self.fail_writes:
            raise PersistenceUnavailable("quota exceeded")
        super().remove(key)


@pytest.fixture
def record_factory() -> Callable[..., HistoryRecord]:
    """Fixture that returns the history record factory function."""
    return create_record


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    """Return an empty in-memory key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def failing_kv_store() -> FailingKeyValueStore:
    """Return a key-value store that rejects writes."""
    return FailingKeyValueStore()


@pytest.fixture
def history(kv_store: MemoryKeyValueStore) -> HistoryStore:
    """Return an empty history store backed by memory."""
    return HistoryStore(kv_store)


@pytest.fixture
def context(kv_store: MemoryKeyValueStore) -> ExplorerContext:
    """Return a fresh explorer context backed by memory."""
    return ExplorerContext(kv_store)
