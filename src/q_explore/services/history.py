"""History store - the persisted, capacity-bounded record of past generations.

The store owns an ordered collection of HistoryRecord, newest first:

1. ORDER: timestamp descending; equal timestamps are ordered by insertion
   recency (the most recently inserted record comes first).
2. UNIQUENESS: no two records share an id.
3. CAPACITY: at most `capacity` records; after every insert the collection
   is re-sorted and the tail beyond the cap is evicted, once.

The collection is loaded lazily from the key-value store on first access and
written back synchronously after every mutating operation. A failed write
does not undo the mutation: the in-memory collection stays authoritative and
the failure is exposed through `persistence_error` / `is_persistent`.
"""

from __future__ import annotations

import json
import logging
import os
from itertools import islice
from pathlib import Path
from typing import IO, Any, Callable, Iterable, Iterator, Mapping, Union

from q_explore.errors import (
    ImportFormatError,
    MalformedRecord,
    NotFound,
    PersistenceUnavailable,
)
from q_explore.infrastructure.storage import KeyValueStore
from q_explore.schemas import HistoryRecord, ImportReport
from q_explore.schemas.defaults import HISTORY_CAPACITY, HISTORY_STORAGE_KEY
from q_explore.services.codec import decode, decode_batch, encode_batch

logger = logging.getLogger(__name__)

ImportSource = Union[str, bytes, os.PathLike, IO[str], IO[bytes]]

# (insertion sequence, record)
_Entry = tuple[int, HistoryRecord]


def _sort_key(entry: _Entry):
    seq, record = entry
    return (record.timestamp, seq)


def _peek_id(blob: Any) -> str | None:
    """Read an id without fully decoding the blob."""
    if isinstance(blob, HistoryRecord):
        return blob.id
    if isinstance(blob, Mapping):
        if blob.get("id"):
            return str(blob["id"])
        response = blob.get("response")
        if isinstance(response, Mapping) and response.get("id"):
            return str(response["id"])
    return None


class HistoryView:
    """Lazy, restartable view over the store's records.

    Each iteration reads the store's current state; nothing is frozen at
    construction time.
    """

    def __init__(self, store: HistoryStore) -> None:
        self._store = store

    def __iter__(self) -> Iterator[HistoryRecord]:
        yield from self._store.snapshot()

    def __len__(self) -> int:
        return len(self._store)


class HistoryStore:
    """Persisted history of generations.

    Args:
        store: Key-value store holding the serialized history.
        key: Slot name inside the key-value store.
        capacity: Maximum number of records kept.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str = HISTORY_STORAGE_KEY,
        capacity: int = HISTORY_CAPACITY,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._kv = store
        self.key = key
        self.capacity = capacity

        self._entries: list[_Entry] | None = None  # None until first access
        self._seq = 0
        self.persistence_error: PersistenceUnavailable | None = None
        self.load_skipped = 0

    # --- Lifecycle -----------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self._entries is not None

    @property
    def is_persistent(self) -> bool:
        """False while the key-value store is failing (degraded mode)."""
        return self.persistence_error is None

    def _entries_loaded(self) -> list[_Entry]:
        if self._entries is None:
            self._entries = self._load()
        return self._entries

    def _load(self) -> list[_Entry]:
        """Read the stored blob, degrading to empty on any corruption."""
        try:
            blob = self._kv.get(self.key)
        except PersistenceUnavailable as e:
            logger.warning(f"History unavailable, starting empty: {e}")
            self.persistence_error = e
            return []

        if not blob:
            return []

        try:
            data = json.loads(blob)
        except ValueError as e:
            logger.warning(f"History blob is not valid JSON, starting empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(
                f"History blob is a {type(data).__name__}, not a list; starting empty"
            )
            return []

        records, skipped = decode_batch(data)
        self.load_skipped = skipped
        if skipped:
            logger.warning(f"Dropped {skipped} unreadable history record(s) on load")

        # Stored order is newest first; keep the first occurrence of an id and
        # give earlier rows a higher sequence so stored tie order survives.
        unique: list[HistoryRecord] = []
        seen: set[str] = set()
        for record in records:
            if record.id not in seen:
                seen.add(record.id)
                unique.append(record)

        n = len(unique)
        entries = [(n - i, record) for i, record in enumerate(unique)]
        self._seq = n
        entries.sort(key=_sort_key, reverse=True)
        del entries[self.capacity :]
        logger.info(f"Loaded {len(entries)} history record(s)")
        return entries

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def _settle(self) -> int:
        """Re-sort and apply the capacity bound. Returns the eviction count."""
        entries = self._entries_loaded()
        entries.sort(key=_sort_key, reverse=True)
        evicted = max(0, len(entries) - self.capacity)
        if evicted:
            for _, record in entries[self.capacity :]:
                logger.debug(f"Evicting history record {record.id}")
            del entries[self.capacity :]
        return evicted

    def flush(self) -> bool:
        """Write the current collection to the key-value store.

        Returns:
            True on success, False if the store is unavailable (the error is
            kept on `persistence_error`).
        """
        records = self.snapshot()
        try:
            self._kv.set(self.key, json.dumps(encode_batch(records)))
        except PersistenceUnavailable as e:
            logger.warning(f"History not persisted, continuing in memory: {e}")
            self.persistence_error = e
            return False
        self.persistence_error = None
        return True

    # --- Queries -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries_loaded())

    def __contains__(self, record_id: object) -> bool:
        return any(record.id == record_id for _, record in self._entries_loaded())

    def list(self) -> HistoryView:
        """Records in store order (newest first)."""
        return HistoryView(self)

    def snapshot(self) -> list[HistoryRecord]:
        """Copy of the current records in store order."""
        return [record for _, record in self._entries_loaded()]

    def get(self, record_id: str) -> HistoryRecord:
        """Return the record with `record_id`.

        Raises:
            NotFound: If no record has that id.
        """
        for _, record in self._entries_loaded():
            if record.id == record_id:
                return record
        raise NotFound(record_id)

    def recent(self, count: int) -> list[HistoryRecord]:
        """The `count` newest records."""
        return list(islice(self.list(), max(0, count)))

    def favorites(self) -> list[HistoryRecord]:
        return [record for record in self.list() if record.favorite]

    # --- Mutations -----------------------------------------------------------

    def add(self, record: HistoryRecord) -> int:
        """Insert a record as the most recent insertion.

        A record whose id is already stored replaces the stored one.

        Returns:
            Store size after the insert (and any eviction).
        """
        entries = self._entries_loaded()
        entries[:] = [e for e in entries if e[1].id != record.id]
        entries.append((self._next_seq(), record))
        evicted = self._settle()
        self.flush()
        logger.info(
            f"Added history record {record.id} (size={len(entries)}, evicted={evicted})"
        )
        return len(entries)

    def remove(self, record_id: str) -> bool:
        """Delete a record. An unknown id is a no-op.

        Returns:
            True if a record was removed.
        """
        entries = self._entries_loaded()
        kept = [e for e in entries if e[1].id != record_id]
        if len(kept) == len(entries):
            logger.debug(f"Remove ignored, no history record {record_id}")
            return False
        entries[:] = kept
        self.flush()
        logger.info(f"Removed history record {record_id}")
        return True

    def clear(self) -> None:
        """Remove every record and empty the persisted slot."""
        self._entries = []
        try:
            self._kv.remove(self.key)
        except PersistenceUnavailable as e:
            logger.warning(f"History slot not cleared, continuing in memory: {e}")
            self.persistence_error = e
        else:
            self.persistence_error = None
        logger.info("History cleared")

    def annotate(
        self,
        record_id: str,
        name: str | None = None,
        notes: str | None = None,
        favorite: bool | None = None,
    ) -> HistoryRecord:
        """Replace a record with a copy carrying new annotations.

        Raises:
            NotFound: If no record has that id.
        """
        record = self.get(record_id)
        updates: dict[str, Any] = {}
        if name is not None:
            updates["name"] = name
        if notes is not None:
            updates["notes"] = notes
        if favorite is not None:
            updates["favorite"] = favorite
        if not updates:
            return record
        updated = record.model_copy(update=updates)
        self.add(updated)
        return updated

    def merge_import(
        self,
        remote_records: Iterable[Any],
        decoder: Callable[[Any], HistoryRecord] = decode,
    ) -> ImportReport:
        """Reconcile an external record set into the store.

        Remote entries whose id is already stored (or already seen earlier in
        the same batch) are skipped as duplicates; the rest are decoded, and
        the ones that fail are skipped as malformed. Accepted records are
        combined with the local ones, then the whole collection is sorted and
        capped once. Only candidates that survive the cap count as accepted;
        when none do, nothing is written. Re-running with the same input
        changes nothing and reports nothing accepted.

        Args:
            remote_records: Encoded records (or HistoryRecord instances).
            decoder: Converts one remote entry into a HistoryRecord.
        """
        entries = self._entries_loaded()
        local_ids = {record.id for _, record in entries}
        seen: set[str] = set()
        candidates: list[HistoryRecord] = []
        duplicates = malformed = 0

        for blob in remote_records:
            blob_id = _peek_id(blob)
            if blob_id is not None and (blob_id in local_ids or blob_id in seen):
                duplicates += 1
                continue
            try:
                record = blob if isinstance(blob, HistoryRecord) else decoder(blob)
            except MalformedRecord as e:
                malformed += 1
                logger.debug(f"Skipping malformed import entry: {e}")
                continue
            if record.id in local_ids or record.id in seen:
                duplicates += 1
                continue
            seen.add(record.id)
            candidates.append(record)

        for record in candidates:
            entries.append((self._next_seq(), record))
        dropped = self._settle()

        # Candidates older than everything in a full store are evicted at once
        kept_ids = {record.id for _, record in entries}
        accepted = sum(1 for record in candidates if record.id in kept_ids)
        evicted = dropped - (len(candidates) - accepted)

        if not accepted:
            logger.info(
                f"Merge added nothing (duplicates={duplicates}, malformed={malformed}, "
                f"too old={len(candidates)})"
            )
            return ImportReport(
                duplicates=duplicates,
                malformed=malformed,
                persisted=self.is_persistent,
            )

        persisted = self.flush()

        logger.info(
            f"Merged {accepted} record(s) "
            f"(duplicates={duplicates}, malformed={malformed}, evicted={evicted})"
        )
        return ImportReport(
            accepted=accepted,
            duplicates=duplicates,
            malformed=malformed,
            evicted=evicted,
            persisted=persisted,
        )

    def import_bulk(self, source: ImportSource) -> ImportReport:
        """Merge records from a user-supplied export file.

        Args:
            source: A path object (``pathlib.Path`` or other ``os.PathLike``),
                a file object, or the file contents as str/bytes. A plain str
                is always read as contents, never as a file name. The payload
                must be a JSON array of records.

        Raises:
            ImportFormatError: If the file cannot be read or the payload is
                not a JSON array (a file name passed as str fails here as
                invalid JSON).
        """
        text = _read_source(source)
        try:
            payload = json.loads(text)
        except ValueError as e:
            hint = ""
            looks_like_path = isinstance(source, str) and "\n" not in source
            if looks_like_path and os.path.isfile(source):
                hint = " (str is read as contents; pass a Path to read a file)"
            raise ImportFormatError(f"Invalid JSON: {e}{hint}") from e
        if not isinstance(payload, list):
            raise ImportFormatError(
                f"Invalid format: expected array, got {type(payload).__name__}"
            )
        report = self.merge_import(payload)
        logger.info(
            f"Imported {report.accepted} of {len(payload)} entries "
            f"({report.skipped} skipped)"
        )
        return report


def _read_source(source: ImportSource) -> str:
    if isinstance(source, os.PathLike):
        try:
            return Path(source).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ImportFormatError(f"Cannot read import file {source}: {e}") from e
    if isinstance(source, (bytes, bytearray)):
        return _decode_bytes(bytes(source))
    if isinstance(source, str):
        return source
    if hasattr(source, "read"):
        data = source.read()
        return _decode_bytes(data) if isinstance(data, bytes) else data
    raise ImportFormatError(f"Unsupported import source: {type(source).__name__}")


def _decode_bytes(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ImportFormatError(f"Import file is not UTF-8: {e}") from e
