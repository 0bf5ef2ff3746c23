"""History record codec.

Converts between HistoryRecord and its JSON-ready stored form, and between
generation API / server history payloads and HistoryRecord. Decoding is
strict per record and lenient per batch: one bad entry is counted and
dropped, never fatal to the rest.
"""

import logging
from typing import Any, Iterable, Mapping

from pydantic import ValidationError

from q_explore.errors import MalformedRecord
from q_explore.schemas import GenerationResponse, HistoryRecord

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("id", "timestamp", "request")


def encode(record: HistoryRecord) -> dict[str, Any]:
    """Serialize a record into plain JSON types (ISO timestamps, no Nones)."""
    return record.model_dump(mode="json", exclude_none=True)


def encode_batch(records: Iterable[HistoryRecord]) -> list[dict[str, Any]]:
    return [encode(r) for r in records]


def decode(blob: Any) -> HistoryRecord:
    """Parse one stored record.

    Raises:
        MalformedRecord: If the blob is not a mapping, a required field is
            missing, or any field has the wrong shape.
    """
    if not isinstance(blob, Mapping):
        raise MalformedRecord(f"Expected an object, got {type(blob).__name__}")

    missing = [name for name in _REQUIRED_FIELDS if blob.get(name) in (None, "")]
    if missing:
        raise MalformedRecord(f"Missing required field(s): {', '.join(missing)}")

    try:
        return HistoryRecord.model_validate(dict(blob))
    except ValidationError as e:
        raise MalformedRecord(
            f"Invalid record {blob.get('id')!r}: {e.error_count()} error(s)"
        ) from e


def decode_batch(blobs: Iterable[Any]) -> tuple[list[HistoryRecord], int]:
    """Decode every blob that parses.

    Returns:
        (records, skipped) where skipped counts the blobs that failed.
    """
    records: list[HistoryRecord] = []
    skipped = 0
    for blob in blobs:
        try:
            records.append(decode(blob))
        except MalformedRecord as e:
            skipped += 1
            logger.debug(f"Dropping malformed record: {e}")
    return records, skipped


def from_response(payload: Any) -> HistoryRecord:
    """Build a record from a generation response or server history entry.

    Accepts the response object itself, or a server entry where the response
    is either flattened into the entry or nested under ``"response"``. The
    auxiliary ``circles`` geometry is dropped.

    Raises:
        MalformedRecord: If the payload cannot be converted.
    """
    if not isinstance(payload, Mapping):
        raise MalformedRecord(f"Expected an object, got {type(payload).__name__}")

    response = payload.get("response", payload)
    if not isinstance(response, Mapping):
        raise MalformedRecord("Entry 'response' is not an object")

    metadata = response.get("metadata")
    timestamp = metadata.get("timestamp") if isinstance(metadata, Mapping) else None
    if timestamp is None:
        timestamp = response.get("timestamp")

    blob = {
        "id": response.get("id"),
        "timestamp": timestamp,
        "request": response.get("request"),
        "winners": response.get("winners") or {},
    }
    # Annotations live on the server entry, next to (not inside) the response
    for field in ("name", "notes", "favorite"):
        if payload.get(field) is not None:
            blob[field] = payload[field]
    return decode(blob)


def record_from_generation(response: GenerationResponse) -> HistoryRecord:
    """Create the history record for a freshly completed generation."""
    return HistoryRecord(
        id=response.id,
        timestamp=response.metadata.timestamp,
        request=response.request,
        winners=response.winners,
    )
