"""Export functionality for generation history (JSON, GPX and CSV).

Exports history records to:
1. JSON: the full record array, re-importable with HistoryStore.import_bulk.
2. GPX: one waypoint per record (lossy, export only).
3. CSV: flattened one-row-per-record table for external analysis tools.

Output path convention shared by all exporters:
    - None (default): generates a dated path in outputs/.
    - "": returns bytes (in-memory).
    - any other path: writes there and returns the path.
"""

import json
import os
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable

import pandas as pd

from q_explore.schemas import HistoryRecord
from q_explore.schemas.columns import ColumnNames
from q_explore.services.codec import encode_batch

GPX_NAMESPACE = "http://www.topografix.com/GPX/1/1"
EXPORT_DIR = "outputs"


def _default_path(extension: str) -> str:
    os.makedirs(EXPORT_DIR, exist_ok=True)
    day = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return f"{EXPORT_DIR}/q-explore-history-{day}.{extension}"


def _write(payload: bytes, output_path: str | None, extension: str) -> str | bytes:
    if output_path == "":
        return payload
    if output_path is None:
        output_path = _default_path(extension)
    with open(output_path, "wb") as f:
        f.write(payload)
    return output_path


def export_history_to_json(
    records: Iterable[HistoryRecord], output_path: str | None = None
) -> str | bytes:
    """Export records as a pretty-printed JSON array.

    Args:
        records: Records to export, typically ``store.list()``.
        output_path: File path to write to (None=auto, ""=bytes).

    Returns:
        str (path) if written to file.
        bytes if output_path was empty string.
    """
    data = json.dumps(encode_batch(records), indent=2)
    return _write(data.encode("utf-8"), output_path, "json")


def export_history_to_gpx(
    records: Iterable[HistoryRecord], output_path: str | None = None
) -> str | bytes:
    """Export one GPX waypoint per record.

    Each waypoint sits on the record's primary winner and carries an
    id-derived name, a mode/radius description and the record timestamp.
    Records without any winner are skipped. The format drops everything else
    and cannot be imported back.

    Args:
        records: Records to export.
        output_path: File path to write to (None=auto, ""=bytes).
    """
    ET.register_namespace("", GPX_NAMESPACE)

    def tag(name: str) -> str:
        return f"{{{GPX_NAMESPACE}}}{name}"

    root = ET.Element(tag("gpx"), {"version": "1.1", "creator": "q-explore"})
    metadata = ET.SubElement(root, tag("metadata"))
    ET.SubElement(metadata, tag("name")).text = "q-explore History"
    ET.SubElement(metadata, tag("time")).text = _iso(datetime.now(timezone.utc))

    for record in records:
        winner = record.primary_winner()
        if winner is None:
            continue
        coords = winner.result.coords
        wpt = ET.SubElement(
            root, tag("wpt"), {"lat": f"{coords.lat}", "lon": f"{coords.lng}"}
        )
        ET.SubElement(wpt, tag("name")).text = f"Generation {record.id[:8]}"
        ET.SubElement(wpt, tag("desc")).text = (
            f"Mode: {record.request.mode.value}, Radius: {record.request.radius:.15g}m"
        )
        ET.SubElement(wpt, tag("time")).text = _iso(record.timestamp)

    ET.indent(root, space="  ")
    payload = ET.tostring(root, encoding="utf-8", xml_declaration=True)
    return _write(payload, output_path, "gpx")


def history_to_dataframe(records: Iterable[HistoryRecord]) -> pd.DataFrame:
    """Flatten records into one row each, using the primary winner."""
    rows = []
    for record in records:
        request = record.request
        winner = record.primary_winner()
        point = winner.result if winner else None
        rows.append(
            {
                ColumnNames.ID: record.id,
                ColumnNames.TIMESTAMP: _iso(record.timestamp),
                ColumnNames.NAME: record.name,
                ColumnNames.FAVORITE: record.favorite,
                ColumnNames.CENTER_LAT: request.lat,
                ColumnNames.CENTER_LNG: request.lng,
                ColumnNames.RADIUS_METERS: request.radius,
                ColumnNames.MODE: request.mode.value,
                ColumnNames.BACKEND: request.backend,
                ColumnNames.RESULT_TYPE: (
                    request.result_type.value if request.result_type else None
                ),
                ColumnNames.WINNER_LAT: point.coords.lat if point else None,
                ColumnNames.WINNER_LNG: point.coords.lng if point else None,
                ColumnNames.Z_SCORE: point.z_score if point else None,
                ColumnNames.IS_ATTRACTOR: point.is_attractor if point else None,
            }
        )

    columns = [
        value for name, value in vars(ColumnNames).items() if name.isupper()
    ]
    return pd.DataFrame(rows, columns=columns)


def export_history_to_csv(
    records: Iterable[HistoryRecord], output_path: str | None = None
) -> str | bytes:
    """Export records as a flattened CSV table.

    Args:
        records: Records to export.
        output_path: File path to write to (None=auto, ""=bytes).
    """
    df = history_to_dataframe(records)

    if output_path == "":
        return df.to_csv(index=False).encode("utf-8")

    if output_path is None:
        output_path = _default_path("csv")

    df.to_csv(output_path, index=False)
    return output_path


def _iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
