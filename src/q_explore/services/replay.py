"""Replay engine - rebuilds map and form state from a stored record.

Replay never re-invokes the generation API. Because the per-circle geometry
of a response is not persisted, a replayed response always has an empty
`circles` list: callers show the winning point only, not the full layout.
This is a permanent property of the stored format.
"""

import logging
from typing import Callable

from q_explore.core.units import (
    MeasurementUnit,
    display_string,
    from_canonical,
    get_unit,
    unit_for_system,
)
from q_explore.schemas import (
    DisplaySettings,
    GenerationMetadata,
    GenerationResponse,
    HistoryRecord,
    ReplayState,
    ResultType,
)
from q_explore.schemas.defaults import DEFAULT_RESULT_TYPE, REPLAY_ZOOM
from q_explore.services.history import HistoryStore
from q_explore.services.links import map_url

logger = logging.getLogger(__name__)


def rebuild_response(record: HistoryRecord) -> GenerationResponse:
    """Response object shaped like a fresh generation, minus its geometry."""
    return GenerationResponse(
        id=record.id,
        request=record.request,
        circles=[],
        winners=record.winners,
        metadata=GenerationMetadata(timestamp=record.timestamp),
    )


class ReplayEngine:
    """Reconstructs replay state for records held by a HistoryStore.

    Args:
        store: The history store to look records up in.
        settings: Returns the current display settings; called on every
            replay so unit changes apply immediately.
    """

    def __init__(
        self,
        store: HistoryStore,
        settings: Callable[[], DisplaySettings] = DisplaySettings,
    ) -> None:
        self.store = store
        self.settings = settings

    def replay(
        self, record_id: str, unit: str | MeasurementUnit | None = None
    ) -> ReplayState:
        """Rebuild the view for a stored generation.

        Args:
            record_id: Id of the record to replay.
            unit: Display unit override; defaults to the unit of the
                configured measurement system.

        Raises:
            NotFound: If the store has no such record.
            UnknownUnit: If `unit` is not a supported unit.
        """
        record = self.store.get(record_id)
        settings = self.settings()
        if unit is None:
            display_unit = unit_for_system(settings.units)
        else:
            display_unit = get_unit(unit)

        request = record.request
        result_type = request.result_type or ResultType(DEFAULT_RESULT_TYPE)
        winner = record.winner(result_type)

        link = None
        if winner is not None:
            coords = winner.result.coords
            link = map_url(coords.lat, coords.lng, settings.map_provider)

        logger.info(f"Replaying {record_id} ({result_type.value}, {display_unit.name})")
        return ReplayState(
            record_id=record.id,
            center=request.location,
            zoom=REPLAY_ZOOM,
            radius_meters=request.radius,
            radius_display=from_canonical(request.radius, display_unit),
            radius_unit=display_unit.name,
            radius_text=display_string(request.radius, display_unit),
            mode=request.mode,
            backend=request.backend,
            result_type=result_type,
            response=rebuild_response(record),
            winner=winner,
            map_url=link,
        )
