"""Generation, history record and replay schemas."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from q_explore.schemas.defaults import (
    DEFAULT_BACKEND,
    DEFAULT_POINTS,
    REPLAY_ZOOM,
)


class GenerationMode(str, Enum):
    """Layout of the sampled circles."""

    STANDARD = "standard"
    FLOWER_POWER = "flower_power"  # seven overlapping circles

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in ("flower-power", "flowerpower", "flower_power"):
                return cls.FLOWER_POWER
            if normalized == "standard":
                return cls.STANDARD
        return None


class ResultType(str, Enum):
    """Anomaly classification a winner was selected for."""

    BLIND_SPOT = "blind_spot"
    ATTRACTOR = "attractor"
    VOID = "void"
    POWER = "power"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "_")
            if normalized == "blindspot":
                normalized = "blind_spot"
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class Coordinates(BaseModel):
    """A WGS84 latitude/longitude pair."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude (degrees)")
    lng: float = Field(..., ge=-180, le=180, description="Longitude (degrees)")

    model_config = ConfigDict(frozen=True)


class GenerationRequest(BaseModel):
    """Parameters sent to the generation API.

    `radius` is always in meters; display units never reach this model.
    """

    lat: float = Field(..., ge=-90, le=90, description="Center latitude")
    lng: float = Field(..., ge=-180, le=180, description="Center longitude")
    radius: float = Field(..., gt=0, description="Search radius (m)")
    points: int = Field(DEFAULT_POINTS, gt=0, description="Points per circle")
    backend: str = Field(DEFAULT_BACKEND, description="Randomness backend id")
    mode: GenerationMode = Field(GenerationMode.STANDARD)
    include_points: bool = Field(
        False, description="Whether raw points are returned by the API"
    )
    result_type: ResultType | None = Field(
        None, description="Result type selected when the request was made"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def location(self) -> Coordinates:
        return Coordinates(lat=self.lat, lng=self.lng)


class Point(BaseModel):
    """A result coordinate with optional anomaly statistics."""

    coords: Coordinates
    z_score: float | None = Field(
        None, description="Standard deviations from the expected density"
    )
    is_attractor: bool | None = Field(
        None, description="Power anomalies: attractor (True) or void (False)"
    )

    model_config = ConfigDict(frozen=True)


class WinnerResult(BaseModel):
    """Best-scoring point for one result type."""

    circle_id: str = Field("", description="Circle the winner was found in")
    result: Point

    model_config = ConfigDict(frozen=True)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class GenerationMetadata(BaseModel):
    """Metadata attached to a generation response."""

    timestamp: datetime

    model_config = ConfigDict(frozen=True)

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)


class GenerationResponse(BaseModel):
    """Result object produced by the generation API.

    `circles` carries the auxiliary per-circle geometry. It is never
    persisted, so responses rebuilt from history always have it empty.
    """

    id: str = Field(..., min_length=1)
    request: GenerationRequest
    circles: list[dict] = Field(default_factory=list)
    winners: dict[ResultType, WinnerResult] = Field(default_factory=dict)
    metadata: GenerationMetadata

    model_config = ConfigDict(frozen=True)


class HistoryRecord(BaseModel):
    """One stored generation.

    Records are immutable; changing a field means replacing the record.
    """

    id: str = Field(..., min_length=1, description="Unique generation id")
    timestamp: datetime = Field(..., description="Completion time (UTC)")
    request: GenerationRequest
    winners: dict[ResultType, WinnerResult] = Field(default_factory=dict)
    name: str | None = Field(None, description="Optional user label")
    notes: str | None = Field(None, description="Optional user notes")
    favorite: bool = Field(False, description="Marked as favorite")

    model_config = ConfigDict(frozen=True)

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def winner(self, result_type: ResultType | str) -> WinnerResult | None:
        """Return the winner for a result type, if the generation found one."""
        return self.winners.get(ResultType(result_type))

    def primary_winner(self) -> WinnerResult | None:
        """Winner shown in history listings: attractor, blind spot, then any."""
        for result_type in (ResultType.ATTRACTOR, ResultType.BLIND_SPOT):
            if result_type in self.winners:
                return self.winners[result_type]
        return next(iter(self.winners.values()), None)


class ImportReport(BaseModel):
    """Outcome of a merge-import or bulk import."""

    accepted: int = Field(0, ge=0, description="New records kept after the cap")
    duplicates: int = Field(0, ge=0, description="Ids already present")
    malformed: int = Field(0, ge=0, description="Entries that failed to decode")
    evicted: int = Field(
        0, ge=0, description="Previously stored records dropped by the cap"
    )
    persisted: bool = Field(True, description="Whether the flush succeeded")

    model_config = ConfigDict(frozen=True)

    @property
    def skipped(self) -> int:
        return self.duplicates + self.malformed


class ReplayState(BaseModel):
    """Map and form state reconstructed from a stored record."""

    record_id: str
    center: Coordinates
    zoom: int = REPLAY_ZOOM
    radius_meters: float = Field(..., description="Canonical radius (m)")
    radius_display: float = Field(..., description="Radius in the active unit")
    radius_unit: str
    radius_text: str
    mode: GenerationMode
    backend: str
    result_type: ResultType
    response: GenerationResponse
    winner: WinnerResult | None = None
    map_url: str | None = None

    model_config = ConfigDict(frozen=True)


class SharedView(BaseModel):
    """Form state carried by a share link."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    radius: float | None = Field(None, gt=0)
    mode: GenerationMode | None = None
    backend: str | None = None
    result_type: ResultType | None = None

    model_config = ConfigDict(frozen=True)
