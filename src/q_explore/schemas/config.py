"""Display settings schema."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from q_explore.schemas.defaults import (
    DEFAULT_BACKEND,
    DEFAULT_MAP_PROVIDER,
    DEFAULT_RADIUS_METERS,
    DEFAULT_UNIT_SYSTEM,
)


class DisplaySettings(BaseModel):
    """User display preferences persisted in the settings slot.

    The default radius is stored in meters regardless of `units`; the
    presentation layer converts it for the radius control. Blobs written by
    the browser client use camelCase keys, so both spellings load.
    """

    units: Literal["metric", "imperial"] = Field(
        DEFAULT_UNIT_SYSTEM,
        description="Measurement system used for displayed distances",
    )
    default_radius_meters: float = Field(
        DEFAULT_RADIUS_METERS,
        gt=0,
        validation_alias=AliasChoices("default_radius_meters", "defaultRadiusMeters"),
        description="Radius pre-filled in the generate form (m)",
    )
    default_backend: str = Field(
        DEFAULT_BACKEND,
        min_length=1,
        validation_alias=AliasChoices("default_backend", "defaultBackend"),
        description="Randomness backend pre-selected in the generate form",
    )
    map_provider: Literal["google", "openstreetmap", "apple"] = Field(
        DEFAULT_MAP_PROVIDER,
        validation_alias=AliasChoices("map_provider", "mapProvider"),
        description="Provider used for external map links",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)
