"""Tests for schema validation."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from q_explore.schemas import (
    DisplaySettings,
    GenerationMode,
    GenerationRequest,
    ImportReport,
    ResultType,
)
from tests.factories import create_record, create_request, create_winner


@pytest.mark.parametrize("raw", ["flower-power", "FlowerPower", " flower_power "])
def test_generation_mode_aliases(raw: str) -> None:
    assert GenerationMode(raw) is GenerationMode.FLOWER_POWER


@pytest.mark.parametrize("raw", ["blind-spot", "BlindSpot", "BLIND_SPOT"])
def test_result_type_aliases(raw: str) -> None:
    assert ResultType(raw) is ResultType.BLIND_SPOT


def test_request_defaults_and_bounds() -> None:
    request = GenerationRequest(lat=0, lng=0, radius=100)
    assert request.backend == "pseudo"
    assert request.mode is GenerationMode.STANDARD
    assert request.points == 10000
    assert request.location.lat == 0

    with pytest.raises(ValidationError):
        GenerationRequest(lat=0, lng=0, radius=0)
    with pytest.raises(ValidationError):
        GenerationRequest(lat=-91, lng=0, radius=1)


def test_records_are_immutable() -> None:
    record = create_record()
    with pytest.raises(ValidationError):
        record.name = "changed"


def test_record_timestamp_is_timezone_aware() -> None:
    record = create_record(timestamp=datetime(2025, 6, 1, 12, 0))
    assert record.timestamp.utcoffset().total_seconds() == 0


def test_primary_winner_preference() -> None:
    blind = create_winner(lat=1, lng=1)
    power = create_winner(lat=2, lng=2)
    attractor = create_winner(lat=3, lng=3)

    assert create_record(winners={}).primary_winner() is None
    assert create_record(winners={ResultType.POWER: power}).primary_winner() == power
    assert (
        create_record(
            winners={ResultType.POWER: power, ResultType.BLIND_SPOT: blind}
        ).primary_winner()
        == blind
    )
    assert (
        create_record(
            winners={ResultType.BLIND_SPOT: blind, ResultType.ATTRACTOR: attractor}
        ).primary_winner()
        == attractor
    )


def test_record_winner_lookup_accepts_strings() -> None:
    record = create_record(request=create_request())
    assert record.winner("attractor") is not None
    assert record.winner(ResultType.VOID) is None


def test_import_report_skipped() -> None:
    assert ImportReport(duplicates=2, malformed=3).skipped == 5


def test_display_settings_defaults() -> None:
    settings = DisplaySettings()
    assert settings.units == "metric"
    assert settings.default_radius_meters == 3000
    assert settings.default_backend == "pseudo"
    assert settings.map_provider == "google"
