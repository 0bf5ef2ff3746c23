"""Tests for replaying stored generations."""

import pytest

from q_explore.errors import NotFound, UnknownUnit
from q_explore.schemas import DisplaySettings, GenerationMode, ResultType
from q_explore.services.codec import encode
from q_explore.services.history import HistoryStore
from q_explore.services.replay import ReplayEngine, rebuild_response
from tests.factories import at, create_record, create_request, create_winner


@pytest.fixture
def engine(history: HistoryStore) -> ReplayEngine:
    history.add(create_record("A", t=10))
    return ReplayEngine(history)


def test_replay_restores_request_fields(history: HistoryStore) -> None:
    request = create_request(
        lat=51.5, lng=-0.12, radius=1609.34, backend="anu", mode=GenerationMode.FLOWER_POWER
    )
    history.add(create_record("trip", t=42, request=request))

    state = ReplayEngine(history).replay("trip")

    assert state.record_id == "trip"
    assert (state.center.lat, state.center.lng) == (51.5, -0.12)
    assert state.zoom == 13
    assert state.radius_meters == 1609.34
    assert state.mode == GenerationMode.FLOWER_POWER
    assert state.backend == "anu"
    assert state.response.request == request
    assert state.response.metadata.timestamp == at(42)


def test_replayed_response_has_no_circles(engine: ReplayEngine) -> None:
    assert engine.replay("A").response.circles == []


def test_replay_uses_metric_by_default(engine: ReplayEngine) -> None:
    state = engine.replay("A")
    assert state.radius_unit == "meters"
    assert state.radius_display == 3000
    assert state.radius_text == "3,000 m"


def test_replay_follows_current_unit_system(history: HistoryStore) -> None:
    history.add(create_record("A", t=1))
    current = {"settings": DisplaySettings()}
    engine = ReplayEngine(history, lambda: current["settings"])

    assert engine.replay("A").radius_text == "3,000 m"

    current["settings"] = DisplaySettings(units="imperial")
    state = engine.replay("A")
    assert state.radius_unit == "miles"
    assert state.radius_display == 1.9
    assert state.radius_text == "1.9 mi"
    # The canonical radius is never altered by the display unit
    assert state.radius_meters == 3000
    assert history.get("A").request.radius == 3000


def test_replay_unit_override(engine: ReplayEngine) -> None:
    state = engine.replay("A", unit="kilometers")
    assert state.radius_display == 3.0
    assert state.radius_text == "3.0 km"
    with pytest.raises(UnknownUnit):
        engine.replay("A", unit="leagues")


def test_replay_unknown_id(engine: ReplayEngine) -> None:
    with pytest.raises(NotFound):
        engine.replay("missing")


def test_replay_defaults_to_attractor(engine: ReplayEngine) -> None:
    state = engine.replay("A")
    assert state.result_type == ResultType.ATTRACTOR
    assert state.winner is not None
    assert state.winner.result.coords.lat == 40.72


def test_replay_uses_stored_result_type(history: HistoryStore) -> None:
    record = create_record(
        "V",
        request=create_request(result_type=ResultType.VOID),
        winners={
            ResultType.ATTRACTOR: create_winner(lat=1, lng=1),
            ResultType.VOID: create_winner(lat=2, lng=2, z_score=-2.0),
        },
    )
    history.add(record)

    state = ReplayEngine(history).replay("V")

    assert state.result_type == ResultType.VOID
    assert state.winner.result.coords.lat == 2


def test_replay_without_matching_winner(history: HistoryStore) -> None:
    history.add(create_record("empty", winners={}))
    state = ReplayEngine(history).replay("empty")
    assert state.winner is None
    assert state.map_url is None


@pytest.mark.parametrize(
    "provider,expected",
    [
        ("google", "https://www.google.com/maps/@40.72,-74.01,15z"),
        ("openstreetmap", "https://www.openstreetmap.org/#map=18/40.72/-74.01"),
        ("apple", "https://maps.apple.com/?ll=40.72,-74.01"),
    ],
)
def test_replay_map_url_follows_provider(
    history: HistoryStore, provider: str, expected: str
) -> None:
    history.add(create_record("A"))
    engine = ReplayEngine(history, lambda: DisplaySettings(map_provider=provider))
    assert engine.replay("A").map_url == expected


def test_replay_after_reload_matches_original(kv_store, history: HistoryStore) -> None:
    history.add(create_record("A", t=5, name="Lake"))
    before = ReplayEngine(history).replay("A")

    after = ReplayEngine(HistoryStore(kv_store)).replay("A")

    assert after == before


def test_rebuild_response_matches_encoded_record() -> None:
    record = create_record("A", t=3)
    response = rebuild_response(record)
    blob = encode(record)
    assert response.id == blob["id"]
    assert response.winners == record.winners
    assert response.circles == []
