"""Tests for merging the server-held history."""

import asyncio

import httpx
import pytest

from q_explore.errors import ImportFormatError
from q_explore.services.history import HistoryStore
from q_explore.services.sync import extract_entries, fetch_server_history, sync_from_server
from tests.factories import create_record, create_response_payload

BASE_URL = "http://localhost:3000"


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)


def serve_json(payload, status_code: int = 200):
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(status_code, json=payload)

    handler.seen = seen
    return handler


def run_sync(store: HistoryStore, handler):
    async def main():
        async with make_client(handler) as client:
            return await sync_from_server(store, BASE_URL, client=client)

    return asyncio.run(main())


def test_extract_entries_shapes() -> None:
    assert extract_entries([1, 2]) == [1, 2]
    assert extract_entries({"entries": [1], "count": 1}) == [1]
    with pytest.raises(ImportFormatError):
        extract_entries({"count": 0})
    with pytest.raises(ImportFormatError):
        extract_entries("entries")


def test_sync_merges_server_entries(history: HistoryStore) -> None:
    history.add(create_record("local", t=100))
    entries = [
        {**create_response_payload(id="srv-1", t=10), "favorite": True},
        {"response": create_response_payload(id="srv-2", t=20), "name": "Walk"},
    ]
    handler = serve_json({"entries": entries, "count": 2})

    report = run_sync(history, handler)

    assert handler.seen == ["/api/history"]
    assert report.accepted == 2
    assert [r.id for r in history.list()] == ["local", "srv-2", "srv-1"]
    assert history.get("srv-1").favorite is True
    assert history.get("srv-2").name == "Walk"


def test_sync_twice_is_idempotent(history: HistoryStore) -> None:
    handler = serve_json([create_response_payload(id=f"srv-{i}", t=i) for i in range(5)])

    run_sync(history, handler)
    first = list(history.list())
    report = run_sync(history, handler)

    assert list(history.list()) == first
    assert report.accepted == 0
    assert report.duplicates == 5


def test_sync_counts_malformed_entries(history: HistoryStore) -> None:
    broken = create_response_payload(id="bad")
    del broken["request"]
    handler = serve_json([create_response_payload(id="ok"), broken])

    report = run_sync(history, handler)

    assert report.accepted == 1
    assert report.malformed == 1


def test_sync_http_error_leaves_store_unchanged(history: HistoryStore) -> None:
    history.add(create_record("local", t=1))
    handler = serve_json({"error": "boom"}, status_code=500)

    with pytest.raises(httpx.HTTPStatusError):
        run_sync(history, handler)

    assert [r.id for r in history.list()] == ["local"]


def test_sync_rejects_non_json_body(history: HistoryStore) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(ImportFormatError):
        run_sync(history, handler)
    assert len(history) == 0


def test_fetch_uses_base_url_without_double_slash() -> None:
    handler = serve_json({"entries": [], "count": 0})

    async def main():
        async with make_client(handler) as client:
            return await fetch_server_history(BASE_URL + "/", client=client)

    assert asyncio.run(main()) == []
    assert handler.seen == ["/api/history"]


def test_fetch_transport_error_propagates(history: HistoryStore) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(httpx.ConnectError):
        run_sync(history, handler)
    assert history.is_persistent
