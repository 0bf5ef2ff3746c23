"""Server history sync.

Fetches the server-held generation history and merges it into the local
store. The coroutine suspends only on the HTTP call; the merge itself runs
to completion without yielding, after the whole payload has been received
and validated. Cancelling (or timing out) before that point leaves the store
exactly as it was.

Callers must not start a second sync while one is in flight.
"""

import logging
from typing import Any

import httpx

from q_explore.errors import ImportFormatError
from q_explore.schemas import ImportReport
from q_explore.services.codec import from_response
from q_explore.services.history import HistoryStore

logger = logging.getLogger(__name__)

HISTORY_ENDPOINT = "/api/history"
DEFAULT_TIMEOUT = 10.0


def extract_entries(data: Any) -> list:
    """Pull the entry list out of a server history payload.

    Accepts ``{"entries": [...], "count": n}`` or a bare list.

    Raises:
        ImportFormatError: If no entry list can be found.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("entries"), list):
        return data["entries"]
    raise ImportFormatError("Server history payload has no 'entries' list")


async def fetch_server_history(
    base_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list:
    """GET the server history and return its raw entries.

    Raises:
        httpx.HTTPError: On transport failure or a non-2xx response.
        ImportFormatError: If the body is not JSON or has no entry list.
    """
    url = f"{base_url.rstrip('/')}{HISTORY_ENDPOINT}"
    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as owned:
            resp = await owned.get(url)
    else:
        resp = await client.get(url)
    resp.raise_for_status()

    try:
        data = resp.json()
    except ValueError as e:
        raise ImportFormatError(f"Server history is not JSON: {e}") from e
    return extract_entries(data)


async def sync_from_server(
    store: HistoryStore,
    base_url: str,
    client: httpx.AsyncClient | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ImportReport:
    """Merge the server's history into `store`.

    Returns:
        The merge report. Entries already stored locally count as duplicates.
    """
    entries = await fetch_server_history(base_url, client=client, timeout=timeout)
    logger.info(f"Fetched {len(entries)} server history entries from {base_url}")
    return store.merge_import(entries, decoder=from_response)
