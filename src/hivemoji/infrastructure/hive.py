"""Hive node transport — fetch an owner's custom_json history over JSON-RPC.

Uses ``condenser_api.get_account_history``, paging backwards from the newest
entry. Nodes return history in two shapes depending on API flavour:

* legacy: ``["custom_json", {"id": ..., "json": ...}]``
* appbase: ``{"type": "custom_json_operation", "value": {...}}``

Both are normalized into :class:`~hivemoji.domain.interpreter.LogRecord`.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from typing import Any, Protocol

import httpx

from hivemoji.domain.errors import Timeout, TransportError
from hivemoji.domain.interpreter import LogRecord

logger = logging.getLogger(__name__)

DEFAULT_NODE_URL = "https://api.hive.blog"

# Operation bit for custom_json in the account-history filter mask.
CUSTOM_JSON_FILTER_LOW = 1 << 18

_CUSTOM_JSON_NAMES = frozenset({"custom_json", "custom_json_operation"})


class LogTransport(Protocol):
    """Anything that can produce an owner's raw record log."""

    async def fetch_log(self, owner: str) -> list[LogRecord]: ...


# ---------------------------------------------------------------------------
# History entry parsing
# ---------------------------------------------------------------------------


def _unwrap_op(op: Any) -> tuple[str, dict[str, Any]] | None:
    if isinstance(op, list | tuple) and len(op) == 2 and isinstance(op[1], dict):
        return str(op[0]), op[1]
    if isinstance(op, dict) and isinstance(op.get("value"), dict):
        return str(op.get("type", "")), op["value"]
    return None


def parse_history_entry(entry: Any) -> LogRecord | None:
    """Turn one ``[index, {..., "op": ...}]`` history item into a record.

    Returns None for anything that is not a custom_json operation or is
    shaped unexpectedly.
    """
    if not isinstance(entry, list | tuple) or len(entry) != 2:
        return None
    position, body = entry
    if not isinstance(position, int) or not isinstance(body, dict):
        return None
    unwrapped = _unwrap_op(body.get("op"))
    if unwrapped is None:
        return None
    op_name, value = unwrapped
    if op_name not in _CUSTOM_JSON_NAMES:
        return None

    payload = value.get("json", "")
    if not isinstance(payload, str | dict):
        return None
    authors = tuple(
        itertools.chain(
            value.get("required_posting_auths") or (),
            value.get("required_auths") or (),
        )
    )
    return LogRecord(
        position=position,
        custom_id=str(value.get("id", "")),
        payload=payload,
        authors=authors,
    )


def parse_history(entries: Iterable[Any]) -> list[LogRecord]:
    records = []
    for entry in entries:
        record = parse_history_entry(entry)
        if record is not None:
            records.append(record)
    return records


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class HiveHistoryTransport:
    """Fetches account history from a Hive API node.

    Pages of *history_limit* entries are requested newest first, up to
    *max_pages* pages. When *custom_json_only* is set, the node filters
    server-side so every page is dense with candidate records.
    """

    def __init__(
        self,
        url: str = DEFAULT_NODE_URL,
        *,
        timeout: float = 10.0,
        history_limit: int = 1000,
        max_pages: int = 10,
        custom_json_only: bool = True,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.history_limit = history_limit
        self.max_pages = max_pages
        self.custom_json_only = custom_json_only
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_ids = itertools.count(1)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HiveHistoryTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _call(self, method: str, params: list[Any]) -> Any:
        body = {"jsonrpc": "2.0", "id": next(self._request_ids), "method": method, "params": params}
        try:
            response = await self._client.post(self.url, json=body)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise Timeout(f"{method} timed out against {self.url}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} failed against {self.url}: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{method} returned invalid JSON") from exc

        if not isinstance(data, dict):
            raise TransportError(f"{method} returned an unexpected body")
        if data.get("error"):
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise TransportError(f"{method} error: {message}")
        return data.get("result")

    async def fetch_page(self, owner: str, start: int, limit: int) -> list[Any]:
        params: list[Any] = [owner, start, limit]
        if self.custom_json_only:
            params.append(CUSTOM_JSON_FILTER_LOW)
        result = await self._call("condenser_api.get_account_history", params)
        if not isinstance(result, list):
            raise TransportError("get_account_history returned a non-list result")
        return result

    async def fetch_log(self, owner: str) -> list[LogRecord]:
        """Fetch the owner's custom_json records, oldest first."""
        entries: list[Any] = []
        start = -1
        for _ in range(self.max_pages):
            limit = self.history_limit if start < 0 else min(self.history_limit, start + 1)
            page = await self.fetch_page(owner, start, limit)
            if not page:
                break
            entries.extend(page)
            positions = [item[0] for item in page if isinstance(item, list | tuple) and item]
            lowest = min((p for p in positions if isinstance(p, int)), default=0)
            if lowest <= 0 or len(page) < limit:
                break
            start = lowest - 1

        records = parse_history(entries)
        records.sort(key=lambda record: record.position)
        logger.debug("Fetched %d custom_json records for %s", len(records), owner)
        return records
