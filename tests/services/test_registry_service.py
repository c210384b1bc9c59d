"""Tests for RegistryService result contracts."""

from __future__ import annotations

import asyncio

from hivemoji.domain.errors import TransportError
from hivemoji.services.cache import RegistryCache
from hivemoji.services.registry import RegistryService
from hivemoji.services.result import ServiceResult
from tests.conftest import FakeClock, FakeTransport, delete_v1, png_bytes, record, register_v1

OWNER = "alice"


def _resolve(transport: FakeTransport, clock: FakeClock, *names: str, **kwargs: object):
    service = RegistryService(RegistryCache(transport, clock=clock))
    return asyncio.run(service.resolve(OWNER, names, **kwargs))


def _seed(transport: FakeTransport) -> None:
    transport.logs[OWNER] = [
        record(0, register_v1("smile", png_bytes())),
        record(1, register_v1("wave", png_bytes())),
        record(2, delete_v1("wave")),
    ]


class TestResolve:
    def test_lists_live_entries(self, transport: FakeTransport, clock: FakeClock) -> None:
        _seed(transport)
        result = _resolve(transport, clock)
        assert result.ok
        assert [item["name"] for item in result.data["items"]] == ["smile"]
        assert result.data["items"][0]["bytes"] == len(png_bytes())

    def test_include_deleted(self, transport: FakeTransport, clock: FakeClock) -> None:
        _seed(transport)
        result = _resolve(transport, clock, include_deleted=True)
        assert [(i["name"], i["deleted"]) for i in result.data["items"]] == [
            ("smile", False),
            ("wave", True),
        ]

    def test_markers_in_text(self, transport: FakeTransport, clock: FakeClock) -> None:
        _seed(transport)
        result = _resolve(transport, clock, text="hello :smile: :nope:")
        assert result.ok
        assert result.data["count"] == 1
        assert result.warnings == ["Not found: nope"]

    def test_all_missing_is_not_found(self, transport: FakeTransport, clock: FakeClock) -> None:
        _seed(transport)
        result = _resolve(transport, clock, "wave")
        assert not result.ok
        assert result.error.code == "NOT_FOUND"
        assert result.error.detail["missing"] == ["wave"]

    def test_transport_error(self, transport: FakeTransport, clock: FakeClock) -> None:
        transport.fail = TransportError("node down")
        result = _resolve(transport, clock)
        assert isinstance(result, ServiceResult)
        assert result.error.code == "TRANSPORT_ERROR"


class TestClearCache:
    def test_without_store(self, transport: FakeTransport, clock: FakeClock) -> None:
        service = RegistryService(RegistryCache(transport, clock=clock))
        result = asyncio.run(service.clear_cache())
        assert result.ok
        assert result.data == {"owner": None, "removed": 0}
