"""Tests for name rules, mime allow-list and marker extraction."""

from __future__ import annotations

import pytest

from hivemoji.domain.errors import ValidationError
from hivemoji.domain.names import (
    extract_markers,
    is_valid_name,
    normalize_mime,
    normalize_owner,
    validate_name,
)


class TestNames:
    @pytest.mark.parametrize("name", ["smile", "a", "x_1", "a" * 32])
    def test_valid(self, name: str) -> None:
        assert is_valid_name(name)

    @pytest.mark.parametrize("name", ["", "Smile", "has space", "a" * 33, "dash-ed", "ok\n"])
    def test_invalid(self, name: str) -> None:
        assert not is_valid_name(name)

    def test_validate_raises(self) -> None:
        with pytest.raises(ValidationError):
            validate_name("Nope")


class TestMime:
    def test_prefix_match_is_case_insensitive(self) -> None:
        assert normalize_mime("IMAGE/PNG") == "image/png"
        assert normalize_mime("image/gif; x=1") == "image/gif; x=1"

    @pytest.mark.parametrize("mime", ["image/svg+xml", "text/html", ""])
    def test_rejected(self, mime: str) -> None:
        assert normalize_mime(mime) is None


class TestOwners:
    @pytest.mark.parametrize(
        ("raw", "owner"),
        [
            ("alice", "alice"),
            ("@Alice", "alice"),
            (" hive-io ", "hive-io"),
            ("abc.b1c.dev", "abc.b1c.dev"),
        ],
    )
    def test_normalized(self, raw: str, owner: str) -> None:
        assert normalize_owner(raw) == owner

    @pytest.mark.parametrize("raw", ["ab", "1alice", "alice_x", "a" * 17, "alice..bob", "al.bob"])
    def test_rejected(self, raw: str) -> None:
        with pytest.raises(ValidationError):
            normalize_owner(raw)


class TestMarkers:
    def test_distinct_in_order(self) -> None:
        assert extract_markers("hi :wave: and :smile: then :wave:") == ["wave", "smile"]

    def test_ignores_invalid(self) -> None:
        assert extract_markers(":Upper: :ok:") == ["ok"]
