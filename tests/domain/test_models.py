"""Tests for EmojiDefinition and Registry."""

from __future__ import annotations

import json

import pytest

from hivemoji.domain.models import EmojiDefinition, EmojiFallback, Registry

OWNER = "alice"


def _entry(name: str, **kwargs: object) -> EmojiDefinition:
    defaults: dict[str, object] = {"mime": "image/png", "width": 1, "height": 1, "data": b"x"}
    return EmojiDefinition(owner=OWNER, name=name, **{**defaults, **kwargs})


class TestEmojiDefinition:
    def test_frozen(self) -> None:
        entry = _entry("smile")
        with pytest.raises(Exception):
            entry.name = "other"  # type: ignore[misc]

    def test_bookkeeping_not_serialized(self) -> None:
        entry = _entry("smile", sequence=4, fallback_sequence=4, upload_id="u1")
        dumped = json.loads(entry.model_dump_json())
        assert "sequence" not in dumped
        assert "upload_id" not in dumped
        assert dumped["data"] == "eA=="

    def test_tombstone(self) -> None:
        tomb = EmojiDefinition.tombstone(OWNER, "smile", 3)
        assert tomb.deleted
        assert tomb.sequence == 3
        assert not tomb.renderable

    def test_select_image_prefers_fallback_without_animation(self) -> None:
        entry = _entry("party", animated=True, fallback=EmojiFallback(mime="image/png", data=b"s"))
        assert entry.select_image() == ("image/png", b"x")
        assert entry.select_image(allow_animation=False) == ("image/png", b"s")

    def test_select_image_static_ignores_fallback(self) -> None:
        entry = _entry("still", animated=False, fallback=EmojiFallback(mime="image/gif", data=b"s"))
        assert entry.select_image(allow_animation=False) == ("image/png", b"x")


class TestRegistry:
    def test_mapping_and_live_view(self) -> None:
        tomb = EmojiDefinition.tombstone(OWNER, "gone", 1)
        registry = Registry(OWNER, {"b": _entry("b"), "a": _entry("a"), "gone": tomb})
        assert len(registry) == 3
        assert list(registry.live()) == ["a", "b"]
        assert registry.lookup("gone") is None
        assert registry.owner == OWNER

    @pytest.mark.parametrize(
        ("names", "expected"),
        [(None, True), ([], True), (["a"], True), (["gone"], True), (["a", "zzz"], False)],
    )
    def test_satisfies(self, names: list[str] | None, expected: bool) -> None:
        tomb = EmojiDefinition.tombstone(OWNER, "gone", 1)
        registry = Registry(OWNER, {"a": _entry("a"), "gone": tomb})
        assert registry.satisfies(names) is expected

    def test_seed_entries_reset_sequence(self) -> None:
        registry = Registry(OWNER, {"a": _entry("a", sequence=8, fallback_sequence=8)})
        seeded = registry.seed_entries()
        assert seeded["a"].sequence == -1
        assert seeded["a"].fallback_sequence == -1
        assert registry["a"].sequence == 8
