"""Tests for EmojiService result contracts."""

from __future__ import annotations

from pathlib import Path

from hivemoji.domain.limits import Limits
from hivemoji.services.emoji import EmojiService
from tests.conftest import gif_bytes, png_bytes


class TestSniff:
    def test_ok(self, tmp_path: Path) -> None:
        path = tmp_path / "party.gif"
        path.write_bytes(gif_bytes(16, 8, animated=True))
        result = EmojiService().sniff(path)
        assert result.ok
        assert result.data["mime"] == "image/gif"
        assert result.data["animated"] is True

    def test_unsupported(self, tmp_path: Path) -> None:
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        result = EmojiService().sniff(path)
        assert not result.ok
        assert result.error.code == "UNSUPPORTED_FORMAT"

    def test_invalid_dimensions(self, tmp_path: Path) -> None:
        path = tmp_path / "zero.png"
        path.write_bytes(png_bytes(0, 5))
        assert EmojiService().sniff(path).error.code == "INVALID_DIMENSIONS"


class TestBuild:
    def test_inline(self, tmp_path: Path) -> None:
        path = tmp_path / "smile.png"
        path.write_bytes(png_bytes())
        result = EmojiService().build("smile", path)
        assert result.ok
        assert result.data["records"] == 1
        assert result.data["chunked"] is False
        assert result.warnings == []

    def test_chunked_warns_about_order(self, tmp_path: Path) -> None:
        path = tmp_path / "big.png"
        path.write_bytes(png_bytes(padding=9000))
        result = EmojiService().build("big", path)
        assert result.data["chunked"] is True
        assert result.warnings

    def test_invalid_name(self, tmp_path: Path) -> None:
        path = tmp_path / "smile.png"
        path.write_bytes(png_bytes())
        assert EmojiService().build("Bad", path).error.code == "INVALID_NAME"

    def test_too_large(self, tmp_path: Path) -> None:
        path = tmp_path / "big.png"
        path.write_bytes(png_bytes(padding=9000))
        result = EmojiService(Limits(max_total_bytes=5000)).build("big", path)
        assert result.error.code == "TOO_LARGE"

    def test_delete(self) -> None:
        result = EmojiService().delete("smile")
        assert result.ok
        assert result.data["payloads"] == ['{"version":1,"op":"delete","name":"smile"}']
