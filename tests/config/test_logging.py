"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from hivemoji.config.logging import CACHE_LOGGER, configure_logging


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    pkg = logging.getLogger("hivemoji")
    pkg_level = pkg.level
    cache = logging.getLogger(CACHE_LOGGER)
    cache_level = cache.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    pkg.setLevel(pkg_level)
    cache.setLevel(cache_level)


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("hivemoji").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_quiets_http_and_sql_libraries(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        structlog.get_logger("hivemoji.cache").warning("cache.fallback", owner="alice")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "cache.fallback"
        assert parsed["owner"] == "alice"
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "hivemoji.cache"
        assert "timestamp" in parsed

    def test_stdlib_loggers_share_renderer(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("hivemoji.infrastructure.hive").info("fetched %d", 3)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "fetched 3"
        assert parsed["level"] == "info"

    def test_debug_suppressed_when_not_verbose(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        structlog.get_logger("hivemoji.cache").debug("cache.hit", owner="alice")
        assert capfd.readouterr().err == ""


class TestCacheEvents:
    def test_cache_level_traces_cache_alone(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True, cache_level="debug")
        structlog.get_logger(CACHE_LOGGER).debug("cache.coalesced", owner="alice")
        logging.getLogger("hivemoji.infrastructure.hive").debug("page fetched")
        lines = capfd.readouterr().err.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["cache.coalesced"]

    def test_cache_level_can_silence_warnings(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True, cache_level="error")
        structlog.get_logger(CACHE_LOGGER).warning("cache.fallback", owner="alice")
        assert capfd.readouterr().err == ""

    def test_reconfigure_clears_cache_override(self) -> None:
        configure_logging(cache_level="debug")
        configure_logging()
        assert logging.getLogger(CACHE_LOGGER).level == logging.NOTSET

    def test_image_bytes_logged_as_size(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(log_json=True)
        structlog.get_logger(CACHE_LOGGER).warning("cache.fallback", data=b"\x89PNG" * 4)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["data"] == "<16 bytes>"
