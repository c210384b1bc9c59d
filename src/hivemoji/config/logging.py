"""Logging setup for hivemoji.

The cache manager emits dotted structlog events (``cache.hit``,
``cache.fetch``, ``cache.fallback``, ``cache.persist_failed``) under the
``hivemoji.cache`` logger; the transport and snapshot store log through
stdlib ``logging``. Both paths meet in one ``ProcessorFormatter`` on stderr,
rendered as console text or, with ``--log-json``, one JSON object per line.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

CACHE_LOGGER = "hivemoji.cache"

# Per-request chatter from the HTTP client and SQL engine.
_NOISY_LIBRARIES = ("httpx", "httpcore", "sqlalchemy.engine")


def summarize_bytes(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Replace raw byte values (image data, fragments) with their size."""
    for key, value in event_dict.items():
        if isinstance(value, (bytes, bytearray, memoryview)):
            event_dict[key] = f"<{len(value)} bytes>"
    return event_dict


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    cache_level: str | None = None,
) -> None:
    """Route hivemoji and library logs to stderr.

    Args:
        verbose: DEBUG for the whole ``hivemoji`` package instead of WARNING.
        log_json: Render JSON lines instead of console text.
        cache_level: Level name for ``cache.*`` events alone, e.g. ``"debug"``
            to trace hits and coalescing without the rest of the package.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        summarize_bytes,
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("hivemoji").setLevel(level)
    cache_logger = logging.getLogger(CACHE_LOGGER)
    if cache_level is None:
        cache_logger.setLevel(logging.NOTSET)
    else:
        cache_logger.setLevel(cache_level.upper())
    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
