"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, hivemoji.toml only contains overrides.
An empty file (or none at all) is a valid configuration.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from hivemoji.domain.limits import Limits

# --- hivemoji.toml sections ---


class ProtocolConfig(BaseModel):
    """[protocol] section."""

    model_config = {"frozen": True}

    id: str = "hivemoji"


class LimitsConfig(BaseModel):
    """[limits] section."""

    model_config = {"frozen": True}

    max_record_bytes: int = Field(default=8 * 1024, gt=0)
    max_inline_bytes: int = Field(default=6000, gt=0)
    max_fragment_bytes: int = Field(default=4 * 1024, gt=0)
    max_fragments: int = Field(default=50, gt=0)
    max_total_bytes: int = Field(default=100 * 1024, gt=0)
    default_dimension: int = Field(default=32, gt=0)

    def to_limits(self) -> Limits:
        return Limits(**self.model_dump())


class CacheConfig(BaseModel):
    """[cache] section."""

    model_config = {"frozen": True}

    enabled: bool = True
    memory_ttl_seconds: float = 5 * 60
    persistent_ttl_seconds: float = 24 * 60 * 60
    path: Path | None = None
    # Overrides the package level for cache.* events only.
    log_level: Literal["debug", "info", "warning", "error"] | None = None


class NodeConfig(BaseModel):
    """[node] section."""

    model_config = {"frozen": True}

    url: str = "https://api.hive.blog"
    timeout_seconds: float = 10.0
    history_limit: int = Field(default=1000, gt=0, le=1000)
    max_pages: int = Field(default=10, gt=0)
    custom_json_only: bool = True

