"""RegistryService — CLI-facing registry resolution and cache maintenance.

Wraps a :class:`~hivemoji.services.cache.RegistryCache`. Methods are
coroutines; the CLI drives them with ``asyncio.run``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from hivemoji.domain.errors import TransportError
from hivemoji.domain.names import extract_markers
from hivemoji.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from hivemoji.domain.models import EmojiDefinition
    from hivemoji.services.cache import RegistryCache


def describe(entry: EmojiDefinition) -> dict[str, Any]:
    """Summarize a definition without its image bytes."""
    return {
        "name": entry.name,
        "mime": entry.mime or None,
        "width": entry.width or None,
        "height": entry.height or None,
        "animated": entry.animated,
        "loop": entry.loop,
        "bytes": len(entry.data),
        "fallback": entry.fallback.mime if entry.fallback is not None else None,
        "deleted": entry.deleted,
    }


class RegistryService:
    def __init__(self, cache: RegistryCache) -> None:
        self._cache = cache

    async def resolve(
        self,
        owner: str,
        names: Sequence[str] = (),
        *,
        text: str | None = None,
        include_deleted: bool = False,
    ) -> ServiceResult:
        """Resolve *owner*'s registry, requiring *names* and any ``:markers:`` in *text*.

        Fails with ``NOT_FOUND`` only when every requested name is missing;
        a partial miss is reported as a warning.
        """
        wanted = list(dict.fromkeys([*names, *extract_markers(text or "")]))
        try:
            registry = await self._cache.get(owner, wanted or None)
        except TransportError as exc:
            return ServiceResult.failure(
                "resolve", ErrorCode.TRANSPORT_ERROR, str(exc), detail={"owner": owner}
            )

        missing = [name for name in wanted if registry.lookup(name) is None]
        if wanted and len(missing) == len(wanted):
            return ServiceResult.failure(
                "resolve",
                ErrorCode.NOT_FOUND,
                f"No live emoji named {', '.join(missing)} for {owner}",
                detail={"owner": owner, "missing": missing},
            )

        if wanted:
            entries = [registry[name] for name in wanted if name not in missing]
        elif include_deleted:
            entries = [entry for _, entry in registry.sorted_items()]
        else:
            entries = list(registry.live().values())

        return ServiceResult.success(
            "resolve",
            {
                "owner": owner,
                "count": len(entries),
                "items": [describe(entry) for entry in entries],
            },
            warnings=[f"Not found: {name}" for name in missing],
        )

    async def clear_cache(self, owner: str | None = None) -> ServiceResult:
        removed = await self._cache.clear(owner)
        return ServiceResult.success("cache_clear", {"owner": owner, "removed": removed})
