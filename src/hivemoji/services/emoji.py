"""EmojiService — CLI-facing authoring operations (sniff, build, delete)."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from hivemoji.domain.errors import (
    FormatError,
    InvalidDimensions,
    TooLarge,
    ValidationError,
)
from hivemoji.domain.limits import DEFAULT_LIMITS, Limits
from hivemoji.domain.sniff import sniff
from hivemoji.services.authoring import UploadPlan, build_delete, build_upload
from hivemoji.services.result import ErrorCode, ServiceResult


def error_code(exc: FormatError | ValidationError) -> ErrorCode:
    """Map an authoring error onto its ServiceResult code."""
    if isinstance(exc, InvalidDimensions):
        return ErrorCode.INVALID_DIMENSIONS
    if isinstance(exc, FormatError):
        return ErrorCode.UNSUPPORTED_FORMAT
    if isinstance(exc, TooLarge):
        return ErrorCode.TOO_LARGE
    return ErrorCode.INVALID_NAME


def _plan_data(plan: UploadPlan) -> dict[str, Any]:
    bodies = plan.bodies
    return {
        "name": plan.name,
        "chunked": plan.chunked,
        "upload_id": plan.upload_id,
        "records": len(bodies),
        "size": plan.size,
        "payloads": bodies,
    }


class EmojiService:
    """Image inspection and payload planning for one set of limits."""

    def __init__(self, limits: Limits = DEFAULT_LIMITS) -> None:
        self._limits = limits

    def sniff(self, path: Path) -> ServiceResult:
        data = path.read_bytes()
        try:
            info = sniff(data)
        except FormatError as exc:
            return ServiceResult.failure(
                "sniff", error_code(exc), str(exc), detail={"path": str(path)}
            )
        return ServiceResult.success(
            "sniff",
            {
                "path": str(path),
                "mime": info.mime,
                "width": info.width,
                "height": info.height,
                "animated": info.animated,
                "loop": info.loop,
                "bytes": len(data),
            },
        )

    def build(
        self,
        name: str,
        path: Path,
        *,
        fallback: Path | None = None,
        animated: bool = False,
        loop: bool = False,
    ) -> ServiceResult:
        """Plan an upload of *path* (and optional *fallback*) as *name*."""
        try:
            plan = build_upload(
                name,
                path.read_bytes(),
                fallback=fallback.read_bytes() if fallback is not None else None,
                animated=animated,
                loop=loop,
                limits=self._limits,
            )
        except (FormatError, ValidationError) as exc:
            return ServiceResult.failure("build", error_code(exc), str(exc))
        warnings = []
        if plan.chunked:
            warnings.append(f"Upload needs {len(plan.payloads)} records; broadcast them in order")
        return ServiceResult.success("build", _plan_data(plan), warnings=warnings)

    def delete(self, name: str) -> ServiceResult:
        try:
            plan = build_delete(name)
        except ValidationError as exc:
            return ServiceResult.failure("delete", error_code(exc), str(exc))
        return ServiceResult.success("delete", _plan_data(plan))
