"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from hivemoji.output.console import create_console, get_output

if TYPE_CHECKING:
    from rich.console import Console

    from hivemoji.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"

    items = result.data.get("items")
    if isinstance(items, list):
        return "\n".join(str(item.get("name", "")) for item in items)
    payloads = result.data.get("payloads")
    if isinstance(payloads, list):
        return "\n".join(payloads)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="hm.ok"), Text(f"  {result.op}", style="hm.op"))


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="hm.key")
    if key == "name":
        v = Text(str(value), style="hm.name")
    elif key == "mime":
        v = Text(str(value), style="hm.mime")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v)


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    code = f" [{err.code}]" if err else ""
    console.print(
        Text("ERROR", style="hm.error"), Text(f"  {result.op}{code}", style="hm.op"), Text(msg)
    )
    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}", markup=False)


# ── Renderers ─────────────────────────────────────────────────────────


def _render_sniff(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key in ("path", "mime", "width", "height", "animated", "loop", "bytes"):
        if key in result.data:
            _field(console, key, result.data[key])


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render build/delete plans: summary fields, then each record body."""
    d = result.data
    _status_line(console, result)
    for key in ("name", "chunked", "upload_id", "records", "size"):
        if d.get(key) is not None:
            _field(console, key, d[key])
    payloads = d.get("payloads", [])
    console.print()
    for index, body in enumerate(payloads, start=1):
        if len(payloads) > 1:
            console.print(Text(f"#{index}/{len(payloads)}", style="hm.key"))
        console.print(Text(body), soft_wrap=True)


def _render_registry(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    items = d.get("items", [])
    table = Table(title=f"{d.get('owner', '?')}", show_lines=False)
    table.add_column("Name", style="hm.name", no_wrap=True)
    table.add_column("Mime", style="hm.mime")
    table.add_column("Size", justify="right")
    table.add_column("Bytes", justify="right")
    table.add_column("Animated")
    if verbose:
        table.add_column("Fallback")

    for item in items:
        size = f"{item['width']}x{item['height']}" if item.get("width") else "-"
        row = [
            Text(item["name"], style="hm.deleted" if item.get("deleted") else "hm.name"),
            item.get("mime") or "-",
            size,
            str(item.get("bytes", 0)),
            "yes" if item.get("animated") else "",
        ]
        if verbose:
            row.append(item.get("fallback") or "")
        table.add_row(*row)

    console.print(table)
    console.print(f"\n{d.get('count', len(items))} emoji")


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "sniff": _render_sniff,
    "build": _render_plan,
    "delete": _render_plan,
    "resolve": _render_registry,
    "cache_clear": _render_generic,
}
