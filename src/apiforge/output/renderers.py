"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from apiforge.output.console import create_console, get_output, style_for_method

if TYPE_CHECKING:
    from rich.console import Console

    from apiforge.services.result import ServiceResult

Renderer = Callable[..., None]


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
    """Minimal output: route paths for listings, the bare result for calls."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"
    if result.op == "routes":
        return "\n".join(item["path"] for item in result.data.get("items", []))
    if result.op == "call":
        return _dump(result.data.get("result"))
    return f"OK: {result.op}"


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, default=str)


def _status_line(console: Console, result: ServiceResult) -> None:
    console.print(Text("OK", style="forge.ok"), Text(f"  {result.op}", style="forge.op"))


def _field(console: Console, key: str, value: Any) -> None:
    if isinstance(value, (dict, list)):
        value = json.dumps(value, separators=(",", ":"), default=str)
    console.print(Text.assemble((f"  {key}: ", "forge.key"), str(value)))


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    console.print(
        Text("ERROR", style="forge.error"), Text(f"  {result.op}", style="forge.op"), " — ", msg
    )
    if err is None:
        return
    for failure in err.detail.get("failures", []):
        console.print(f"    [forge.error]{failure['field']}[/forge.error]: {failure['rule']}")
    if verbose and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            if k != "failures":
                console.print(f"    {k}: {v}")


def _render_routes(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Path", style="forge.path", no_wrap=True)
    table.add_column("Method")
    table.add_column("URL", style="forge.url")
    if verbose:
        table.add_column("Strategy")
    for item in result.data.get("items", []):
        method = Text(item["method"], style=style_for_method(item["method"]))
        row: list[Any] = [item["path"], method, item["url"]]
        if verbose:
            row.append(str(item.get("strategy") or ""))
        table.add_row(*row)
    console.print(table)


def _render_inspect(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    d = result.data
    console.print(
        Text(d["method"], style=style_for_method(d["method"])),
        Text(f" {d['url']}", style="forge.url"),
    )
    if d.get("description"):
        console.print(f"  {d['description']}")
    for key in ("path", "strategy", "timeout", "validation", "hooks", "headers"):
        if d.get(key) not in (None, [], {}):
            _field(console, key, d[key])

    if d.get("payload"):
        table = Table(show_header=True, pad_edge=False, expand=False, title="payload")
        table.add_column("Field", style="forge.path")
        table.add_column("Location")
        table.add_column("Rules")
        for spec in d["payload"]:
            rules = ", ".join(json.dumps(r, separators=(",", ":")) for r in spec["rules"])
            table.add_row(spec["name"], spec["location"], Text(rules))
        console.print(table)
    _field(console, "dto", d.get("dto"))


def _render_call(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _field(console, "path", result.data["path"])
    console.print(_dump(result.data.get("result")), markup=False)


def _render_dry_run(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    request = result.data["request"]
    console.print(
        Text(f"  {request['method']}", style=style_for_method(request["method"])),
        Text(request["url"], style="forge.url"),
    )
    for key in ("query", "headers", "body", "strategy", "timeout"):
        if request.get(key) not in (None, {}, []):
            _field(console, key, request[key])


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)


_OP_RENDERERS: dict[str, Renderer] = {
    "routes": _render_routes,
    "inspect": _render_inspect,
    "call": _render_call,
    "dry_run": _render_dry_run,
}
