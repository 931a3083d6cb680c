"""Command: execute an endpoint from the command line."""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any

import click

from apiforge.commands._base import ForgeCommand

if TYPE_CHECKING:
    from apiforge.commands._context import AppContext


def parse_params(params: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``key=value`` pairs into a payload.

    Values are decoded as JSON when possible (``5``, ``true``, ``[1,2]``)
    and kept as plain strings otherwise.
    """
    payload: dict[str, Any] = {}
    for param in params:
        key, sep, raw = param.partition("=")
        if not sep or not key:
            msg = f"Expected key=value, got {param!r}"
            raise click.BadParameter(msg, param_hint="'-p' / '--param'")
        try:
            payload[key] = json.loads(raw)
        except json.JSONDecodeError:
            payload[key] = raw
    return payload


@click.command(
    cls=ForgeCommand,
    examples="""\
  apiforge call store.products.get_all
  apiforge call store.products.get_all -p limit=5
  apiforge call store.products.get_by_id -p id=3
  apiforge call store.products.get_all -p limit=5 --dry-run
  apiforge call store.products.get_all --timeout 2.5""",
)
@click.argument("path")
@click.option("-p", "--param", "params", multiple=True, help="Payload field as key=value.")
@click.option("--dry-run", is_flag=True, help="Build the request without dispatching it.")
@click.option("--timeout", type=float, default=None, help="Cancel the call after N seconds.")
@click.pass_obj
def call(
    app: AppContext,
    path: str,
    params: tuple[str, ...],
    dry_run: bool,
    timeout: float | None,
) -> None:
    """Run the endpoint at PATH and print its projected result."""
    from apiforge.services.call import CallService

    payload = parse_params(params)
    svc = CallService(app.client)
    if dry_run:
        result = asyncio.run(svc.dry_run(path, payload))
    else:
        result = asyncio.run(svc.call(path, payload, timeout=timeout))
    app.emit(result)
