"""Command: describe one endpoint."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from apiforge.commands._base import ForgeCommand

if TYPE_CHECKING:
    from apiforge.commands._context import AppContext


@click.command(
    "inspect",
    cls=ForgeCommand,
    examples="""\
  apiforge inspect store.products.get_by_id
  apiforge --json inspect store.products.get_all""",
)
@click.argument("path")
@click.pass_obj
def inspect_cmd(app: AppContext, path: str) -> None:
    """Show the merged config, payload fields, and response shape of PATH."""
    from apiforge.services.catalog import CatalogService

    svc = CatalogService(app.tree, default_strategy=app.settings.transport.default_strategy)
    app.emit(svc.inspect(path))
