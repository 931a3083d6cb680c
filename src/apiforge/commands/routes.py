"""Command: list the endpoints of the loaded definition tree."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from apiforge.commands._base import ForgeCommand

if TYPE_CHECKING:
    from apiforge.commands._context import AppContext


@click.command(
    cls=ForgeCommand,
    examples="""\
  apiforge routes
  apiforge routes --prefix store.products
  apiforge -d myapp.api:store routes
  apiforge --json routes""",
)
@click.option("--prefix", default=None, help="Only list endpoints under this dotted path.")
@click.pass_obj
def routes(app: AppContext, prefix: str | None) -> None:
    """List every endpoint with its method and URL template."""
    from apiforge.services.catalog import CatalogService

    svc = CatalogService(app.tree, default_strategy=app.settings.transport.default_strategy)
    app.emit(svc.list_routes(prefix=prefix))
