"""Root CLI group for apiforge with global flags and command registration."""

from __future__ import annotations

import click

from apiforge import __version__
from apiforge.commands import register_commands
from apiforge.commands._base import ForgeGroup
from apiforge.commands._context import AppContext
from apiforge.config.settings import ForgeSettings


@click.group(
    cls=ForgeGroup,
    invoke_without_command=True,
    examples="""\
  apiforge -d myapp.api:store routes
  apiforge -d myapp.api:store call store.products.get_all -p limit=5
  apiforge --json inspect store.products.get_by_id""",
)
@click.version_option(version=__version__, prog_name="apiforge")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-d",
    "--definitions",
    "definitions_module",
    default=None,
    help="Definitions to load, as MODULE[:ATTR].",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    definitions_module: str | None,
) -> None:
    """apiforge — call declaratively defined HTTP APIs."""
    ctx.ensure_object(dict)
    settings = ForgeSettings.from_cli(
        config_path=config_path,
        definitions_module=definitions_module,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
