"""Subcommand modules for apiforge."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register the standalone commands on the root group."""
    from apiforge.commands.call import call
    from apiforge.commands.inspect import inspect_cmd
    from apiforge.commands.routes import routes

    cli.add_command(routes)
    cli.add_command(inspect_cmd)
    cli.add_command(call)
