"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands via
``@click.pass_obj``. The definition tree and client are built lazily so
``--help`` and ``--version`` never import user definitions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from apiforge.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from apiforge.config.settings import ForgeSettings
    from apiforge.domain.definitions import DefinitionTree
    from apiforge.pipeline.client import ApiClient
    from apiforge.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy."""

    def __init__(self, settings: ForgeSettings) -> None:
        self.settings = settings
        self._tree: DefinitionTree | None = None
        self._client: ApiClient | None = None

        from apiforge.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def tree(self) -> DefinitionTree:
        """The definition tree named by ``[definitions] module``."""
        if self._tree is None:
            reference = self.settings.definitions.module
            if not reference:
                msg = (
                    "No definitions module configured. Pass --definitions MODULE[:ATTR] "
                    "or set [definitions] module in apiforge.toml."
                )
                raise click.UsageError(msg)

            from apiforge.domain.errors import ApiForgeError
            from apiforge.infrastructure.loader import load_definitions

            try:
                self._tree = load_definitions(reference, search_path=self.settings.project_root)
            except ApiForgeError as exc:
                raise click.ClickException(exc.message) from exc
        return self._tree

    @property
    def client(self) -> ApiClient:
        """An :class:`ApiClient` over :attr:`tree`, with plugins when enabled."""
        if self._client is None:
            from apiforge.domain.errors import ApiForgeError
            from apiforge.pipeline.client import ApiClient

            plugin_manager = None
            if self.settings.plugins.enabled:
                from apiforge.plugins.manager import PluginManager

                plugin_manager = PluginManager()
                plugin_manager.discover_and_load(disabled=self.settings.plugins.disabled)

            try:
                self._client = ApiClient(
                    self.tree,
                    plugin_manager=plugin_manager,
                    transport=self.settings.transport,
                )
            except ApiForgeError as exc:
                raise click.ClickException(exc.message) from exc
        return self._client

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout; warnings go to stderr.
        * Failure: writes to stderr, exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
