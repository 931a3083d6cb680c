"""Pluggy hook specifications for apiforge extensions.

Plugins contribute transport strategies and custom pipe stages. Both are
collected once, when an ApiClient is built.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from apiforge.pipeline.chain import StageExtension
    from apiforge.pipeline.strategies import StrategyAdapter

PROJECT_NAME = "apiforge"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class ApiForgeHookSpec:
    """Hook specifications for the apiforge plugin system."""

    @hookspec
    def register_strategies(self) -> dict[str, StrategyAdapter] | None:
        """Return strategy name -> adapter mappings to add to the registry."""

    @hookspec
    def register_stages(self) -> list[StageExtension] | None:
        """Return stage extensions inserted into every endpoint's pipe chain."""
