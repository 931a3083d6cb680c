"""Plugin discovery, loading, and contribution collection.

Discovery: entry_points (pip-installed) in the ``apiforge.plugins`` group
via pluggy's setuptools entrypoint loader.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

import pluggy

from apiforge.plugins.hookspecs import PROJECT_NAME, ApiForgeHookSpec

if TYPE_CHECKING:
    from apiforge.pipeline.chain import StageExtension
    from apiforge.pipeline.strategies import StrategyAdapter

ENTRY_POINT_GROUP = "apiforge.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, loading, and hook collection."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ApiForgeHookSpec)
        self._loaded: bool = False

    def discover_and_load(self, *, disabled: list[str] | None = None) -> list[str]:
        """Load plugins from entry points, skipping names in *disabled*.

        Returns a list of loaded plugin names.
        """
        for name in disabled or []:
            self._pm.set_blocked(name)
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    # ------------------------------------------------------------------
    # Contributions
    # ------------------------------------------------------------------

    def collect_strategies(self) -> dict[str, StrategyAdapter]:
        """Merge every plugin's strategies. Later registrations win on name clashes."""
        merged: dict[str, StrategyAdapter] = {}
        for contribution in reversed(self._pm.hook.register_strategies()):
            if contribution is None:
                continue
            if not isinstance(contribution, dict):
                logger.warning("Ignoring non-dict strategy registration: %r", contribution)
                continue
            merged.update(contribution)
        return merged

    def collect_stages(self) -> list[StageExtension]:
        """Concatenate every plugin's stage extensions in registration order."""
        stages: list[StageExtension] = []
        for contribution in reversed(self._pm.hook.register_stages()):
            if contribution:
                stages.extend(contribution)
        return stages

    # ------------------------------------------------------------------
    # Entry-point normalization
    # ------------------------------------------------------------------

    def _normalize_plugin_instances(self) -> None:
        """Replace registered plugin classes with instantiated objects.

        Entry-point loading may register a plugin class directly. Hook dispatch
        against class objects leaves ``self`` unbound and fails at runtime.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin) or not self._has_hook_impls(plugin):
                continue

            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning(
                    "Failed to instantiate entry-point plugin %s",
                    plugin_name,
                    exc_info=True,
                )
                continue
            self._pm.register(instance, name=plugin_name)
            logger.debug("Instantiated entry-point plugin: %s", plugin_name)

    @staticmethod
    def _has_hook_impls(cls: type[Any]) -> bool:
        """Check whether *cls* has any ``@hookimpl``-decorated methods."""
        marker = f"{PROJECT_NAME}_impl"
        for name in dir(cls):
            if name.startswith("_"):
                continue
            method = getattr(cls, name, None)
            if callable(method) and getattr(method, marker, None):
                return True
        return False
