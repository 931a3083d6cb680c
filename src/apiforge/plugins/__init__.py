"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
"""

from apiforge.plugins.hookspecs import hookimpl
from apiforge.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
