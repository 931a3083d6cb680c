"""Config file discovery.

Walk-up finder locates ``apiforge.toml`` or a ``pyproject.toml`` carrying a
``[tool.apiforge]`` table, nearest directory first. ``APIFORGE_CONFIG``
and the ``--config`` flag bypass the walk.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_FILENAME = "apiforge.toml"
PYPROJECT_FILENAME = "pyproject.toml"
CONFIG_ENV_VAR = "APIFORGE_CONFIG"


def _pyproject_has_table(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return False
    return isinstance(data.get("tool", {}).get("apiforge"), dict)


def find_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for a config file.

    Within one directory ``apiforge.toml`` wins over ``pyproject.toml``.
    Returns None if nothing is found, or if APIFORGE_CONFIG points nowhere.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        p = Path(env_path)
        return p if p.is_file() else None

    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        pyproject = current / PYPROJECT_FILENAME
        if pyproject.is_file() and _pyproject_has_table(pyproject):
            return pyproject
        if current.parent == current:
            return None
        current = current.parent


def read_config_table(path: Path) -> dict[str, Any]:
    """Parse *path* and return the apiforge settings table.

    Raises:
        tomllib.TOMLDecodeError: If the file is not valid TOML.
    """
    data: dict[str, Any] = tomllib.loads(path.read_text(encoding="utf-8"))
    if path.name == PYPROJECT_FILENAME:
        table = data.get("tool", {}).get("apiforge", {})
        return dict(table) if isinstance(table, dict) else {}
    return data
