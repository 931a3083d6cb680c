"""Load a DefinitionTree from a ``"package.module:attribute"`` reference.

The attribute may be a :class:`NamespaceNode`, a :class:`DefinitionTree`,
or a zero-argument callable returning either.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

from apiforge.domain.definitions import DefinitionTree, NamespaceNode
from apiforge.domain.errors import DefinitionError


def load_definitions(reference: str, *, search_path: Path | None = None) -> DefinitionTree:
    """Import *reference* and build a DefinitionTree from it.

    Args:
        reference: ``"module:attribute"``; the attribute defaults to ``api``.
        search_path: Directory prepended to ``sys.path`` for the import
            (the project root, so local definition modules resolve).

    Raises:
        DefinitionError: If the module or attribute cannot be loaded or is
            not a definition.
    """
    module_name, _, attr = reference.partition(":")
    attr = attr or "api"
    if not module_name:
        msg = f"Invalid definitions reference: {reference!r}"
        raise DefinitionError(msg, detail={"reference": reference})

    if search_path is not None and str(search_path) not in sys.path:
        sys.path.insert(0, str(search_path))

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Cannot import definitions module {module_name!r}: {exc}"
        raise DefinitionError(msg, detail={"reference": reference}) from exc

    try:
        target = getattr(module, attr)
    except AttributeError:
        msg = f"Module {module_name!r} has no attribute {attr!r}"
        raise DefinitionError(msg, detail={"reference": reference}) from None

    if callable(target) and not isinstance(target, (NamespaceNode, DefinitionTree)):
        target = target()
    if isinstance(target, DefinitionTree):
        return target
    if isinstance(target, NamespaceNode):
        return DefinitionTree(target)
    msg = f"{reference!r} is not a namespace or definition tree"
    raise DefinitionError(msg, detail={"reference": reference, "type": type(target).__name__})
