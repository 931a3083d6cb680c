"""Strategy adapter contract and the per-strategy default success-hook table.

An adapter turns a :class:`RequestDetail` into a strategy-specific raw
result. Adapters that return an unparsed response register a parsing
default for ``on_success``; adapters that already return structured data
default to identity.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from apiforge.domain.errors import DefinitionError, DefinitionNotFoundError

if TYPE_CHECKING:
    from apiforge.pipeline.detail import RequestDetail

logger = logging.getLogger(__name__)

SuccessHook = Callable[[Any], Any]


@runtime_checkable
class StrategyAdapter(Protocol):
    """Transport back-end contract.

    ``dispatch`` must raise :class:`~apiforge.domain.errors.TransportError`
    on network or protocol failure. ``abort`` is called when the call is
    cancelled before dispatch completes; it must tolerate being called when
    nothing is in flight.
    """

    async def dispatch(self, detail: RequestDetail) -> Any: ...

    def abort(self, detail: RequestDetail) -> None: ...


def identity(raw: Any) -> Any:
    return raw


class StrategyRegistry:
    """Named strategy adapters plus their default ``on_success`` hooks."""

    def __init__(self, default: str | None = None) -> None:
        self._adapters: dict[str, StrategyAdapter] = {}
        self._success_defaults: dict[str, SuccessHook] = {}
        self.default = default

    def register(
        self,
        name: str,
        adapter: StrategyAdapter,
        *,
        default_on_success: SuccessHook | None = None,
    ) -> None:
        """Register *adapter* under *name*, replacing any previous one.

        The default success hook is taken from *default_on_success*, then
        from the adapter's ``default_on_success`` attribute, then identity.
        """
        if not isinstance(adapter, StrategyAdapter):
            msg = f"Strategy {name!r} does not implement dispatch()/abort()"
            raise DefinitionError(msg, detail={"strategy": name})
        hook = default_on_success or getattr(adapter, "default_on_success", None) or identity
        self._adapters[name] = adapter
        self._success_defaults[name] = hook
        if self.default is None:
            self.default = name
        logger.debug("Registered strategy: %s", name)

    def resolve_name(self, name: str | None, *, path: str = "") -> str:
        """Return *name* or the registry default, checking it exists."""
        chosen = name or self.default
        if chosen is None or chosen not in self._adapters:
            raise DefinitionNotFoundError(path, chosen or "<default>", kind="strategy")
        return chosen

    def get(self, name: str) -> StrategyAdapter:
        adapter = self._adapters.get(name)
        if adapter is None:
            raise DefinitionNotFoundError(name, name, kind="strategy")
        return adapter

    def default_success_hook(self, name: str) -> SuccessHook:
        return self._success_defaults.get(name, identity)

    def copy(self) -> StrategyRegistry:
        """Independent registry holding the same adapters and default."""
        clone = StrategyRegistry(self.default)
        clone._adapters = dict(self._adapters)
        clone._success_defaults = dict(self._success_defaults)
        return clone

    def names(self) -> list[str]:
        return list(self._adapters)

    def __contains__(self, name: object) -> bool:
        return name in self._adapters
