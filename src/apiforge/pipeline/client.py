"""ApiClient — turn a DefinitionTree into callable, executor-returning endpoints.

One :class:`PipeChain` is built per endpoint at construction. Every call
copies the caller's payload into its own :class:`PipeDetail`, so concurrent
calls never observe each other's hook mutations.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from functools import partial
from typing import TYPE_CHECKING, Any

from apiforge.domain.errors import DefinitionNotFoundError
from apiforge.domain.types import StageName
from apiforge.pipeline.chain import PipeChain, StageExtension
from apiforge.pipeline.executor import RequestExecutor

if TYPE_CHECKING:
    from apiforge.config.models import TransportConfig
    from apiforge.domain.definitions import DefinitionTree, NamespaceNode
    from apiforge.pipeline.detail import RequestDetail
    from apiforge.pipeline.strategies import StrategyRegistry
    from apiforge.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class ApiClient:
    """Executes endpoints of a :class:`DefinitionTree`.

    Args:
        tree: The immutable definition tree.
        strategies: Strategy registry. Defaults to the httpx adapters.
        stages: Custom stage extensions applied to every endpoint.
        plugin_manager: Loaded plugin manager contributing strategies and stages.
        transport: Transport settings for the default httpx adapters.
    """

    def __init__(
        self,
        tree: DefinitionTree,
        strategies: StrategyRegistry | None = None,
        *,
        stages: Sequence[StageExtension] = (),
        plugin_manager: PluginManager | None = None,
        transport: TransportConfig | None = None,
    ) -> None:
        if strategies is None:
            from apiforge.infrastructure.transports import default_registry

            strategies = default_registry(transport)

        extensions = list(stages)
        if plugin_manager is not None:
            strategies = strategies.copy()
            for name, adapter in plugin_manager.collect_strategies().items():
                strategies.register(name, adapter)
            extensions.extend(plugin_manager.collect_stages())

        self._tree = tree
        self._strategies = strategies
        self._chains: dict[str, PipeChain] = {
            resolved.path: PipeChain(resolved, strategies, extensions) for resolved in tree
        }
        self.api = NamespaceProxy(self, tree.root, ())
        logger.debug("Built %d pipe chains", len(self._chains))

    @property
    def tree(self) -> DefinitionTree:
        return self._tree

    @property
    def strategies(self) -> StrategyRegistry:
        return self._strategies

    def chain(self, path: str | Sequence[str]) -> PipeChain:
        """Return the chain for *path*.

        Raises:
            DefinitionNotFoundError: If the endpoint does not exist.
        """
        resolved = self._tree.resolve(path)
        return self._chains[resolved.path]

    def request(
        self,
        path: str | Sequence[str],
        payload: Mapping[str, Any] | None = None,
        /,
        **fields: Any,
    ) -> RequestExecutor[Any]:
        """Start a call and return its executor. Requires a running event loop.

        Resolution failures are delivered through the executor like every
        other failure.
        """
        data = {**(payload or {}), **fields}
        key = path if isinstance(path, str) else ".".join(path)
        try:
            chain = self.chain(path)
        except DefinitionNotFoundError as exc:
            return RequestExecutor(_fail(exc), path=key)
        detail = chain.new_detail(data)
        return RequestExecutor(
            chain.run(detail),
            path=chain.resolved.path,
            on_cancel_unstarted=partial(chain.settle_cancelled, detail),
        )

    async def build(
        self,
        path: str | Sequence[str],
        payload: Mapping[str, Any] | None = None,
        /,
        **fields: Any,
    ) -> RequestDetail:
        """Run PreHook and Build only and return the request that would be sent."""
        chain = self.chain(path)
        detail = chain.new_detail({**(payload or {}), **fields})
        return await chain.run(detail, until=StageName.BUILD)


async def _fail(exc: BaseException) -> Any:
    raise exc


class EndpointCaller:
    """Callable bound to one endpoint path."""

    def __init__(self, client: ApiClient, path: str) -> None:
        self._client = client
        self.path = path

    def __call__(
        self, payload: Mapping[str, Any] | None = None, /, **fields: Any
    ) -> RequestExecutor[Any]:
        return self._client.request(self.path, payload, **fields)

    def __repr__(self) -> str:
        return f"<EndpointCaller {self.path}>"


class NamespaceProxy:
    """Attribute access over the tree: ``client.api.product.get_all(limit=5)``."""

    def __init__(self, client: ApiClient, node: NamespaceNode, prefix: tuple[str, ...]) -> None:
        self._client = client
        self._node = node
        self._prefix = prefix

    def __getattr__(self, name: str) -> NamespaceProxy | EndpointCaller:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._node.route:
            return NamespaceProxy(self._client, self._node.route[name], (*self._prefix, name))
        if name in self._node.api:
            return EndpointCaller(self._client, ".".join((*self._prefix, name)))
        where = ".".join(self._prefix) or "<root>"
        msg = f"{where} has no namespace or endpoint named {name!r}"
        raise AttributeError(msg)

    def __dir__(self) -> list[str]:
        return sorted({*self._node.route, *self._node.api})
