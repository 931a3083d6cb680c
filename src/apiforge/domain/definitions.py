"""Definition tree — namespaces, endpoint declarations, and resolution.

Declarations are built bottom-up with :func:`define_api` and
:func:`define_namespace`, then handed to :class:`DefinitionTree`, which
walks the tree once and precomputes a flat ``"ns.sub.endpoint"`` ->
:class:`ResolvedEndpoint` mapping. Call-time resolution is a single lookup.

INVARIANT: Declarations are frozen. The tree exposes no mutation API.
INVARIANT: Shared defaults merge top-down; the most specific layer wins.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from apiforge.domain.dto import DtoSpec, parse_dto
from apiforge.domain.errors import DefinitionError, DefinitionNotFoundError
from apiforge.domain.payload import PayloadDef, parse_payload_def
from apiforge.domain.types import HttpMethod

Hook = Callable[..., Any]

_INHERITED = (
    "request_strategy",
    "on_before_request",
    "on_success",
    "on_error",
    "on_finally",
    "timeout",
    "validation",
)


class _Overrides(BaseModel):
    """Settings a namespace shares with descendants and an endpoint may override."""

    model_config = ConfigDict(frozen=True)

    request_strategy: str | None = None
    on_before_request: Hook | None = None
    on_success: Hook | None = None
    on_error: Hook | None = None
    on_finally: Hook | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = None
    validation: bool | None = None


class EndpointDef(_Overrides):
    """Immutable leaf declaration of one API call."""

    endpoint: str = ""
    method: HttpMethod = HttpMethod.GET
    payload_def: PayloadDef = Field(default_factory=PayloadDef)
    dto: DtoSpec | None = None
    description: str | None = None


class NamespaceNode(_Overrides):
    """Immutable namespace: a URL segment plus child namespaces and endpoints."""

    url: str = ""
    api: dict[str, EndpointDef] = Field(default_factory=dict)
    route: dict[str, NamespaceNode] = Field(default_factory=dict)


class EffectiveConfig(BaseModel):
    """Configuration in force for one endpoint after inheritance."""

    model_config = ConfigDict(frozen=True)

    request_strategy: str | None = None
    on_before_request: Hook | None = None
    on_success: Hook | None = None
    on_error: Hook | None = None
    on_finally: Hook | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = None
    validation: bool = True


class ResolvedEndpoint(BaseModel):
    """An endpoint with its full URL template and merged configuration."""

    model_config = ConfigDict(frozen=True)

    path: str
    url_template: str
    config: EffectiveConfig
    endpoint: EndpointDef

    @property
    def method(self) -> HttpMethod:
        return self.endpoint.method

    @property
    def path_slots(self) -> int:
        return self.endpoint.payload_def.path_slots

    def render_url(self, path_values: Mapping[int, str]) -> str:
        """Substitute ``{n}`` placeholders with already-quoted path values."""
        url = self.url_template
        for index, value in path_values.items():
            url = url.replace(f"{{{index}}}", value)
        return url


# ---------------------------------------------------------------------------
# Declaration helpers
# ---------------------------------------------------------------------------


def define_api(
    *,
    endpoint: str = "",
    method: str = "GET",
    payload_def: Mapping[str, Any] | PayloadDef | None = None,
    dto: Any = None,
    request_strategy: str | None = None,
    on_before_request: Hook | None = None,
    on_success: Hook | None = None,
    on_error: Hook | None = None,
    on_finally: Hook | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    validation: bool | None = None,
    description: str | None = None,
) -> EndpointDef:
    """Declare one endpoint.

    Raises:
        DefinitionError: If the method, payload definition, or DTO is malformed.
    """
    try:
        http_method = HttpMethod(method.upper())
    except ValueError:
        msg = f"Unsupported HTTP method: {method!r}"
        raise DefinitionError(msg, detail={"method": method}) from None
    _check_hooks(
        on_before_request=on_before_request,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
    )
    return EndpointDef(
        endpoint=endpoint,
        method=http_method,
        payload_def=parse_payload_def(payload_def),
        dto=parse_dto(dto),
        request_strategy=request_strategy,
        on_before_request=on_before_request,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
        headers=dict(headers or {}),
        timeout=timeout,
        validation=validation,
        description=description,
    )


def define_namespace(
    *,
    url: str = "",
    api: Mapping[str, EndpointDef] | None = None,
    route: Mapping[str, NamespaceNode] | None = None,
    request_strategy: str | None = None,
    on_before_request: Hook | None = None,
    on_success: Hook | None = None,
    on_error: Hook | None = None,
    on_finally: Hook | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
    validation: bool | None = None,
) -> NamespaceNode:
    """Declare a namespace of endpoints and child namespaces.

    Raises:
        DefinitionError: If a name is reused between ``api`` and ``route``,
            a name contains ``.``, or a child is not a declaration.
    """
    api = dict(api or {})
    route = dict(route or {})
    for name, value in api.items():
        _check_name(name)
        if not isinstance(value, EndpointDef):
            msg = f"api entry {name!r} must be created with define_api()"
            raise DefinitionError(msg, detail={"name": name})
    for name, value in route.items():
        _check_name(name)
        if not isinstance(value, NamespaceNode):
            msg = f"route entry {name!r} must be created with define_namespace()"
            raise DefinitionError(msg, detail={"name": name})
    clash = sorted(set(api) & set(route))
    if clash:
        msg = f"Names used for both endpoints and namespaces: {', '.join(clash)}"
        raise DefinitionError(msg, detail={"names": clash})
    _check_hooks(
        on_before_request=on_before_request,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
    )
    return NamespaceNode(
        url=url,
        api=api,
        route=route,
        request_strategy=request_strategy,
        on_before_request=on_before_request,
        on_success=on_success,
        on_error=on_error,
        on_finally=on_finally,
        headers=dict(headers or {}),
        timeout=timeout,
        validation=validation,
    )


def _check_name(name: str) -> None:
    if not name or "." in name:
        msg = f"Invalid declaration name: {name!r}"
        raise DefinitionError(msg, detail={"name": name})


def _check_hooks(**hooks: Hook | None) -> None:
    for name, hook in hooks.items():
        if hook is not None and not callable(hook):
            msg = f"{name} must be callable"
            raise DefinitionError(msg, detail={"hook": name})


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def join_url(*segments: str) -> str:
    """Join URL segments with ``/``, skipping empty ones."""
    parts = [s for s in segments if s and s.strip("/")]
    if not parts:
        return ""
    url = parts[0].rstrip("/")
    for segment in parts[1:]:
        url = f"{url}/{segment.strip('/')}"
    return url


def _url_template(segments: Sequence[str], slots: int) -> str:
    template = join_url(*segments)
    for index in range(slots):
        placeholder = f"{{{index}}}"
        if placeholder not in template:
            template = join_url(template, placeholder)
    return template


def _merge(base: EffectiveConfig, layer: _Overrides) -> EffectiveConfig:
    update: dict[str, Any] = {
        name: getattr(layer, name) for name in _INHERITED if getattr(layer, name) is not None
    }
    if layer.headers:
        update["headers"] = {**base.headers, **layer.headers}
    return base.model_copy(update=update) if update else base


class DefinitionTree:
    """Read-only registry of every endpoint reachable from *root*.

    Usage::

        tree = DefinitionTree(define_namespace(url="https://api.test", route={...}))
        resolved = tree.resolve("product.get_all")
    """

    SEPARATOR = "."

    def __init__(self, root: NamespaceNode) -> None:
        self._root = root
        entries: dict[str, ResolvedEndpoint] = {}
        self._walk(root, (), (root.url,), _merge(EffectiveConfig(), root), entries)
        self._entries: Mapping[str, ResolvedEndpoint] = MappingProxyType(entries)

    @property
    def root(self) -> NamespaceNode:
        return self._root

    def _walk(
        self,
        node: NamespaceNode,
        prefix: tuple[str, ...],
        urls: tuple[str, ...],
        config: EffectiveConfig,
        entries: dict[str, ResolvedEndpoint],
    ) -> None:
        for name, endpoint in node.api.items():
            key = self.SEPARATOR.join((*prefix, name))
            entries[key] = ResolvedEndpoint(
                path=key,
                url_template=_url_template(
                    (*urls, endpoint.endpoint), endpoint.payload_def.path_slots
                ),
                config=_merge(config, endpoint),
                endpoint=endpoint,
            )
        for name, child in node.route.items():
            self._walk(child, (*prefix, name), (*urls, child.url), _merge(config, child), entries)

    def resolve(self, path: str | Sequence[str]) -> ResolvedEndpoint:
        """Return the resolved endpoint for a dotted path or name sequence.

        Raises:
            DefinitionNotFoundError: Naming the first segment that does not exist.
        """
        names = tuple(path.split(self.SEPARATOR)) if isinstance(path, str) else tuple(path)
        key = self.SEPARATOR.join(names)
        found = self._entries.get(key)
        if found is not None:
            return found
        raise DefinitionNotFoundError(key, self._missing_segment(names))

    def _missing_segment(self, names: tuple[str, ...]) -> str:
        node = self._root
        for name in names[:-1]:
            child = node.route.get(name)
            if child is None:
                return name
            node = child
        return names[-1] if names else ""

    def paths(self) -> list[str]:
        """Every endpoint path, in declaration order."""
        return list(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[ResolvedEndpoint]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
