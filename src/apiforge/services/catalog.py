"""CatalogService — list and describe the endpoints of a definition tree."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from apiforge.domain.errors import ApiForgeError
from apiforge.services.result import ServiceResult

if TYPE_CHECKING:
    from apiforge.domain.definitions import DefinitionTree, ResolvedEndpoint
    from apiforge.domain.payload import FieldSpec
    from apiforge.domain.rules import RuleSpec


def _describe_rule(rule: RuleSpec) -> dict[str, Any]:
    described: dict[str, Any] = {"kind": rule.label}
    if rule.required:
        described["required"] = True
    if rule.min is not None:
        described["min"] = rule.min
    if rule.max is not None:
        described["max"] = rule.max
    if rule.measurement is not None:
        described["measurement"] = rule.measurement.value
    if rule.pattern is not None:
        described["pattern"] = rule.pattern.pattern
    return described


def _describe_field(spec: FieldSpec) -> dict[str, Any]:
    return {
        "name": spec.name,
        "location": spec.tag,
        "rules": [_describe_rule(r) for r in spec.rules],
    }


class CatalogService:
    """Read-only views over a :class:`DefinitionTree`."""

    def __init__(self, tree: DefinitionTree, *, default_strategy: str | None = None) -> None:
        self._tree = tree
        self._default_strategy = default_strategy

    def _strategy(self, resolved: ResolvedEndpoint) -> str | None:
        return resolved.config.request_strategy or self._default_strategy

    def list_routes(self, *, prefix: str | None = None) -> ServiceResult:
        """List every endpoint, optionally limited to a dotted *prefix*."""
        items = [
            {
                "path": resolved.path,
                "method": resolved.method.value,
                "url": resolved.url_template,
                "strategy": self._strategy(resolved),
            }
            for resolved in self._tree
            if prefix is None or resolved.path == prefix or resolved.path.startswith(f"{prefix}.")
        ]
        return ServiceResult(ok=True, op="routes", data={"count": len(items), "items": items})

    def inspect(self, path: str) -> ServiceResult:
        """Describe one endpoint's URL, merged config, payload, and response shape."""
        try:
            resolved = self._tree.resolve(path)
        except ApiForgeError as exc:
            return ServiceResult.failure("inspect", exc)

        endpoint = resolved.endpoint
        config = resolved.config
        hooks = [
            name
            for name in ("on_before_request", "on_success", "on_error", "on_finally")
            if getattr(config, name) is not None
        ]
        data: dict[str, Any] = {
            "path": resolved.path,
            "method": resolved.method.value,
            "url": resolved.url_template,
            "strategy": self._strategy(resolved),
            "headers": dict(config.headers),
            "timeout": config.timeout,
            "validation": config.validation,
            "hooks": hooks,
            "payload": [_describe_field(f) for f in endpoint.payload_def.fields],
            "dto": endpoint.dto.describe() if endpoint.dto is not None else None,
        }
        if endpoint.description:
            data["description"] = endpoint.description
        return ServiceResult(ok=True, op="inspect", data=data)
