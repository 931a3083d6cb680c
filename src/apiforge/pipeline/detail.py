"""Per-call request state threaded through the pipe chain.

INVARIANT: A RequestDetail is owned by exactly one call and never shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from apiforge.domain.definitions import ResolvedEndpoint


@dataclass(frozen=True)
class RequestContext:
    """Read-only view of the endpoint handed to ``on_before_request``."""

    path: str
    method: str
    url_template: str
    strategy: str


@dataclass
class RequestDetail:
    """Fully resolved request handed to a strategy adapter."""

    method: str = "GET"
    url: str = ""
    query: dict[str, Any] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: dict[str, Any] | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    hook_results: dict[str, Any] = field(default_factory=dict)
    strategy: str = ""
    timeout: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serializable snapshot of the built request (no hook results)."""
        return {
            "method": self.method,
            "url": self.url,
            "query": dict(self.query),
            "headers": dict(self.headers),
            "body": dict(self.body) if self.body is not None else None,
            "strategy": self.strategy,
            "timeout": self.timeout,
        }


@dataclass
class PipeDetail(RequestDetail):
    """RequestDetail plus the working state stages read and write.

    Attributes:
        resolved: The endpoint this call targets.
        raw_result: What the strategy adapter returned.
        result: The value the next stage should work on.
        stage: Name of the stage currently running.
        dispatched: Whether the Dispatch stage has completed.
    """

    resolved: ResolvedEndpoint | None = None
    raw_result: Any = None
    result: Any = None
    stage: str | None = None
    dispatched: bool = False

    @property
    def endpoint(self) -> ResolvedEndpoint:
        if self.resolved is None:
            msg = "PipeDetail has no resolved endpoint"
            raise RuntimeError(msg)
        return self.resolved
