"""httpx-backed strategy adapters.

Two strategies ship by default:

- ``"httpx"`` returns structured data (decoded JSON, else text). Its
  default ``on_success`` is identity.
- ``"httpx-raw"`` returns the :class:`httpx.Response` untouched. Its
  default ``on_success`` is :func:`parse_response`.

Both map transport failures and 4xx/5xx statuses to
:class:`~apiforge.domain.errors.TransportError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

import httpx

from apiforge.config.models import TransportConfig
from apiforge.domain.errors import TransportError
from apiforge.pipeline.strategies import StrategyRegistry, identity

if TYPE_CHECKING:
    from apiforge.pipeline.detail import RequestDetail

logger = logging.getLogger(__name__)


def parse_response(response: httpx.Response) -> Any:
    """Decode a response body: JSON when declared or parseable, else text.

    Empty bodies decode to None.
    """
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return response.json()
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpxStrategy:
    """Dispatch with :class:`httpx.AsyncClient` and return decoded data.

    Args:
        config: Timeout, TLS verification, and redirect settings.
        transport: Optional httpx transport (``httpx.MockTransport`` in tests).
    """

    name = "httpx"
    default_on_success = staticmethod(identity)

    def __init__(
        self,
        config: TransportConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or TransportConfig()
        self._transport = transport
        self._inflight: dict[int, httpx.AsyncClient] = {}
        self._closing: set[asyncio.Task[None]] = set()

    async def dispatch(self, detail: RequestDetail) -> Any:
        response = await self._send(detail)
        return parse_response(response)

    def abort(self, detail: RequestDetail) -> None:
        """Close the client carrying *detail*'s request, if it is still in flight."""
        client = self._inflight.pop(id(detail), None)
        if client is None:
            return
        closing = asyncio.ensure_future(client.aclose())
        self._closing.add(closing)
        closing.add_done_callback(self._closing.discard)
        logger.debug("Aborted %s %s via %s", detail.method, detail.url, self.name)

    def in_flight(self, detail: RequestDetail) -> bool:
        return id(detail) in self._inflight

    async def _send(self, detail: RequestDetail) -> httpx.Response:
        timeout = detail.timeout if detail.timeout is not None else self._config.timeout
        async with httpx.AsyncClient(
            timeout=timeout,
            verify=self._config.verify,
            follow_redirects=self._config.follow_redirects,
            transport=self._transport,
        ) as client:
            self._inflight[id(detail)] = client
            try:
                response = await client.request(
                    detail.method,
                    detail.url,
                    params=detail.query or None,
                    headers=detail.headers or None,
                    json=detail.body,
                )
            except httpx.TimeoutException as exc:
                msg = f"{detail.method} {detail.url} timed out after {timeout}s"
                raise TransportError(
                    msg, strategy=self.name, detail={"url": detail.url, "timeout": timeout}
                ) from exc
            except httpx.HTTPError as exc:
                msg = f"{detail.method} {detail.url} failed: {exc}"
                raise TransportError(
                    msg,
                    strategy=self.name,
                    detail={"url": detail.url, "cause": type(exc).__name__},
                ) from exc
            finally:
                self._inflight.pop(id(detail), None)

        if response.is_error:
            msg = f"{detail.method} {detail.url} returned {response.status_code}"
            raise TransportError(
                msg,
                strategy=self.name,
                status_code=response.status_code,
                detail={"url": detail.url, "reason": response.reason_phrase},
            )
        return response


class HttpxRawStrategy(HttpxStrategy):
    """Dispatch with httpx and hand back the unparsed :class:`httpx.Response`."""

    name = "httpx-raw"
    default_on_success = staticmethod(parse_response)

    async def dispatch(self, detail: RequestDetail) -> httpx.Response:
        return await self._send(detail)


def default_registry(
    config: TransportConfig | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> StrategyRegistry:
    """Registry holding both httpx strategies, defaulting to ``config.default_strategy``."""
    config = config or TransportConfig()
    registry = StrategyRegistry(default=config.default_strategy)
    for strategy in (
        HttpxStrategy(config, transport=transport),
        HttpxRawStrategy(config, transport=transport),
    ):
        registry.register(strategy.name, strategy)
    return registry
