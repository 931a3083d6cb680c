"""Tests for the httpx strategy adapters, using httpx.MockTransport."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from apiforge.config.models import TransportConfig
from apiforge.domain.errors import TransportError
from apiforge.infrastructure.transports import (
    HttpxRawStrategy,
    HttpxStrategy,
    default_registry,
    parse_response,
)
from apiforge.pipeline.client import ApiClient
from apiforge.pipeline.detail import RequestDetail
from apiforge.pipeline.strategies import identity

PRODUCTS = [{"id": 1, "title": "Backpack", "price": 109.95, "extra": True}]


class _Recorder:
    """MockTransport handler that records requests and returns canned responses."""

    def __init__(self, response: httpx.Response | Exception | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response if response is not None else httpx.Response(200, json=PRODUCTS)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _detail(**kwargs: Any) -> RequestDetail:
    kwargs.setdefault("url", "https://fakestore.test/products")
    return RequestDetail(**kwargs)


class TestParseResponse:
    def test_json(self) -> None:
        assert parse_response(httpx.Response(200, json={"a": 1})) == {"a": 1}

    def test_json_without_content_type(self) -> None:
        assert parse_response(httpx.Response(200, content=b"[1, 2]")) == [1, 2]

    def test_text(self) -> None:
        assert parse_response(httpx.Response(200, text="pong")) == "pong"

    def test_empty(self) -> None:
        assert parse_response(httpx.Response(204)) is None


class TestHttpxStrategy:
    @pytest.mark.asyncio
    async def test_sends_built_request(self) -> None:
        handler = _Recorder()
        strategy = HttpxStrategy(transport=httpx.MockTransport(handler))
        result = await strategy.dispatch(
            _detail(
                method="POST",
                query={"limit": 5},
                headers={"X-Token": "t"},
                body={"title": "hat"},
            )
        )
        assert result == PRODUCTS
        sent = handler.requests[0]
        assert sent.method == "POST"
        assert sent.url.params["limit"] == "5"
        assert sent.headers["X-Token"] == "t"
        assert json.loads(sent.content) == {"title": "hat"}

    @pytest.mark.asyncio
    async def test_no_body_sends_no_content(self) -> None:
        handler = _Recorder()
        strategy = HttpxStrategy(transport=httpx.MockTransport(handler))
        await strategy.dispatch(_detail())
        assert handler.requests[0].content == b""

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        handler = _Recorder(httpx.Response(404, json={"detail": "nope"}))
        strategy = HttpxStrategy(transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError) as exc_info:
            await strategy.dispatch(_detail())
        assert exc_info.value.status_code == 404
        assert exc_info.value.strategy == "httpx"

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        handler = _Recorder(httpx.ConnectError("refused"))
        strategy = HttpxStrategy(transport=httpx.MockTransport(handler))
        with pytest.raises(TransportError, match="failed") as exc_info:
            await strategy.dispatch(_detail())
        assert exc_info.value.detail["cause"] == "ConnectError"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        handler = _Recorder(httpx.ReadTimeout("slow"))
        strategy = HttpxStrategy(
            TransportConfig(timeout=1.5), transport=httpx.MockTransport(handler)
        )
        with pytest.raises(TransportError, match="timed out after 1.5s"):
            await strategy.dispatch(_detail())

    @pytest.mark.asyncio
    async def test_detail_timeout_overrides_config(self) -> None:
        handler = _Recorder(httpx.ReadTimeout("slow"))
        strategy = HttpxStrategy(
            TransportConfig(timeout=30), transport=httpx.MockTransport(handler)
        )
        with pytest.raises(TransportError) as exc_info:
            await strategy.dispatch(_detail(timeout=0.5))
        assert exc_info.value.detail["timeout"] == 0.5

    def test_abort_without_request_leaves_no_state(self) -> None:
        strategy = HttpxStrategy()
        for _ in range(100):
            detail = _detail()
            strategy.abort(detail)
            assert not strategy.in_flight(detail)

    @pytest.mark.asyncio
    async def test_abort_closes_in_flight_request(self) -> None:
        entered = asyncio.Event()
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            entered.set()
            await release.wait()
            return httpx.Response(200, json=[])

        strategy = HttpxStrategy(transport=httpx.MockTransport(handler))
        detail = _detail()
        task = asyncio.ensure_future(strategy.dispatch(detail))
        await entered.wait()
        assert strategy.in_flight(detail)

        strategy.abort(detail)
        assert not strategy.in_flight(detail)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    @pytest.mark.asyncio
    async def test_finished_request_is_not_in_flight(self) -> None:
        strategy = HttpxStrategy(transport=httpx.MockTransport(_Recorder()))
        detail = _detail()
        await strategy.dispatch(detail)
        assert not strategy.in_flight(detail)


class TestHttpxRawStrategy:
    @pytest.mark.asyncio
    async def test_returns_response(self) -> None:
        strategy = HttpxRawStrategy(transport=httpx.MockTransport(_Recorder()))
        response = await strategy.dispatch(_detail())
        assert isinstance(response, httpx.Response)
        assert strategy.default_on_success(response) == PRODUCTS


class TestDefaultRegistry:
    def test_success_hook_table(self) -> None:
        registry = default_registry()
        assert registry.default == "httpx"
        assert registry.default_success_hook("httpx") is identity
        assert registry.default_success_hook("httpx-raw") is parse_response

    def test_configured_default(self) -> None:
        registry = default_registry(TransportConfig(default_strategy="httpx-raw"))
        assert registry.resolve_name(None) == "httpx-raw"

    @pytest.mark.asyncio
    async def test_end_to_end_through_client(self, store_tree: Any) -> None:
        handler = _Recorder()
        registry = default_registry(transport=httpx.MockTransport(handler))
        client = ApiClient(store_tree, registry)
        result = await client.request("products.get_all", limit=1)
        assert result == [{"id": 1, "title": "Backpack", "price": 109.95}]
        assert str(handler.requests[0].url) == "https://fakestore.test/products?limit=1"
        assert handler.requests[0].headers["Accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_raw_strategy_parses_by_default(self, store_tree: Any) -> None:
        handler = _Recorder()
        registry = default_registry(
            TransportConfig(default_strategy="httpx-raw"),
            transport=httpx.MockTransport(handler),
        )
        client = ApiClient(store_tree, registry)
        result = await client.request("products.get_all")
        assert result == [{"id": 1, "title": "Backpack", "price": 109.95}]
