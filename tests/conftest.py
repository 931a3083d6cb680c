"""Shared pytest fixtures and test helpers for apiforge tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from click.testing import CliRunner

from apiforge.domain.definitions import DefinitionTree
from apiforge.pipeline.client import ApiClient
from apiforge.pipeline.detail import RequestDetail
from apiforge.pipeline.strategies import StrategyRegistry
from tests.fakestore import api as fakestore_api


class RecordingStrategy:
    """Strategy adapter that records every dispatch instead of sending it.

    ``response`` may be a value, a callable receiving the detail, or an
    exception instance to raise. When ``gate`` is set, dispatch waits on it
    so tests can cancel mid-flight.
    """

    def __init__(self, response: Any = None, *, gate: asyncio.Event | None = None) -> None:
        self.response = response
        self.gate = gate
        self.calls: list[RequestDetail] = []
        self.aborted: list[RequestDetail] = []
        self.started = asyncio.Event()

    async def dispatch(self, detail: RequestDetail) -> Any:
        self.calls.append(detail)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if isinstance(self.response, BaseException):
            raise self.response
        if callable(self.response):
            return self.response(detail)
        return self.response

    def abort(self, detail: RequestDetail) -> None:
        self.aborted.append(detail)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def store_tree() -> DefinitionTree:
    """Definition tree for the fake store API."""
    return DefinitionTree(fakestore_api)


@pytest.fixture
def recorder() -> RecordingStrategy:
    return RecordingStrategy(response=[])


@pytest.fixture
def registry(recorder: RecordingStrategy) -> StrategyRegistry:
    reg = StrategyRegistry()
    reg.register("recording", recorder)
    return reg


@pytest.fixture
def client(store_tree: DefinitionTree, registry: StrategyRegistry) -> ApiClient:
    """ApiClient over the fake store, dispatching to the recording strategy."""
    return ApiClient(store_tree, registry)


def make_client(tree: DefinitionTree, strategy: Any, **kwargs: Any) -> ApiClient:
    """Build an ApiClient whose only strategy is *strategy*."""
    reg = StrategyRegistry()
    reg.register("recording", strategy)
    return ApiClient(tree, reg, **kwargs)
