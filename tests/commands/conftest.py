"""Fixtures for command tests: an isolated working directory and mocked HTTP."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from apiforge.infrastructure import transports

PRODUCTS = [
    {"id": 1, "title": "Backpack", "price": 109.95, "rating": {"rate": 3.9}},
    {"id": 2, "title": "T-Shirt", "price": "22.3"},
]


@pytest.fixture(autouse=True)
def _isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every command from an empty directory with no inherited config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("APIFORGE_CONFIG", raising=False)
    monkeypatch.delenv("APIFORGE_DEFINITIONS__MODULE", raising=False)


@pytest.fixture
def http_requests(monkeypatch: pytest.MonkeyPatch) -> list[httpx.Request]:
    """Route the default httpx strategies through a MockTransport."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path == "/products/404":
            return httpx.Response(404, json={"detail": "not found"})
        if request.url.path.startswith("/products/"):
            return httpx.Response(200, content=json.dumps(PRODUCTS[0]).encode())
        return httpx.Response(200, json=PRODUCTS)

    original = transports.default_registry

    def patched(config=None, *, transport=None):  # type: ignore[no-untyped-def]
        return original(config, transport=httpx.MockTransport(handler))

    monkeypatch.setattr(transports, "default_registry", patched)
    return seen
