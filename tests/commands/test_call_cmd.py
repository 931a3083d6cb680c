"""Tests for ``apiforge call``."""

from __future__ import annotations

import json

import click
import httpx
import pytest
from click.testing import CliRunner

from apiforge.cli import cli
from apiforge.commands.call import parse_params

DEFS = ["-d", "tests.fakestore:api"]


class TestParseParams:
    def test_json_values(self) -> None:
        assert parse_params(("limit=5", "flag=true", "tags=[1,2]")) == {
            "limit": 5,
            "flag": True,
            "tags": [1, 2],
        }

    def test_plain_strings(self) -> None:
        assert parse_params(("title=Blue hat", "sort=asc")) == {
            "title": "Blue hat",
            "sort": "asc",
        }

    def test_value_may_contain_equals(self) -> None:
        assert parse_params(("q=a=b",)) == {"q": "a=b"}

    @pytest.mark.parametrize("bad", ["limit", "=5"])
    def test_malformed(self, bad: str) -> None:
        with pytest.raises(click.BadParameter):
            parse_params((bad,))


class TestCall:
    def test_projected_result(
        self, cli_runner: CliRunner, http_requests: list[httpx.Request]
    ) -> None:
        result = cli_runner.invoke(cli, ["--json", *DEFS, "call", "products.get_all"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)["data"]
        assert data["result"] == [
            {"id": 1, "title": "Backpack", "price": 109.95},
            {"id": 2, "title": "T-Shirt", "price": 22.3},
        ]
        assert http_requests[0].url.params["limit"] == "10"

    def test_explicit_param(
        self, cli_runner: CliRunner, http_requests: list[httpx.Request]
    ) -> None:
        result = cli_runner.invoke(
            cli, ["-q", *DEFS, "call", "products.get_by_id", "-p", "id=1"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["title"] == "Backpack"
        assert str(http_requests[0].url) == "https://fakestore.test/products/1"

    def test_transport_failure(
        self, cli_runner: CliRunner, http_requests: list[httpx.Request]
    ) -> None:
        result = cli_runner.invoke(cli, [*DEFS, "call", "products.get_by_id", "-p", "id=404"])
        assert result.exit_code == 1
        assert "returned 404" in result.output

    def test_validation_failure_sends_nothing(
        self, cli_runner: CliRunner, http_requests: list[httpx.Request]
    ) -> None:
        result = cli_runner.invoke(cli, [*DEFS, "call", "products.get_all", "-p", "limit=99"])
        assert result.exit_code == 1
        assert "limit: max" in result.output
        assert http_requests == []

    def test_dry_run(self, cli_runner: CliRunner, http_requests: list[httpx.Request]) -> None:
        result = cli_runner.invoke(
            cli, ["--json", *DEFS, "call", "products.get_all", "-p", "limit=5", "--dry-run"]
        )
        assert result.exit_code == 0, result.output
        request = json.loads(result.output)["data"]["request"]
        assert request["query"] == {"limit": 5}
        assert request["headers"] == {"Accept": "application/json"}
        assert http_requests == []

    def test_malformed_param(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, [*DEFS, "call", "products.get_all", "-p", "limit"])
        assert result.exit_code == 2
        assert "Expected key=value" in result.output
