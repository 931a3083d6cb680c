"""Tests for the --examples flag on CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from apiforge.cli import cli

EXAMPLES_COMMANDS: list[tuple[list[str], list[str]]] = [
    (["routes", "--examples"], ["apiforge routes --prefix"]),
    (["inspect", "--examples"], ["apiforge inspect store.products.get_by_id"]),
    (["call", "--examples"], ["--dry-run", "--timeout 2.5", "-p id=3"]),
]


@pytest.mark.parametrize(
    "args,keywords",
    EXAMPLES_COMMANDS,
    ids=[args[0] for args, _ in EXAMPLES_COMMANDS],
)
def test_examples_flag(cli_runner: CliRunner, args: list[str], keywords: list[str]) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    assert "Examples for" in result.output
    for keyword in keywords:
        assert keyword in result.output


def test_examples_not_in_help_body(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["call", "--help"])
    assert result.exit_code == 0
    assert "--examples" in result.output
    assert "apiforge call store.products.get_all -p limit=5" not in result.output
