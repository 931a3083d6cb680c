"""Tests for the root apiforge CLI."""

from click.testing import CliRunner

from apiforge import __version__
from apiforge.cli import cli


def test_cli_help(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "apiforge" in result.output
    for command in ("routes", "inspect", "call"):
        assert command in result.output


def test_cli_version(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_no_args(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "Usage" in result.output


# --- Global flags ---


def test_json_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["--json", "--version"]).exit_code == 0


def test_quiet_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["-q", "--version"]).exit_code == 0


def test_verbose_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["-v", "--version"]).exit_code == 0


def test_log_json_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["--log-json", "--version"]).exit_code == 0


def test_definitions_flag_accepted(cli_runner: CliRunner) -> None:
    assert cli_runner.invoke(cli, ["-d", "tests.fakestore:api", "--version"]).exit_code == 0


def test_root_examples(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["--examples"])
    assert result.exit_code == 0
    assert "apiforge -d myapp.api:store routes" in result.output
