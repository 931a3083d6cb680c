"""Tests for config discovery and table reading."""

from pathlib import Path

import pytest

from apiforge.config.discovery import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    find_config,
    read_config_table,
)


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_finds_in_current_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[transport]\ntimeout = 1\n")
        assert find_config(tmp_path) == config_file

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "a" / "b" / "c"
        child.mkdir(parents=True)
        assert find_config(child) == config_file

    def test_nearest_wins(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        child = tmp_path / "inner"
        child.mkdir()
        (child / CONFIG_FILENAME).write_text("")
        assert find_config(child) == child / CONFIG_FILENAME

    def test_pyproject_with_table(self, tmp_path: Path) -> None:
        pyproject = tmp_path / "pyproject.toml"
        pyproject.write_text("[tool.apiforge]\n[tool.apiforge.transport]\ntimeout = 2\n")
        assert find_config(tmp_path) == pyproject

    def test_pyproject_without_table_skipped(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')
        child = tmp_path / "sub"
        child.mkdir()
        (child / "pyproject.toml").write_text("[tool.black]\n")
        result = find_config(child)
        assert result is None or not result.is_relative_to(tmp_path)

    def test_apiforge_toml_beats_pyproject(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.apiforge]\n")
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert find_config(tmp_path) == tmp_path / CONFIG_FILENAME

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
        assert find_config(tmp_path / "elsewhere") == config_file

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        assert find_config(tmp_path) is None


class TestReadConfigTable:
    def test_apiforge_toml_is_whole_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILENAME
        path.write_text("[transport]\ntimeout = 3\n")
        assert read_config_table(path) == {"transport": {"timeout": 3}}

    def test_pyproject_table_only(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n[tool.apiforge.plugins]\nenabled = false\n')
        assert read_config_table(path) == {"plugins": {"enabled": False}}
