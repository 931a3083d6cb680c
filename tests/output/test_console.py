"""Tests for Rich Console factory and theme."""

from io import StringIO

from apiforge.output.console import FORGE_THEME, create_console, get_output, style_for_method


class TestCreateConsole:
    def test_returns_console_with_stringio(self) -> None:
        assert isinstance(create_console().file, StringIO)

    def test_no_color_disables_ansi(self) -> None:
        console = create_console(no_color=True)
        console.print("[forge.error]boom[/forge.error]")
        output = get_output(console)
        assert "\x1b" not in output
        assert "boom" in output

    def test_widths(self) -> None:
        assert create_console().width == 120
        assert create_console(width=80).width == 80


class TestTheme:
    def test_method_styles_exist(self) -> None:
        for method in ("GET", "POST", "PUT", "PATCH", "DELETE"):
            assert style_for_method(method) in FORGE_THEME.styles

    def test_style_for_method(self) -> None:
        assert style_for_method("get") == "forge.method.get"
