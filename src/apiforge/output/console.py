"""Rich Console factory and theme for apiforge output.

Consoles render to a StringIO buffer so renderers return strings. In
non-TTY environments (tests, pipes) Rich disables color codes.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

FORGE_THEME = Theme(
    {
        "forge.ok": "bold green",
        "forge.error": "bold red",
        "forge.op": "bold cyan",
        "forge.key": "dim",
        "forge.path": "bold blue",
        "forge.url": "dim",
        "forge.method.get": "green",
        "forge.method.post": "yellow",
        "forge.method.put": "magenta",
        "forge.method.patch": "cyan",
        "forge.method.delete": "red",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=FORGE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_method(method: str) -> str:
    return f"forge.method.{method.lower()}"
