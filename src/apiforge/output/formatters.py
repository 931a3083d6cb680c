"""Rich/JSON output selection.

The CLI renders ServiceResult for humans (Rich tables and colors) or
machines (--json). Quiet mode prints only the essentials.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from apiforge.services.result import ServiceResult


@dataclass(frozen=True)
class OutputSettings:
    """Output mode flags resolved from the CLI."""

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False


def format_result(result: ServiceResult, *, settings: OutputSettings | None = None) -> str:
    """Format a ServiceResult for display."""
    settings = settings or OutputSettings()
    if settings.json_output:
        return result.model_dump_json(indent=2)
    if settings.quiet:
        from apiforge.output.renderers import render_quiet

        return render_quiet(result)

    from apiforge.output.renderers import render_result

    return render_result(result, verbose=settings.verbose)
