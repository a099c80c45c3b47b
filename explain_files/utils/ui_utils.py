"""Terminal output helpers (colored messages, option summary, boxes)."""

from __future__ import annotations

import shutil
import textwrap
from typing import Optional

import typer
import yaml


def _get_terminal_width(default: int = 100) -> int:
    try:
        columns = shutil.get_terminal_size().columns
        return max(40, min(columns, 140))
    except Exception:
        return default


def format_box(title: str, content: str, width: Optional[int] = None) -> str:
    """Return ``content`` wrapped in a box with ``title`` in the top border."""
    box_width = width or _get_terminal_width()
    inner_width = max(20, box_width - 2)

    clean_title = (title or "").strip()
    title_segment = f" {clean_title} " if clean_title else ""
    lines: list[str] = ["┌" + title_segment.center(inner_width, "─") + "┐"]

    for raw in content.splitlines() or [""]:
        for seg in textwrap.wrap(raw, width=inner_width - 2) or [""]:
            lines.append("│ " + seg.ljust(inner_width - 2) + " │")

    lines.append("└" + ("─" * inner_width) + "┘")
    return "\n".join(lines)


def success(message: str) -> None:
    typer.secho(message, fg=typer.colors.WHITE, bg=typer.colors.GREEN)


def info(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def heading(message: str, color: str = typer.colors.GREEN) -> None:
    typer.secho(message, fg=color, bold=True)


def echo_options(options: dict) -> None:
    """Print the effective options as YAML."""
    typer.secho("Using options:", bold=True)
    dumped = yaml.safe_dump(options, sort_keys=False, allow_unicode=True, default_flow_style=False)
    typer.secho(dumped, fg=typer.colors.CYAN)
