"""
CLI utility helpers — output formatting and registry construction.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from resque_status.errors import ResqueStatusError
from resque_status.registry import StatusRegistry
from resque_status.settings import get_settings

console = Console()
err_console = Console(stderr=True)


# ── Registry helper ──────────────────────────────────────────────────────


def make_registry(redis_url: str | None = None) -> StatusRegistry:
    """Build a Redis-backed registry; ``redis_url`` overrides settings."""
    settings = get_settings()
    if redis_url:
        settings = settings.model_copy(update={"redis_url": redis_url})
    return StatusRegistry.from_settings(settings)


@contextmanager
def handle_errors() -> Iterator[None]:
    """Print registry errors and exit with code 1."""
    try:
        yield
    except ResqueStatusError as exc:
        err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
        raise typer.Exit(code=1) from exc


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_table(columns: list[str], rows: list[list[Any]], *, title: str = "") -> None:
    """Render rows as a Rich table, or a dim placeholder when empty."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
