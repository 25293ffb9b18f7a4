"""
Root Typer application for the resque-status CLI.

Every command opens one registry against the configured Redis server,
performs a single registry operation, and renders the result.
"""

from __future__ import annotations

import sys

import typer
from typer import Typer

from resque_status.cli.utils import (
    console,
    handle_errors,
    make_registry,
    print_json,
    print_table,
)
from resque_status.logging import (
    bind_context,
    clear_context,
    configure_logging_from_settings,
)
from resque_status.registry import StatusRegistry
from resque_status.settings import get_settings

app = Typer(
    name="resque-status",
    help="resque-status — inspect and reset shared worker status.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from resque_status import __version__

        typer.echo(f"resque-status {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    redis_url: str | None = typer.Option(  # noqa: UP007
        None,
        "--redis-url",
        "-r",
        help="Redis URL (default: RESQUE_STATUS_REDIS_URL or redis://localhost:6379/0).",
    ),
    log_level: str | None = typer.Option(  # noqa: UP007
        None,
        "--log-level",
        help="Log level for registry events (default: RESQUE_STATUS_LOG_LEVEL).",
    ),
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """resque-status CLI — workers, scheduler registration, and paused workers."""
    configure_logging_from_settings(
        get_settings(), level=log_level, service="resque-status-cli", stream=sys.stderr
    )
    clear_context()
    bind_context(command=ctx.invoked_subcommand)
    ctx.obj = {"redis_url": redis_url}


def _registry(ctx: typer.Context) -> StatusRegistry:
    return make_registry((ctx.obj or {}).get("redis_url"))


# ── Workers ──────────────────────────────────────────────────────────────


@app.command("workers")
def workers(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List started workers and their runtime arguments."""
    with handle_errors():
        entries = _registry(ctx).get_workers()

    if as_json:
        print_json({str(pid): args for pid, args in sorted(entries.items())})
        return
    print_table(
        ["pid", "args"],
        [[pid, args] for pid, args in sorted(entries.items())],
        title="Workers",
    )


@app.command("remove")
def remove(
    ctx: typer.Context,
    pid: int = typer.Argument(..., help="Worker PID"),
) -> None:
    """Remove one worker's runtime arguments."""
    with handle_errors():
        _registry(ctx).remove_worker(pid)
    console.print(f"[green]Removed worker {pid}[/green]")


@app.command("clear")
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation."),
) -> None:
    """Clear every worker entry and every paused flag."""
    if not yes:
        typer.confirm("Clear all workers and paused flags?", abort=True)
    with handle_errors():
        _registry(ctx).clear_workers()
    console.print("[green]Workers and paused flags cleared[/green]")


# ── Paused workers ───────────────────────────────────────────────────────


@app.command("paused")
def paused(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """List paused worker names."""
    with handle_errors():
        names = sorted(_registry(ctx).get_paused_worker())

    if as_json:
        print_json(names)
        return
    print_table(["worker"], [[name] for name in names], title="Paused workers")


@app.command("pause")
def pause(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Worker name, e.g. host:30677:default"),
) -> None:
    """Mark a worker as paused."""
    with handle_errors():
        _registry(ctx).set_paused_worker(name, True)
    console.print(f"[yellow]Paused[/yellow] {name}")


@app.command("resume")
def resume(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Worker name, e.g. host:30677:default"),
) -> None:
    """Mark a worker as active again."""
    with handle_errors():
        _registry(ctx).set_paused_worker(name, False)
    console.print(f"[green]Resumed[/green] {name}")


# ── Scheduler ────────────────────────────────────────────────────────────


@app.command("scheduler")
def scheduler(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Output as JSON."),
) -> None:
    """Show the registered scheduler worker and whether it is running.

    A registration whose pid has left the worker table is removed.
    """
    with handle_errors():
        registry = _registry(ctx)
        pid = registry.get_scheduler_worker()
        running = registry.is_running_scheduler_worker()

    if as_json:
        print_json({"pid": pid, "running": running})
        return
    if pid is None:
        console.print("[dim]No scheduler worker registered.[/dim]")
        return
    state = "[green]running[/green]" if running else "[red]not running[/red]"
    console.print(f"  [cyan]pid[/cyan]: {pid}")
    console.print(f"  [cyan]status[/cyan]: {state}")


@app.command("unregister-scheduler")
def unregister_scheduler(ctx: typer.Context) -> None:
    """Remove the scheduler worker registration."""
    with handle_errors():
        removed = _registry(ctx).unregister_scheduler_worker()
    if removed:
        console.print("[green]Scheduler worker unregistered[/green]")
    else:
        console.print("[dim]No scheduler worker was registered.[/dim]")
