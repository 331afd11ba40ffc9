"""
CLI utility helpers: context construction and output formatting.
"""

from __future__ import annotations

import json
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from sermonbrowser.core.config_store import SqlConfigStore
from sermonbrowser.core.context import LifecycleContext
from sermonbrowser.core.dialect import get_dialect
from sermonbrowser.core.filesystem import LocalFileSystem
from sermonbrowser.core.logging import configure_logging
from sermonbrowser.core.result import OperationReport
from sermonbrowser.core.settings import LifecycleSettings
from sermonbrowser.core.sqlite_conn import SqliteConnection

console = Console()
err_console = Console(stderr=True)


# ── Context helper ───────────────────────────────────────────────────────


def make_context(
    database: str | None = None,
    root: str | None = None,
) -> LifecycleContext:
    """Build a SQLite-backed ``LifecycleContext`` for CLI commands.

    Options live in ``<prefix>options`` inside the same database file.
    """
    overrides: dict[str, Any] = {}
    if database:
        overrides["database"] = database
    if root:
        overrides["root_dir"] = root
    settings = LifecycleSettings(**overrides)
    if settings.dialect != "sqlite":
        err_console.print("[bold red]Error[/bold red]: the CLI only drives SQLite databases")
        raise typer.Exit(code=2)

    configure_logging(level=settings.log_level, json_format=settings.json_logs)

    dialect = get_dialect("sqlite")
    conn = SqliteConnection(settings.database)
    config = SqlConfigStore(conn, dialect, f"{settings.table_prefix}options")
    return LifecycleContext(
        db=conn, config=config, fs=LocalFileSystem(), settings=settings, dialect=dialect
    )


# ── Output helpers ───────────────────────────────────────────────────────


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    """Render a single dict as key-value pairs."""
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")


def print_rows(rows: list[dict[str, Any]], *, title: str = "") -> None:
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in rows[0]:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def output_report(report: OperationReport, *, as_json: bool = False, title: str = "") -> None:
    """Render an ``OperationReport``; exit 1 if it holds errors."""
    if as_json:
        print_json(report.to_dict())
    else:
        if title:
            console.print(f"[bold]{title}[/bold]")
        console.print(
            f"  applied: {len(report.applied)}  skipped: {len(report.skipped)}"
            f"  errors: {len(report.errors)}"
        )
        for warning in report.warnings:
            console.print(f"  [yellow]warning[/yellow]: {warning}")
        for outcome in report.errors:
            err_console.print(f"  [bold red]failed[/bold red] {outcome.label}: {outcome.error}")
    if not report.success:
        raise typer.Exit(code=1)
