"""
Root Typer application for the ``sermonbrowser`` CLI.

Drives install, upgrade and uninstall against a SQLite database; every
command accepts ``--database`` and ``--root`` (site root holding the
upload directory).
"""

from __future__ import annotations

import typer
from typer import Typer

from sermonbrowser import __version__
from sermonbrowser.cli.utils import (
    console,
    err_console,
    make_context,
    output_report,
    print_dict,
    print_json,
    print_rows,
)
from sermonbrowser.core.errors import SermonBrowserError
from sermonbrowser.install.defaults import CODE_VERSION, DATABASE_VERSION
from sermonbrowser.install.installer import Installer
from sermonbrowser.install.lifecycle import check_upgrades, code_version, schema_version
from sermonbrowser.install.uninstaller import Uninstaller
from sermonbrowser.migrations.runner import CascadeRunner
from sermonbrowser.migrations.steps import SCHEMA_STEPS

app = Typer(
    name="sermonbrowser",
    help="sermonbrowser: install, upgrade and remove the sermon catalogue schema.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

DatabaseOpt = typer.Option(None, "--database", "-d", help="SQLite database path")
RootOpt = typer.Option(None, "--root", "-r", help="Site root directory")
JsonOpt = typer.Option(False, "--json", help="JSON output")


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import PackageNotFoundError
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("sermonbrowser-lifecycle")
        except PackageNotFoundError:
            v = __version__
        typer.echo(f"sermonbrowser {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """sermonbrowser CLI: schema and option lifecycle."""


def _fail(exc: SermonBrowserError) -> None:
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
    raise typer.Exit(code=1)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def status(
    database: str | None = DatabaseOpt,
    root: str | None = RootOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Show stored schema/code versions and pending upgrade steps."""
    ctx = make_context(database, root)
    stored = schema_version(ctx)
    pending = CascadeRunner(ctx, SCHEMA_STEPS).pending(stored) if stored else []
    data = {
        "schema_version": stored,
        "latest_schema_version": DATABASE_VERSION,
        "code_version": code_version(ctx),
        "running_code_version": CODE_VERSION,
        "installed": stored is not None,
        "pending_steps": [step.label for step in pending],
    }
    if json_out:
        print_json(data)
    else:
        print_dict(data, title="SermonBrowser Status")


@app.command()
def install(
    database: str | None = DatabaseOpt,
    root: str | None = RootOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Create upload directories, tables and default options."""
    ctx = make_context(database, root)
    try:
        report = Installer(ctx).run()
    except SermonBrowserError as exc:
        _fail(exc)
    output_report(report, as_json=json_out, title="Install")


@app.command()
def upgrade(
    database: str | None = DatabaseOpt,
    root: str | None = RootOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Install, upgrade the schema and bump the code version as needed."""
    ctx = make_context(database, root)
    try:
        result = check_upgrades(ctx)
    except SermonBrowserError as exc:
        _fail(exc)
    if json_out:
        print_json(result.to_dict())
        if not result.report.success:
            raise typer.Exit(code=1)
        return
    console.print(
        f"schema: {result.schema_before or '-'} → {result.schema_after or '-'}   "
        f"code: {result.code_before or '-'} → {result.code_after or '-'}"
    )
    output_report(result.report, title="Upgrade")


@app.command()
def uninstall(
    wipe_files: bool = typer.Option(False, "--wipe-files", help="Also delete uploaded files"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    database: str | None = DatabaseOpt,
    root: str | None = RootOpt,
    json_out: bool = JsonOpt,
) -> None:
    """Drop all sermon tables and options."""
    if not yes:
        typer.confirm("Remove all sermon data?", abort=True)
    ctx = make_context(database, root)
    try:
        notice = Uninstaller(ctx).run(wipe_files=wipe_files)
    except SermonBrowserError as exc:
        _fail(exc)
    if json_out:
        print_json(
            {
                "message": notice.message,
                "deactivated": notice.deactivated,
                "removed_files": notice.removed_files,
                "report": notice.report.to_dict(),
            }
        )
        return
    console.print(f"[bold]{notice.message}[/bold]")
    for name in notice.removed_files:
        console.print(f"  removed {name}")


@app.command()
def tables(
    database: str | None = DatabaseOpt,
    root: str | None = RootOpt,
    json_out: bool = JsonOpt,
) -> None:
    """List managed tables with existence and row counts."""
    ctx = make_context(database, root)
    rows = []
    for name in Uninstaller.get_table_names():
        table = ctx.settings.table_prefix + name
        exists = ctx.schema.table_exists(table)
        rows.append({"table": table, "exists": exists, "rows": ctx.schema.count(table) if exists else None})
    if json_out:
        print_json(rows)
    else:
        print_rows(rows, title="Managed Tables")


if __name__ == "__main__":
    app()
