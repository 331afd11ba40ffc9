"""The schema steps from 1.0 to 1.7.

Each step is ``fn(ctx, report)``.  Every statement goes through
:func:`~sermonbrowser.core.result.attempt`, so a failure is recorded and
the step continues unless the context is strict.  Column and index
additions are guarded by catalog probes and are skipped when the object
already exists.
"""

from __future__ import annotations

import time as _time
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from sermonbrowser.core.config_store import add as add_option
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.options import b64encode_text
from sermonbrowser.core.result import OperationReport, attempt
from sermonbrowser.install.defaults import DEFAULT_TIME, IMPORT_DEFAULTS, MP3_SHORTCODE
from sermonbrowser.install.legacy_options import upgrade_options
from sermonbrowser.install.schema import column, index_name
from sermonbrowser.install.tags import TagCleanup
from sermonbrowser.migrations.runner import MARKER_OPTION, MigrationStep

if TYPE_CHECKING:
    from sermonbrowser.core.context import LifecycleContext

logger = get_logger(__name__)

# Pattern of the auto-named indexes that pre-1.5 releases created twice.
DUPLICATE_INDEX_PATTERN = "sermon_id_%"

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


# =========================================================================
# Guarded DDL helpers
# =========================================================================


def add_column(ctx: LifecycleContext, report: OperationReport, logical: str, name: str) -> None:
    table = ctx.table(logical)
    label = f"add_column:{table}.{name}"
    if not ctx.schema.table_exists(table):
        report.skip(label)
        return
    if ctx.schema.column_exists(table, name):
        report.skip(label)
        return
    sql = ctx.dialect.add_column(table, column(logical, name).sql(ctx.dialect))
    attempt(report, label, ctx.db.execute, sql, strict=ctx.strict)


def add_index(
    ctx: LifecycleContext,
    report: OperationReport,
    logical: str,
    name: str,
    *,
    unique: bool = False,
) -> None:
    table = ctx.table(logical)
    index = index_name(table, name)
    label = f"create_index:{index}"
    if not ctx.schema.table_exists(table) or ctx.schema.index_exists(index):
        report.skip(label)
        return
    sql = ctx.dialect.create_index(index, table, [name], unique=unique)
    attempt(report, label, ctx.db.execute, sql, strict=ctx.strict)


# =========================================================================
# Time-of-day backfill
# =========================================================================


def parse_time_of_day(value: Any) -> timedelta | None:
    """``"10:30"`` → ``timedelta(hours=10, minutes=30)``; None if unparseable."""
    if value is None:
        return None
    text = str(value).strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return timedelta(hours=parsed.hour, minutes=parsed.minute, seconds=parsed.second)
    return None


def parse_stored_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value).strip())
    except ValueError:
        return None


def effective_time(sermon: dict[str, Any], service_times: dict[int, Any]) -> Any:
    """Override time when the override flag is set, else the service time."""
    if sermon.get("override"):
        return sermon.get("time")
    return service_times.get(sermon.get("service_id"), DEFAULT_TIME)


def backfill_datetime(stored: datetime, time_of_day: timedelta) -> datetime:
    """Shift *stored* by the time of day it previously carried implicitly."""
    base = parse_time_of_day(DEFAULT_TIME) or timedelta(0)
    return stored + (time_of_day - base)


def backfill_sermon_times(ctx: LifecycleContext, report: OperationReport) -> int:
    """Materialise each sermon's implicit time of day; returns rows updated."""
    sermons_table = ctx.table("sermons")
    services_table = ctx.table("services")
    if not ctx.schema.column_exists(sermons_table, "datetime"):
        report.skip(f"backfill:{sermons_table}")
        return 0

    sermons = ctx.schema.query(
        f"SELECT id, datetime, service_id, time, override FROM {sermons_table}"
    )
    if not sermons:
        return 0
    service_times: dict[int, Any] = {}
    if ctx.schema.table_exists(services_table):
        for row in ctx.schema.query(f"SELECT id, time FROM {services_table} ORDER BY id"):
            service_times[row["id"]] = row["time"]

    ph = ctx.dialect.placeholder
    updated = 0
    for sermon in sermons:
        stored = parse_stored_datetime(sermon["datetime"])
        if stored is None:
            report.warn("unparseable sermon date", sermon_id=sermon["id"], value=sermon["datetime"])
            continue
        raw_time = effective_time(sermon, service_times)
        offset = parse_time_of_day(raw_time)
        if offset is None:
            logger.warning("upgrade.time_defaulted", sermon_id=sermon["id"], value=raw_time)
            offset = parse_time_of_day(DEFAULT_TIME) or timedelta(0)
        new_value = backfill_datetime(stored, offset).strftime(DATETIME_FORMAT)
        attempt(
            report,
            f"backfill:{sermons_table}:{sermon['id']}",
            ctx.db.execute,
            f"UPDATE {sermons_table} SET datetime = {ph(1)} WHERE id = {ph(2)}",
            (new_value, sermon["id"]),
            strict=ctx.strict,
        )
        updated += 1
    logger.info("upgrade.datetime_backfilled", sermons=updated)
    return updated


# =========================================================================
# Steps
# =========================================================================


def upgrade_from_1_0(ctx: LifecycleContext, report: OperationReport) -> None:
    """Move attachments out of the plugin directory; extend preachers."""
    stuff = ctx.table("stuff")
    if ctx.schema.table_exists(stuff):
        files = ctx.schema.query(
            f"SELECT name FROM {stuff} WHERE type = {ctx.dialect.placeholder(1)} ORDER BY name ASC",
            ("file",),
        )
        for row in files:
            src = ctx.legacy_files_path(row["name"])
            dst = ctx.upload_path(row["name"])
            if not ctx.fs.exists(src):
                report.skip(f"relocate:{row['name']}")
                continue
            attempt(report, f"chmod:{src}", ctx.fs.chmod, src, ctx.settings.file_mode, strict=ctx.strict)
            attempt(report, f"relocate:{row['name']}", ctx.fs.rename, src, dst, strict=ctx.strict)

    add_column(ctx, report, "preachers", "description")
    add_column(ctx, report, "preachers", "image")


def upgrade_from_1_1(ctx: LifecycleContext, report: OperationReport) -> None:
    """Placeholder stylesheet key; images directory."""
    add_option(ctx.config, "sb_sermon_style", b64encode_text(""))
    images = ctx.upload_path("images")
    if not ctx.fs.is_dir(images):
        attempt(report, f"mkdir:{images}", ctx.fs.mkdir, images, ctx.settings.dir_mode, strict=ctx.strict)
        if ctx.fs.is_dir(images):
            attempt(report, f"chmod:{images}", ctx.fs.chmod, images, ctx.settings.dir_mode, strict=ctx.strict)


def upgrade_from_1_2(ctx: LifecycleContext, report: OperationReport) -> None:
    """Download counter; sermon_id indexes on both pivots."""
    add_column(ctx, report, "stuff", "count")
    add_index(ctx, report, "books_sermons", "sermon_id")
    add_index(ctx, report, "sermons_tags", "sermon_id")


def upgrade_from_1_3(ctx: LifecycleContext, report: OperationReport) -> None:
    """Page links and per-page display defaults."""
    add_column(ctx, report, "series", "page_id")
    add_column(ctx, report, "sermons", "page_id")
    add_option(ctx.config, "sb_display_method", "dynamic")
    add_option(ctx.config, "sb_sermons_per_page", "10")
    add_option(ctx.config, "sb_sermon_style_date_modified", int(_time.time()))


def upgrade_from_1_4(ctx: LifecycleContext, report: OperationReport) -> None:
    """Drop doubled indexes, dedupe tags, then make tag names unique."""
    for index, table in ctx.schema.find_indexes_like(DUPLICATE_INDEX_PATTERN):
        attempt(
            report,
            f"drop_index:{index}",
            ctx.db.execute,
            ctx.dialect.drop_index(index, table),
            strict=ctx.strict,
        )

    tags = ctx.table("tags")
    pivot = ctx.table("sermons_tags")
    if not (ctx.schema.table_exists(tags) and ctx.schema.table_exists(pivot)):
        report.skip(f"dedupe:{tags}")
        return

    cleanup = TagCleanup(ctx.db, ctx.dialect, tags, pivot)
    attempt(report, f"dedupe:{tags}", cleanup.dedupe, strict=ctx.strict)
    attempt(report, f"delete_unused:{tags}", cleanup.delete_unused, strict=ctx.strict)

    widen = ctx.dialect.modify_column(tags, column("tags", "name").sql(ctx.dialect))
    if widen is None:
        report.skip(f"modify_column:{tags}.name")
    else:
        attempt(report, f"modify_column:{tags}.name", ctx.db.execute, widen, strict=ctx.strict)

    add_index(ctx, report, "tags", "name", unique=True)


def upgrade_from_1_5(ctx: LifecycleContext, report: OperationReport) -> None:
    """Options aggregate, attachment duration, full sermon datetimes."""
    upgrade_options(ctx.config, ctx.options)
    add_column(ctx, report, "stuff", "duration")

    sermons = ctx.table("sermons")
    label = f"rename_column:{sermons}.date"
    renamed = False
    if ctx.schema.column_exists(sermons, "date") and not ctx.schema.column_exists(sermons, "datetime"):
        errors_before = len(report.errors)
        attempt(
            report,
            label,
            ctx.db.execute,
            ctx.dialect.rename_column(sermons, "date", "datetime", "DATETIME"),
            strict=ctx.strict,
        )
        renamed = len(report.errors) == errors_before
    else:
        report.skip(label)

    # Stored datetimes already carry their time of day once the rename is done.
    if renamed:
        backfill_sermon_times(ctx, report)
    else:
        report.skip(f"backfill:{sermons}")

    for key, value in IMPORT_DEFAULTS.items():
        ctx.options.update(key, value)


def upgrade_from_1_6(ctx: LifecycleContext, report: OperationReport) -> None:
    ctx.options.update("mp3_shortcode", MP3_SHORTCODE)


SCHEMA_STEPS: tuple[MigrationStep, ...] = (
    MigrationStep("1.0", "1.1", upgrade_from_1_0),
    MigrationStep("1.1", "1.2", upgrade_from_1_1),
    MigrationStep("1.2", "1.3", upgrade_from_1_2),
    MigrationStep("1.3", "1.4", upgrade_from_1_3),
    MigrationStep("1.4", "1.5", upgrade_from_1_4),
    MigrationStep("1.5", "1.6", upgrade_from_1_5, MARKER_OPTION),
    MigrationStep("1.6", "1.7", upgrade_from_1_6, MARKER_OPTION),
)


__all__ = [
    "DUPLICATE_INDEX_PATTERN",
    "SCHEMA_STEPS",
    "add_column",
    "add_index",
    "backfill_datetime",
    "backfill_sermon_times",
    "effective_time",
    "parse_stored_datetime",
    "parse_time_of_day",
]
