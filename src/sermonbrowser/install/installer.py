"""First-run bootstrap.

``Installer(ctx).run()`` creates the upload directories, creates each
missing table in its latest shape (seeding the example preachers and
series only when those tables are created), fills the Bible book list
when it is empty, and writes the default options.  Failures are recorded
on the returned report and never stop the run unless the context is
strict.
"""

from __future__ import annotations

from sermonbrowser.core.context import LifecycleContext
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.result import OperationReport, attempt
from sermonbrowser.install.defaults import install_options
from sermonbrowser.install.schema import ENGLISH_BIBLE_BOOKS, TABLES, TableSpec

logger = get_logger(__name__)


class Installer:
    def __init__(self, ctx: LifecycleContext) -> None:
        self.ctx = ctx

    def run(self) -> OperationReport:
        report = OperationReport()
        self.create_upload_directories(report)
        self.create_tables(report)
        self.populate_books(report)
        self.set_default_options(report)
        self.ctx.db.commit()
        logger.info(
            "install.completed",
            applied=len(report.applied),
            skipped=len(report.skipped),
            errors=len(report.errors),
        )
        return report

    def create_upload_directories(self, report: OperationReport) -> None:
        ctx = self.ctx
        for path in (ctx.upload_path(), ctx.upload_path("images")):
            if ctx.fs.is_dir(path):
                report.skip(f"mkdir:{path}")
                continue
            attempt(report, f"mkdir:{path}", ctx.fs.mkdir, path, ctx.settings.dir_mode, True, strict=ctx.strict)

    def create_tables(self, report: OperationReport) -> None:
        for spec in TABLES:
            self.create_table(spec, report)

    def create_table(self, spec: TableSpec, report: OperationReport) -> bool:
        """Create one table if absent; returns True when it was created."""
        ctx = self.ctx
        table = spec.physical(ctx.settings.table_prefix)
        if ctx.schema.table_exists(table):
            report.skip(f"create_table:{table}")
            return False

        create, *indexes = spec.create_statements(ctx.dialect, ctx.settings.table_prefix)
        attempt(report, f"create_table:{table}", ctx.db.execute, create, strict=ctx.strict)
        for sql in indexes:
            attempt(report, f"create_index:{table}", ctx.db.execute, sql, strict=ctx.strict)
        if spec.seeds:
            attempt(
                report,
                f"seed:{table}",
                ctx.schema.insert_many,
                table,
                [dict(row) for row in spec.seeds],
                strict=ctx.strict,
            )
        ctx.db.commit()
        logger.info("install.table_created", table=table, seeded=len(spec.seeds))
        return True

    def populate_books(self, report: OperationReport) -> None:
        ctx = self.ctx
        books = ctx.table("books")
        label = f"seed:{books}"
        if not ctx.schema.table_exists(books) or ctx.schema.count(books) > 0:
            report.skip(label)
            return
        attempt(
            report,
            label,
            ctx.schema.insert_many,
            books,
            [{"name": name} for name in ENGLISH_BIBLE_BOOKS],
            strict=ctx.strict,
        )

    def set_default_options(self, report: OperationReport) -> None:
        ctx = self.ctx
        settings = ctx.settings
        defaults = install_options(
            upload_dir=settings.upload_dir,
            upload_url=settings.upload_url,
            podcast_url=settings.podcast_url,
            plugin_url=settings.site_url.rstrip("/") + "/wp-content/plugins/sermon-browser",
        )
        for key, value in defaults.items():
            attempt(report, f"option:{key}", ctx.options.update, key, value, strict=ctx.strict)


__all__ = ["Installer"]
