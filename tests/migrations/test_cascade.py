"""Tests for CascadeRunner and the full upgrade path."""

from __future__ import annotations

import pytest

from sermonbrowser.core.errors import MigrationError
from sermonbrowser.core.result import OperationReport
from sermonbrowser.install.defaults import DATABASE_VERSION, MP3_SHORTCODE
from sermonbrowser.install.installer import Installer
from sermonbrowser.install.lifecycle import schema_version
from sermonbrowser.install.schema import TABLES
from sermonbrowser.install.upgrader import Upgrader
from sermonbrowser.migrations.runner import (
    LEGACY_VERSION_KEY,
    MARKER_OPTION,
    CascadeRunner,
    MigrationStep,
)
from sermonbrowser.migrations.steps import SCHEMA_STEPS

VERSIONS = ["1.0", "1.1", "1.2", "1.3", "1.4", "1.5", "1.6"]


def _tables(ctx) -> set[str]:
    rows = ctx.schema.query("SELECT name FROM sqlite_master WHERE type='table'")
    return {r["name"] for r in rows if not r["name"].startswith("sqlite_")}


def _latest_columns(spec) -> set[str]:
    return {"id"} | {c.name for c in spec.columns}


class TestStepTable:
    def test_contiguous(self) -> None:
        for current, following in zip(SCHEMA_STEPS, SCHEMA_STEPS[1:], strict=False):
            assert current.to_version == following.from_version
        assert SCHEMA_STEPS[0].from_version == "1.0"
        assert SCHEMA_STEPS[-1].to_version == DATABASE_VERSION

    def test_option_marker_from_1_5(self) -> None:
        markers = {s.from_version: s.marker for s in SCHEMA_STEPS}
        assert markers["1.5"] == MARKER_OPTION
        assert markers["1.6"] == MARKER_OPTION
        assert markers["1.4"] != MARKER_OPTION

    def test_pending(self, ctx) -> None:
        runner = CascadeRunner(ctx, SCHEMA_STEPS)
        assert [s.label for s in runner.pending("1.4")] == ["1.4->1.5", "1.5->1.6", "1.6->1.7"]
        assert runner.pending("1.7") == []
        assert runner.pending("0.9") == []


class TestFullCascade:
    @pytest.mark.parametrize("version", VERSIONS)
    def test_reaches_latest(self, ctx, schema_at, version) -> None:
        schema_at(version)

        report = Upgrader(ctx).database_upgrade(version)

        assert report.success, report.errors
        assert schema_version(ctx) == DATABASE_VERSION
        assert ctx.config.get(LEGACY_VERSION_KEY) is None
        assert ctx.options.get("mp3_shortcode") == MP3_SHORTCODE

    def test_from_1_3_folds_display_defaults(self, ctx, schema_at) -> None:
        schema_at("1.3")

        report = Upgrader(ctx).database_upgrade("1.3")

        assert report.success, report.errors
        assert ctx.options.get("display_method") == "dynamic"
        assert ctx.options.get("sermons_per_page") == "10"
        assert isinstance(ctx.options.get("style_date_modified"), int)
        for key in ("sb_display_method", "sb_sermons_per_page", "sb_sermon_style_date_modified"):
            assert ctx.config.get(key) is None, key

    def test_legacy_database_matches_latest_columns(self, ctx, legacy_db) -> None:
        legacy_db()
        Upgrader(ctx).database_upgrade("1.0")
        for spec in TABLES:
            table = spec.physical("wp_")
            assert set(ctx.schema.column_names(table)) == _latest_columns(spec), table
        assert ctx.schema.index_exists("wp_sb_tags_name")
        assert ctx.schema.index_exists("wp_sb_books_sermons_sermon_id")

    def test_stamps_every_step(self, ctx, legacy_db) -> None:
        legacy_db()
        report = Upgrader(ctx).database_upgrade("1.0")
        steps = [label for label in report.applied if label.startswith("step:")]
        assert steps == [f"step:{s.label}" for s in SCHEMA_STEPS]

    def test_unknown_version_stamps_legacy_base(self, ctx, legacy_db) -> None:
        legacy_db()
        ctx.config.delete(LEGACY_VERSION_KEY)

        report = Upgrader(ctx).database_upgrade("0.9")

        assert ctx.config.get(LEGACY_VERSION_KEY) == "1.0"
        assert report.applied == []
        assert report.warnings
        assert not ctx.schema.column_exists("wp_sb_stuff", "count")

    def test_resume_from_stamp(self, ctx, legacy_db) -> None:
        legacy_db()
        Upgrader(ctx).database_upgrade("0.9")
        Upgrader(ctx).database_upgrade(schema_version(ctx))
        assert schema_version(ctx) == DATABASE_VERSION


class TestIdempotence:
    def test_installed_then_upgraded_twice(self, ctx) -> None:
        Installer(ctx).run()
        before = _tables(ctx)

        first = Upgrader(ctx).database_upgrade("1.0")
        second = Upgrader(ctx).database_upgrade("1.0")

        assert first.success, first.errors
        assert second.success, second.errors
        assert _tables(ctx) == before | {ctx.lock_table}
        for spec in TABLES:
            table = spec.physical("wp_")
            assert set(ctx.schema.column_names(table)) == _latest_columns(spec)


class TestFailures:
    def _failing_steps(self) -> tuple[MigrationStep, ...]:
        def broken(ctx, report: OperationReport) -> None:
            from sermonbrowser.core.result import attempt

            attempt(report, "broken", ctx.db.execute, "ALTER TABLE missing ADD COLUMN x INT", strict=ctx.strict)

        return (
            MigrationStep("1.0", "1.1", broken),
            MigrationStep("1.1", "1.2", lambda ctx, report: None),
        )

    def test_lenient_records_and_continues(self, ctx, legacy_db) -> None:
        legacy_db()
        report = CascadeRunner(ctx, self._failing_steps()).run("1.0")
        assert not report.success
        assert report.errors[0].label == "broken"
        assert ctx.config.get(LEGACY_VERSION_KEY) == "1.2"

    def test_strict_raises_without_stamp(self, ctx, legacy_db) -> None:
        legacy_db()
        ctx.settings.strict = True
        with pytest.raises(MigrationError):
            CascadeRunner(ctx, self._failing_steps()).run("1.0")
        assert ctx.config.get(LEGACY_VERSION_KEY) == "1.0"

    def test_strict_upgrade_releases_lock(self, ctx, legacy_db) -> None:
        legacy_db()
        ctx.settings.strict = True
        with pytest.raises(MigrationError):
            Upgrader(ctx, self._failing_steps()).database_upgrade("1.0")
        from sermonbrowser.core.concurrency import UpgradeGuard
        from sermonbrowser.install.upgrader import UPGRADE_LOCK_KEY

        assert not UpgradeGuard(ctx.db, ctx.dialect, ctx.lock_table).is_locked(UPGRADE_LOCK_KEY)
