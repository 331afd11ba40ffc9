"""Tests for check_upgrades and the stored-version readers."""

from __future__ import annotations

from sermonbrowser.install.defaults import CODE_VERSION, DATABASE_VERSION
from sermonbrowser.install.lifecycle import check_upgrades, code_version, schema_version


class TestSchemaVersion:
    def test_absent(self, ctx) -> None:
        assert schema_version(ctx) is None
        assert code_version(ctx) is None

    def test_legacy_key_wins(self, ctx) -> None:
        ctx.config.set("sb_sermon_db_version", "1.3")
        ctx.options.update("db_version", "1.7")
        assert schema_version(ctx) == "1.3"

    def test_option(self, ctx) -> None:
        ctx.options.update("db_version", "1.6")
        assert schema_version(ctx) == "1.6"


class TestCheckUpgrades:
    def test_fresh_database_installs(self, ctx) -> None:
        result = check_upgrades(ctx)

        assert result.installed
        assert not result.upgraded
        assert result.code_bumped
        assert result.schema_after == DATABASE_VERSION
        assert result.code_after == CODE_VERSION
        assert result.report.success

    def test_legacy_database_upgrades(self, ctx, legacy_db) -> None:
        legacy_db()

        result = check_upgrades(ctx)

        assert result.upgraded
        assert not result.installed
        assert result.schema_before == "1.0"
        assert result.schema_after == DATABASE_VERSION
        assert ctx.config.get("sb_sermon_db_version") is None
        assert "step:1.6->1.7" in result.report.applied

    def test_current_database_only_bumps_code(self, ctx) -> None:
        check_upgrades(ctx)
        ctx.options.update("code_version", "0.7.0")

        result = check_upgrades(ctx)

        assert not result.installed
        assert not result.upgraded
        assert result.code_bumped
        assert result.code_before == "0.7.0"
        assert result.code_after == CODE_VERSION

    def test_nothing_to_do(self, ctx) -> None:
        check_upgrades(ctx)
        result = check_upgrades(ctx)
        assert not (result.installed or result.upgraded or result.code_bumped)
        assert result.report.applied == []

    def test_to_dict(self, ctx) -> None:
        data = check_upgrades(ctx).to_dict()
        assert data["installed"] is True
        assert data["report"]["success"] is True
