"""Tests for Uninstaller teardown and the guarded file wipe."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from sermonbrowser.core.options import OptionsManager
from sermonbrowser.install.installer import Installer
from sermonbrowser.install.uninstaller import (
    DEACTIVATE_HOOK,
    NETWORK_MESSAGE,
    SITE_MESSAGE,
    Uninstaller,
)


@pytest.fixture
def installed(ctx):
    Installer(ctx).run()
    return ctx


@pytest.fixture
def outside_file(tmp_path: Path) -> Path:
    target = tmp_path / "outside" / "precious.txt"
    target.parent.mkdir()
    target.write_text("keep me")
    return target


class TestTableNames:
    def test_stable_list(self) -> None:
        assert Uninstaller.get_table_names() == [
            "sb_preachers",
            "sb_series",
            "sb_services",
            "sb_sermons",
            "sb_stuff",
            "sb_books",
            "sb_books_sermons",
            "sb_sermons_tags",
            "sb_tags",
        ]


class TestWipeUploadDirectory:
    def test_scenario_three_files_and_escaping_symlink(self, installed, outside_file) -> None:
        upload = Path(installed.upload_path())
        for name in ("a.mp3", "b.mp3", "c.pdf"):
            (upload / name).write_text(name)
        os.symlink(outside_file, upload / "escape.txt")
        installed.config.set("active_plugins", ["sermon-browser/sermon.php"])

        notice = Uninstaller(installed).run(wipe_files=True)

        assert sorted(notice.removed_files) == ["a.mp3", "b.mp3", "c.pdf"]
        assert outside_file.read_text() == "keep me"
        assert (upload / "escape.txt").is_symlink()
        assert (upload / "images").is_dir()
        for name in Uninstaller.get_table_names():
            assert not installed.schema.table_exists("wp_" + name)
        for key in OptionsManager.storage_keys():
            assert installed.config.get(key) is None

    def test_traversal_name_rejected(self, installed, outside_file) -> None:
        relative = os.path.relpath(outside_file, installed.upload_path())
        assert Uninstaller(installed).delete_upload_entry(relative) is False
        assert outside_file.exists()

    def test_directory_itself_rejected(self, installed) -> None:
        assert Uninstaller(installed).delete_upload_entry(".") is False

    def test_symlink_to_inside_file(self, installed) -> None:
        upload = Path(installed.upload_path())
        (upload / "real.mp3").write_text("x")
        os.symlink(upload / "real.mp3", upload / "alias.mp3")
        assert Uninstaller(installed).delete_upload_entry("alias.mp3") is True
        assert (upload / "real.mp3").exists()

    def test_missing_directory(self, ctx) -> None:
        assert Uninstaller(ctx).wipe_upload_directory() == []


class TestTeardown:
    def test_without_wipe_keeps_files(self, installed) -> None:
        upload = Path(installed.upload_path())
        (upload / "keep.mp3").write_text("x")
        notice = Uninstaller(installed).run()
        assert notice.removed_files == []
        assert (upload / "keep.mp3").exists()

    def test_drop_tables_when_missing(self, ctx) -> None:
        uninstaller = Uninstaller(ctx)
        uninstaller.drop_tables()
        assert uninstaller.report.success
        assert len(uninstaller.report.skipped) == 10

    def test_lock_table_dropped(self, installed) -> None:
        from sermonbrowser.install.upgrader import Upgrader

        installed.config.set("sb_sermon_db_version", "1.6")
        Upgrader(installed).database_upgrade("1.6")
        assert installed.schema.table_exists(installed.lock_table)
        Uninstaller(installed).drop_tables()
        assert not installed.schema.table_exists(installed.lock_table)


class TestNotice:
    def test_site_install_deactivates(self, installed) -> None:
        fired: list[str] = []
        installed.config.set("active_plugins", ["akismet/akismet.php", "sermon-browser/sermon.php"])

        notice = Uninstaller(installed, on_deactivate=fired.append).run()

        assert notice.message == SITE_MESSAGE
        assert notice.deactivated
        assert fired == [DEACTIVATE_HOOK]
        assert installed.config.get("active_plugins") == ["akismet/akismet.php"]

    def test_network_install_leaves_plugins(self, installed) -> None:
        fired: list[str] = []
        installed.settings.network_install = True
        installed.config.set("active_plugins", ["sermon-browser/sermon.php"])

        notice = Uninstaller(installed, on_deactivate=fired.append).run()

        assert notice.message == NETWORK_MESSAGE
        assert not notice.deactivated
        assert fired == []
        assert installed.config.get("active_plugins") == ["sermon-browser/sermon.php"]


class TestLegacyLeftovers:
    def test_empty_legacy_stylesheet_removed(self, ctx, legacy_db) -> None:
        from sermonbrowser.install.upgrader import Upgrader

        legacy_db()
        Upgrader(ctx).database_upgrade("1.0")
        assert ctx.config.get("sb_sermon_style") == ""

        Uninstaller(ctx).run()

        assert ctx.config.get("sb_sermon_style") is None
        assert len(ctx.config) == 0
