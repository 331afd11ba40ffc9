"""Tests for the sermonbrowser Typer app."""

from __future__ import annotations

import json
import sqlite3

import pytest
from typer.testing import CliRunner

from sermonbrowser import __version__
from sermonbrowser.cli.app import app
from sermonbrowser.install.defaults import CODE_VERSION, DATABASE_VERSION

runner = CliRunner()


@pytest.fixture
def site(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SERMONBROWSER_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("SERMONBROWSER_SITE_URL", "http://cli.test/")
    root = tmp_path / "site"
    root.mkdir()
    db = tmp_path / "sermons.db"
    return ["--database", str(db), "--root", str(root)], db, root


def _json(result) -> object:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestVersion:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.stdout.startswith("sermonbrowser ")
        assert result.stdout.strip().split()[-1]

    def test_package_version(self) -> None:
        assert __version__ == CODE_VERSION


class TestStatus:
    def test_empty_database(self, site) -> None:
        args, _, _ = site
        data = _json(runner.invoke(app, ["status", *args, "--json"]))
        assert data["installed"] is False
        assert data["schema_version"] is None
        assert data["latest_schema_version"] == DATABASE_VERSION
        assert data["pending_steps"] == []

    def test_legacy_database_lists_pending(self, site) -> None:
        args, db, _ = site
        conn = sqlite3.connect(db)
        conn.execute("CREATE TABLE wp_options (option_name VARCHAR(191) PRIMARY KEY, option_value TEXT NOT NULL)")
        conn.execute("INSERT INTO wp_options VALUES ('sb_sermon_db_version', '\"1.4\"')")
        conn.commit()
        conn.close()

        data = _json(runner.invoke(app, ["status", *args, "--json"]))

        assert data["schema_version"] == "1.4"
        assert data["pending_steps"] == ["1.4->1.5", "1.5->1.6", "1.6->1.7"]


class TestInstallAndUpgrade:
    def test_install(self, site) -> None:
        args, _, root = site
        data = _json(runner.invoke(app, ["install", *args, "--json"]))
        assert data["success"] is True
        assert (root / "wp-content" / "uploads" / "sermons" / "images").is_dir()

        status = _json(runner.invoke(app, ["status", *args, "--json"]))
        assert status["schema_version"] == DATABASE_VERSION

    def test_upgrade_on_fresh_database_installs(self, site) -> None:
        args, _, _ = site
        data = _json(runner.invoke(app, ["upgrade", *args, "--json"]))
        assert data["installed"] is True
        assert data["schema_after"] == DATABASE_VERSION
        assert data["code_after"] == CODE_VERSION

    def test_upgrade_plain_output(self, site) -> None:
        args, _, _ = site
        result = runner.invoke(app, ["upgrade", *args])
        assert result.exit_code == 0, result.output
        assert DATABASE_VERSION in result.stdout

    def test_tables(self, site) -> None:
        args, _, _ = site
        runner.invoke(app, ["install", *args])
        rows = _json(runner.invoke(app, ["tables", *args, "--json"]))
        assert len(rows) == 9
        books = next(r for r in rows if r["table"] == "wp_sb_books")
        assert books == {"table": "wp_sb_books", "exists": True, "rows": 66}


class TestUninstall:
    def test_requires_confirmation(self, site) -> None:
        args, _, _ = site
        runner.invoke(app, ["install", *args])
        result = runner.invoke(app, ["uninstall", *args], input="n\n")
        assert result.exit_code != 0
        rows = _json(runner.invoke(app, ["tables", *args, "--json"]))
        assert all(r["exists"] for r in rows)

    def test_yes_removes_everything(self, site) -> None:
        args, _, root = site
        runner.invoke(app, ["install", *args])
        upload = root / "wp-content" / "uploads" / "sermons"
        (upload / "a.mp3").write_text("x")

        data = _json(runner.invoke(app, ["uninstall", *args, "--yes", "--wipe-files", "--json"]))

        assert data["removed_files"] == ["a.mp3"]
        assert data["report"]["success"] is True
        assert not (upload / "a.mp3").exists()
        rows = _json(runner.invoke(app, ["tables", *args, "--json"]))
        assert not any(r["exists"] for r in rows)
        status = _json(runner.invoke(app, ["status", *args, "--json"]))
        assert status["installed"] is False
