"""
Shared pytest fixtures for sermonbrowser tests.

This module provides:
- An in-memory SQLite connection and option store
- A LifecycleContext rooted in ``tmp_path``
- Builders for a pre-1.1 database and for a database at any schema version

Usage:
    def test_something(ctx, legacy_db):
        legacy_db()                 # 1.0-shape tables, version "1.0"
        ...
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from sermonbrowser.core.config_store import InMemoryConfigStore
from sermonbrowser.core.context import LifecycleContext
from sermonbrowser.core.dialect import get_dialect
from sermonbrowser.core.filesystem import LocalFileSystem
from sermonbrowser.core.logging import clear_context
from sermonbrowser.core.result import OperationReport
from sermonbrowser.core.settings import LifecycleSettings
from sermonbrowser.core.sqlite_conn import SqliteConnection
from sermonbrowser.migrations.runner import LEGACY_VERSION_KEY, stamp_version
from sermonbrowser.migrations.steps import SCHEMA_STEPS

PREFIX = "wp_"

# Table shapes as first shipped, before any upgrade step ran.
LEGACY_DDL: tuple[str, ...] = (
    f"CREATE TABLE {PREFIX}sb_preachers (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name VARCHAR(30) NOT NULL)",
    f"CREATE TABLE {PREFIX}sb_series (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name VARCHAR(255) NOT NULL)",
    f"CREATE TABLE {PREFIX}sb_services (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name VARCHAR(255) NOT NULL, time VARCHAR(5) NOT NULL)",
    f"CREATE TABLE {PREFIX}sb_sermons (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "title VARCHAR(255) NOT NULL, preacher_id INT(10) NOT NULL, date DATE NOT NULL, "
    "service_id INT(10) NOT NULL, series_id INT(10) NOT NULL, "
    "start TEXT NOT NULL DEFAULT '', \"end\" TEXT NOT NULL DEFAULT '', "
    "description TEXT, time VARCHAR(5), override TINYINT(1))",
    f"CREATE TABLE {PREFIX}sb_books_sermons (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "book_name VARCHAR(30) NOT NULL, chapter INT(10) NOT NULL, verse INT(10) NOT NULL, "
    "\"order\" INT(10) NOT NULL, type VARCHAR(30) DEFAULT NULL, sermon_id INT(10) NOT NULL)",
    f"CREATE TABLE {PREFIX}sb_books (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name VARCHAR(30) NOT NULL)",
    f"CREATE TABLE {PREFIX}sb_stuff (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "type VARCHAR(30) NOT NULL, name TEXT NOT NULL, sermon_id INT(10) NOT NULL)",
    f"CREATE TABLE {PREFIX}sb_tags (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name VARCHAR(50) DEFAULT NULL)",
    f"CREATE TABLE {PREFIX}sb_sermons_tags (id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "sermon_id INT(10) NOT NULL, tag_id INT(10) NOT NULL)",
)


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    yield
    clear_context()


@pytest.fixture
def conn() -> Generator[SqliteConnection, None, None]:
    connection = SqliteConnection(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def config() -> InMemoryConfigStore:
    return InMemoryConfigStore()


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def settings(site_root: Path) -> LifecycleSettings:
    return LifecycleSettings(
        _env_file=None,
        root_dir=site_root,
        table_prefix=PREFIX,
        site_url="http://example.test/",
    )


@pytest.fixture
def ctx(conn, config, settings) -> LifecycleContext:
    return LifecycleContext(
        db=conn,
        config=config,
        fs=LocalFileSystem(),
        settings=settings,
        dialect=get_dialect("sqlite"),
    )


@pytest.fixture
def legacy_db(ctx: LifecycleContext) -> Callable[[], LifecycleContext]:
    """Create the 1.0 table shapes and stamp version "1.0"."""

    def build() -> LifecycleContext:
        for ddl in LEGACY_DDL:
            ctx.db.execute(ddl)
        ctx.db.commit()
        ctx.config.set(LEGACY_VERSION_KEY, "1.0")
        return ctx

    return build


@pytest.fixture
def schema_at(legacy_db) -> Callable[[str], LifecycleContext]:
    """Build a database that has been upgraded step by step to *version*."""

    def build(version: str) -> LifecycleContext:
        context = legacy_db()
        report = OperationReport()
        for step in SCHEMA_STEPS:
            if step.from_version == version:
                break
            step.apply(context, report)
            stamp_version(context, step.to_version, step.marker)
            context.db.commit()
        assert report.success, report.errors
        return context

    return build
