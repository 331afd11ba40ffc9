"""SQLite backend for the CLI and the test suite.

Opens the site database file (``LifecycleSettings.database``) or an
in-memory database and exposes it through the
:class:`~sermonbrowser.core.protocols.Connection` protocol.

Usage::

    with SqliteConnection(settings.database) as conn:
        ctx = LifecycleContext(db=conn, ...)
        check_upgrades(ctx)
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any


class SqliteConnection:
    """One SQLite database behind the ``Connection`` protocol.

    Statements share a single cursor: read a result fully before the
    next ``execute``.  *timeout* is how long a write waits while another
    process (a second host running the upgrade) holds the file lock.
    """

    def __init__(self, path: str | Path = ":memory:", *, timeout: float = 30.0) -> None:
        self.path = str(path)
        self._conn = sqlite3.connect(self.path, timeout=timeout)
        self._conn.row_factory = sqlite3.Row
        self._cursor = self._conn.cursor()

    def execute(self, sql: str, params: tuple = ()) -> Any:
        return self._cursor.execute(sql, params)

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        return self._cursor.executemany(sql, params)

    def fetchone(self) -> Any:
        return self._cursor.fetchone()

    def fetchall(self) -> list:
        return self._cursor.fetchall()

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    def __enter__(self) -> SqliteConnection:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
