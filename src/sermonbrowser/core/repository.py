"""Dialect-aware database access and schema probes.

:class:`BaseRepository` pairs a :class:`~sermonbrowser.core.protocols.Connection`
with a :class:`~sermonbrowser.core.dialect.Dialect` so installer and
migration code can write portable SQL.  :class:`SchemaRepository` adds the
catalog probes that make each upgrade step idempotent within itself.

Architecture::

    ┌────────────────────────────────────────────────────────────────────┐
    │                       BaseRepository                               │
    │   conn: Connection        dialect: Dialect                         │
    │   execute / query / query_one / insert / insert_many / commit      │
    ├────────────────────────────────────────────────────────────────────┤
    │                       SchemaRepository                             │
    │   table_exists(t)            column_exists(t, c)                   │
    │   index_exists(name)         find_indexes_like(pattern)            │
    └────────────────────────────────────────────────────────────────────┘

Tags:
    repository, database, schema, introspection
"""

from __future__ import annotations

from typing import Any

from sermonbrowser.core.dialect import RESERVED_WORDS, Dialect, SQLiteDialect
from sermonbrowser.core.protocols import Connection


class BaseRepository:
    """Dialect-aware base class for data access.

    Parameters:
        conn: Any object satisfying the :class:`Connection` protocol.
        dialect: SQL dialect to use.  Defaults to :class:`SQLiteDialect`.
    """

    def __init__(self, conn: Connection, dialect: Dialect | None = None) -> None:
        self.conn = conn
        self.dialect: Dialect = dialect or SQLiteDialect()

    def ph(self, count: int) -> str:
        """Shortcut for ``self.dialect.placeholders(count)``."""
        return self.dialect.placeholders(count)

    def execute(self, sql: str, params: tuple = ()) -> Any:
        return self.conn.execute(sql, params)

    def execute_many(self, sql: str, params: list[tuple]) -> Any:
        return self.conn.executemany(sql, params)

    def query(self, sql: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT and return every row as a dict.

        Rows are fully materialised before returning, so callers may
        issue further statements while iterating the result.
        """
        cursor = self.conn.execute(sql, params)
        rows = self.conn.fetchall()
        if not rows:
            return []

        # dict(row) works with sqlite3.Row and DictCursor rows
        try:
            return [dict(row) for row in rows]
        except (TypeError, ValueError):
            pass

        if getattr(cursor, "description", None):
            columns = [desc[0] for desc in cursor.description]
            return [dict(zip(columns, row, strict=False)) for row in rows]

        return [{i: v for i, v in enumerate(row)} for row in rows]

    def query_one(self, sql: str, params: tuple = ()) -> dict[str, Any] | None:
        results = self.query(sql, params)
        return results[0] if results else None

    def scalar(self, sql: str, params: tuple = ()) -> Any:
        """First column of the first row, or ``None``."""
        row = self.query_one(sql, params)
        if row is None:
            return None
        return next(iter(row.values()))

    def insert(self, table: str, data: dict[str, Any]) -> Any:
        """Insert a single row from a dict."""
        columns = [self._column(c) for c in data]
        ph = self.ph(len(data))
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({ph})"
        return self.conn.execute(sql, tuple(data.values()))

    def insert_many(self, table: str, rows: list[dict[str, Any]]) -> int:
        """Insert multiple rows from a list of dicts; returns the row count."""
        if not rows:
            return 0
        keys = list(rows[0].keys())
        columns = [self._column(c) for c in keys]
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({self.ph(len(keys))})"
        self.execute_many(sql, [tuple(row[k] for k in keys) for row in rows])
        return len(rows)

    def commit(self) -> None:
        self.conn.commit()

    def _column(self, name: str) -> str:
        return self.dialect.quote(name) if name in RESERVED_WORDS else name


class SchemaRepository(BaseRepository):
    """Catalog probes used as existence guards by install and upgrade."""

    def table_exists(self, table: str) -> bool:
        return self.query_one(self.dialect.table_exists_query(), (table,)) is not None

    def column_names(self, table: str) -> list[str]:
        sql, params = self.dialect.column_names_query(table)
        return [row["name"] for row in self.query(sql, params)]

    def column_exists(self, table: str, column: str) -> bool:
        return column in self.column_names(table)

    def index_exists(self, name: str) -> bool:
        return self.query_one(self.dialect.index_exists_query(), (name,)) is not None

    def find_indexes_like(self, pattern: str) -> list[tuple[str, str]]:
        """Return ``(index_name, table_name)`` pairs matching a LIKE pattern."""
        rows = self.query(self.dialect.indexes_like_query(), (pattern,))
        return [(row["index_name"], row["table_name"]) for row in rows]

    def count(self, table: str) -> int:
        return int(self.scalar(f"SELECT COUNT(*) AS n FROM {table}") or 0)


__all__ = ["BaseRepository", "SchemaRepository"]
