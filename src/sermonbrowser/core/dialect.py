"""SQL dialect abstraction for the schema lifecycle.

Provides a ``Dialect`` protocol and concrete implementations for the two
backends the sermon tables live on.  The installer, upgrade steps and
uninstaller use ``Dialect`` methods to generate DDL, catalog probes and
upserts without referencing any specific database driver.

Manifesto:
    The sermon schema grew up on MySQL, but the engine is exercised
    against SQLite.  Every statement whose syntax differs between the two
    (column rename, column widening, index drop, catalog lookup) is built
    here, so migration steps stay backend-neutral.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    Migration step:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = d.rename_column("wp_sb_sermons", "date", "datetime",    │
    │                        "DATETIME")                             │
    │  conn.execute(sql)                                             │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
    ┌──────────────────────────────┐   ┌──────────────────────────────┐
    │ SQLite                       │   │ MySQL                        │
    │ ?, ?                         │   │ %s, %s                       │
    │ RENAME COLUMN a TO b         │   │ CHANGE `a` `b` DATETIME      │
    │ sqlite_master / PRAGMA       │   │ INFORMATION_SCHEMA           │
    └──────────────────────────────┘   └──────────────────────────────┘

Examples:
    >>> from sermonbrowser.core.dialect import get_dialect
    >>> d = get_dialect("sqlite")
    >>> d.placeholders(3)
    '?, ?, ?'
    >>> d.create_index("wp_sb_tags_name", "wp_sb_tags", ["name"], unique=True)
    'CREATE UNIQUE INDEX wp_sb_tags_name ON wp_sb_tags (name)'

Guardrails:
    ❌ DON'T: Write backend-specific SQL inside migration steps
    ✅ DO: Add a Dialect method and implement it for every backend

Tags:
    dialect, sql, ddl, portability, sqlite, mysql
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# Types that MySQL refuses to give a literal DEFAULT.
_NO_DEFAULT_TYPES = ("TEXT", "BLOB", "JSON")

# Column names in the sermon tables that collide with SQL keywords.
RESERVED_WORDS = frozenset({"order", "end"})


def _literal(value: Any) -> str:
    """Render a DEFAULT literal."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int | float):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


@runtime_checkable
class Dialect(Protocol):
    """Backend-specific SQL generation used by the lifecycle engine."""

    @property
    def name(self) -> str:
        """Short backend name (``sqlite``, ``mysql``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single bind placeholder."""
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated bind placeholders."""
        ...

    def quote(self, identifier: str) -> str:
        """Quote an identifier that collides with a keyword (``order``, ``end``)."""
        ...

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        """INSERT ... ON CONFLICT / ON DUPLICATE KEY UPDATE."""
        ...

    # -- DDL ---------------------------------------------------------------

    def column_sql(
        self,
        name: str,
        type_: str,
        *,
        nullable: bool = False,
        default: Any = None,
    ) -> str:
        """Column definition fragment for CREATE/ALTER."""
        ...

    def create_table(self, table: str, primary_key: str, columns: list[str]) -> str:
        """CREATE TABLE with an auto-increment integer primary key."""
        ...

    def add_column(self, table: str, column_sql: str) -> str:
        ...

    def rename_column(self, table: str, old: str, new: str, type_: str) -> str:
        ...

    def modify_column(self, table: str, column_sql: str) -> str | None:
        """Change a column's declared type, or ``None`` if meaningless here."""
        ...

    def create_index(
        self, name: str, table: str, columns: list[str], *, unique: bool = False
    ) -> str:
        ...

    def drop_index(self, name: str, table: str) -> str:
        ...

    def drop_table(self, table: str) -> str:
        ...

    # -- Introspection -----------------------------------------------------

    def table_exists_query(self) -> str:
        """Query returning a row if the table (one placeholder) exists."""
        ...

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        """Query (and params) returning rows with a ``name`` column."""
        ...

    def index_exists_query(self) -> str:
        """Query returning a row if the index (one placeholder) exists."""
        ...

    def indexes_like_query(self) -> str:
        """Query returning ``index_name``/``table_name`` rows for a LIKE pattern."""
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``?`` placeholders, ``sqlite_master`` catalog."""

    @property
    def name(self) -> str:
        return "sqlite"

    # -- Placeholders ------------------------------------------------------

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "?"

    def placeholders(self, count: int) -> str:
        return ", ".join("?" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return f'"{identifier}"'

    # -- DML ---------------------------------------------------------------

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        keys = ", ".join(key_columns)
        update_cols = [c for c in columns if c not in key_columns]
        updates = ", ".join(f"{c} = excluded.{c}" for c in update_cols)
        return (
            f"INSERT INTO {table} ({cols}) VALUES ({ph}) "
            f"ON CONFLICT ({keys}) DO UPDATE SET {updates}"
        )

    # -- DDL ---------------------------------------------------------------

    def column_sql(
        self,
        name: str,
        type_: str,
        *,
        nullable: bool = False,
        default: Any = None,
    ) -> str:
        # SQLite needs a default to ADD a NOT NULL column to a populated table.
        parts = [self.quote(name) if name in RESERVED_WORDS else name, type_]
        parts.append("NULL" if nullable else "NOT NULL")
        if default is not None:
            parts.append(f"DEFAULT {_literal(default)}")
        return " ".join(parts)

    def create_table(self, table: str, primary_key: str, columns: list[str]) -> str:
        body = ",\n    ".join([f"{primary_key} INTEGER PRIMARY KEY AUTOINCREMENT", *columns])
        return f"CREATE TABLE {table} (\n    {body}\n)"

    def add_column(self, table: str, column_sql: str) -> str:
        return f"ALTER TABLE {table} ADD COLUMN {column_sql}"

    def rename_column(self, table: str, old: str, new: str, type_: str) -> str:  # noqa: ARG002
        return f"ALTER TABLE {table} RENAME COLUMN {old} TO {new}"

    def modify_column(self, table: str, column_sql: str) -> str | None:  # noqa: ARG002
        # Declared lengths are not enforced; there is nothing to widen.
        return None

    def create_index(
        self, name: str, table: str, columns: list[str], *, unique: bool = False
    ) -> str:
        kind = "UNIQUE INDEX" if unique else "INDEX"
        return f"CREATE {kind} {name} ON {table} ({', '.join(columns)})"

    def drop_index(self, name: str, table: str) -> str:  # noqa: ARG002
        return f"DROP INDEX {name}"

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE {table}"

    # -- Introspection -----------------------------------------------------

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='table' AND name = ?"

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        return f"PRAGMA table_info({table})", ()

    def index_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type='index' AND name = ?"

    def indexes_like_query(self) -> str:
        return (
            "SELECT name AS index_name, tbl_name AS table_name "
            "FROM sqlite_master WHERE type='index' AND name LIKE ?"
        )


class MySQLDialect:
    """MySQL dialect: ``%s`` placeholders, ``INFORMATION_SCHEMA`` catalog.

    Compatible with ``mysql.connector`` and ``PyMySQL`` (both use
    ``%s`` format paramstyle).
    """

    @property
    def name(self) -> str:
        return "mysql"

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return "%s"

    def placeholders(self, count: int) -> str:
        return ", ".join("%s" for _ in range(count))

    def quote(self, identifier: str) -> str:
        return f"`{identifier}`"

    def upsert(self, table: str, columns: list[str], key_columns: list[str]) -> str:
        cols = ", ".join(columns)
        ph = self.placeholders(len(columns))
        update_cols = [c for c in columns if c not in key_columns]
        updates = ", ".join(f"{c} = VALUES({c})" for c in update_cols)
        return (
            f"INSERT INTO {table} ({cols}) VALUES ({ph}) "
            f"ON DUPLICATE KEY UPDATE {updates}"
        )

    def column_sql(
        self,
        name: str,
        type_: str,
        *,
        nullable: bool = False,
        default: Any = None,
    ) -> str:
        parts = [self.quote(name) if name in RESERVED_WORDS else name, type_]
        parts.append("NULL" if nullable else "NOT NULL")
        if default is not None and not type_.upper().startswith(_NO_DEFAULT_TYPES):
            parts.append(f"DEFAULT {_literal(default)}")
        return " ".join(parts)

    def create_table(self, table: str, primary_key: str, columns: list[str]) -> str:
        body = ",\n    ".join(
            [
                f"{primary_key} INT(10) NOT NULL AUTO_INCREMENT",
                *columns,
                f"PRIMARY KEY ({primary_key})",
            ]
        )
        return f"CREATE TABLE {table} (\n    {body}\n)"

    def add_column(self, table: str, column_sql: str) -> str:
        return f"ALTER TABLE {table} ADD COLUMN {column_sql}"

    def rename_column(self, table: str, old: str, new: str, type_: str) -> str:
        return f"ALTER TABLE {table} CHANGE `{old}` `{new}` {type_} NOT NULL"

    def modify_column(self, table: str, column_sql: str) -> str | None:
        return f"ALTER TABLE {table} MODIFY {column_sql}"

    def create_index(
        self, name: str, table: str, columns: list[str], *, unique: bool = False
    ) -> str:
        kind = "UNIQUE INDEX" if unique else "INDEX"
        return f"CREATE {kind} {name} ON {table} ({', '.join(columns)})"

    def drop_index(self, name: str, table: str) -> str:
        return f"DROP INDEX {name} ON {table}"

    def drop_table(self, table: str) -> str:
        return f"DROP TABLE {table}"

    def table_exists_query(self) -> str:
        return (
            "SELECT TABLE_NAME FROM INFORMATION_SCHEMA.TABLES "
            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s"
        )

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        return (
            "SELECT COLUMN_NAME AS name FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = %s",
            (table,),
        )

    def index_exists_query(self) -> str:
        return (
            "SELECT INDEX_NAME FROM INFORMATION_SCHEMA.STATISTICS "
            "WHERE TABLE_SCHEMA = DATABASE() AND INDEX_NAME = %s"
        )

    def indexes_like_query(self) -> str:
        return (
            "SELECT DISTINCT INDEX_NAME AS index_name, TABLE_NAME AS table_name "
            "FROM INFORMATION_SCHEMA.STATISTICS "
            "WHERE TABLE_SCHEMA = DATABASE() AND INDEX_NAME LIKE %s"
        )


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Args:
        db_type: One of ``'sqlite'``, ``'mysql'``, ``'mariadb'``.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'mariadb'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (third-party drivers, test doubles)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "RESERVED_WORDS",
    "SQLiteDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
