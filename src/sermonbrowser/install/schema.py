"""Latest-shape definitions of the nine managed tables.

A fresh install creates every table directly in its 1.7 shape; the
upgrade cascade only ever touches databases that started older.  Column
types use MySQL spelling, which SQLite accepts through type affinity.

Index names are ``<prefixed table>_<column>``.  They never match the
``sermon_id_%`` pattern the 1.4→1.5 cleanup drops.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sermonbrowser.core.dialect import Dialect


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    type: str
    nullable: bool = False
    default: Any = None

    def sql(self, dialect: Dialect) -> str:
        return dialect.column_sql(
            self.name, self.type, nullable=self.nullable, default=self.default
        )


@dataclass(frozen=True)
class TableSpec:
    """One managed table: columns after ``id``, indexes and seed rows."""

    logical: str
    columns: tuple[ColumnSpec, ...]
    indexes: tuple[str, ...] = ()
    unique: tuple[str, ...] = ()
    seeds: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def physical(self, prefix: str) -> str:
        return f"{prefix}sb_{self.logical}"

    def create_statements(self, dialect: Dialect, prefix: str) -> list[str]:
        """CREATE TABLE followed by its CREATE INDEX statements."""
        table = self.physical(prefix)
        statements = [
            dialect.create_table(table, "id", [c.sql(dialect) for c in self.columns])
        ]
        for column in self.indexes:
            statements.append(dialect.create_index(index_name(table, column), table, [column]))
        for column in self.unique:
            statements.append(
                dialect.create_index(index_name(table, column), table, [column], unique=True)
            )
        return statements


def index_name(table: str, column: str) -> str:
    return f"{table}_{column}"


TABLES: tuple[TableSpec, ...] = (
    TableSpec(
        "preachers",
        (
            ColumnSpec("name", "VARCHAR(30)"),
            ColumnSpec("description", "TEXT", default=""),
            ColumnSpec("image", "VARCHAR(255)", default=""),
        ),
        seeds=(
            {"name": "C H Spurgeon", "description": "", "image": ""},
            {"name": "Martyn Lloyd-Jones", "description": "", "image": ""},
        ),
    ),
    TableSpec(
        "series",
        (
            ColumnSpec("name", "VARCHAR(255)"),
            ColumnSpec("page_id", "INT(10)", default=0),
        ),
        seeds=(
            {"name": "Exposition of the Psalms", "page_id": 0},
            {"name": "Exposition of Romans", "page_id": 0},
        ),
    ),
    TableSpec(
        "services",
        (
            ColumnSpec("name", "VARCHAR(255)"),
            ColumnSpec("time", "VARCHAR(5)"),
        ),
    ),
    TableSpec(
        "sermons",
        (
            ColumnSpec("title", "VARCHAR(255)"),
            ColumnSpec("preacher_id", "INT(10)"),
            ColumnSpec("datetime", "DATETIME"),
            ColumnSpec("service_id", "INT(10)"),
            ColumnSpec("series_id", "INT(10)"),
            ColumnSpec("start", "TEXT", default=""),
            ColumnSpec("end", "TEXT", default=""),
            ColumnSpec("description", "TEXT", nullable=True),
            ColumnSpec("time", "VARCHAR(5)", nullable=True),
            ColumnSpec("override", "TINYINT(1)", nullable=True),
            ColumnSpec("page_id", "INT(10)", default=0),
        ),
    ),
    TableSpec(
        "books_sermons",
        (
            ColumnSpec("book_name", "VARCHAR(30)"),
            ColumnSpec("chapter", "INT(10)"),
            ColumnSpec("verse", "INT(10)"),
            ColumnSpec("order", "INT(10)"),
            ColumnSpec("type", "VARCHAR(30)", nullable=True),
            ColumnSpec("sermon_id", "INT(10)"),
        ),
        indexes=("sermon_id",),
    ),
    TableSpec(
        "books",
        (ColumnSpec("name", "VARCHAR(30)"),),
    ),
    TableSpec(
        "stuff",
        (
            ColumnSpec("type", "VARCHAR(30)"),
            ColumnSpec("name", "TEXT"),
            ColumnSpec("sermon_id", "INT(10)"),
            ColumnSpec("count", "INT(10)", default=0),
            ColumnSpec("duration", "VARCHAR(6)", default=""),
        ),
    ),
    TableSpec(
        "tags",
        (ColumnSpec("name", "VARCHAR(255)", nullable=True),),
        unique=("name",),
    ),
    TableSpec(
        "sermons_tags",
        (
            ColumnSpec("sermon_id", "INT(10)"),
            ColumnSpec("tag_id", "INT(10)"),
        ),
        indexes=("sermon_id",),
    ),
)

TABLES_BY_NAME: dict[str, TableSpec] = {t.logical: t for t in TABLES}


def column(table: str, name: str) -> ColumnSpec:
    """Latest-shape definition of one column, used by ADD COLUMN steps."""
    for col in TABLES_BY_NAME[table].columns:
        if col.name == name:
            return col
    raise KeyError(f"{table}.{name}")


ENGLISH_BIBLE_BOOKS: tuple[str, ...] = (
    "Genesis", "Exodus", "Leviticus", "Numbers", "Deuteronomy",
    "Joshua", "Judges", "Ruth", "1 Samuel", "2 Samuel",
    "1 Kings", "2 Kings", "1 Chronicles", "2 Chronicles",
    "Ezra", "Nehemiah", "Esther", "Job", "Psalm", "Proverbs",
    "Ecclesiastes", "Song of Solomon", "Isaiah", "Jeremiah",
    "Lamentations", "Ezekiel", "Daniel", "Hosea", "Joel", "Amos",
    "Obadiah", "Jonah", "Micah", "Nahum", "Habakkuk", "Zephaniah",
    "Haggai", "Zechariah", "Malachi", "Matthew", "Mark", "Luke",
    "John", "Acts", "Romans", "1 Corinthians", "2 Corinthians",
    "Galatians", "Ephesians", "Philippians", "Colossians",
    "1 Thessalonians", "2 Thessalonians", "1 Timothy", "2 Timothy",
    "Titus", "Philemon", "Hebrews", "James", "1 Peter", "2 Peter",
    "1 John", "2 John", "3 John", "Jude", "Revelation",
)  # fmt: skip


__all__ = [
    "ColumnSpec",
    "ENGLISH_BIBLE_BOOKS",
    "TABLES",
    "TABLES_BY_NAME",
    "TableSpec",
    "column",
    "index_name",
]
