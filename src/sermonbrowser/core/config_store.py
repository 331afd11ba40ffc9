"""ConfigStore implementations.

The host normally supplies its own key/value store.  Two are provided
here: a dict-backed store for tests and embedding, and a SQL store that
keeps options in a ``<prefix>options`` table next to the sermon tables
(the layout the CLI uses).

Values are JSON-encoded in the SQL store so lists, dicts and booleans
read back with their original types.
"""

from __future__ import annotations

import json
from typing import Any

from sermonbrowser.core.dialect import Dialect
from sermonbrowser.core.protocols import ConfigStore, Connection
from sermonbrowser.core.repository import SchemaRepository


class InMemoryConfigStore:
    """Dict-backed :class:`ConfigStore`."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)


class SqlConfigStore:
    """:class:`ConfigStore` persisted in a two-column options table."""

    def __init__(self, conn: Connection, dialect: Dialect, table: str = "wp_options") -> None:
        self._repo = SchemaRepository(conn, dialect)
        self.table = table
        self._ready = False

    def _ensure_table(self) -> None:
        if self._ready:
            return
        if not self._repo.table_exists(self.table):
            self._repo.execute(
                f"CREATE TABLE {self.table} ("
                "option_name VARCHAR(191) NOT NULL PRIMARY KEY, "
                "option_value TEXT NOT NULL)"
            )
            self._repo.commit()
        self._ready = True

    def get(self, key: str) -> Any:
        self._ensure_table()
        raw = self._repo.scalar(
            f"SELECT option_value FROM {self.table} WHERE option_name = {self._repo.ph(1)}",
            (key,),
        )
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self._ensure_table()
        sql = self._repo.dialect.upsert(
            self.table, ["option_name", "option_value"], ["option_name"]
        )
        self._repo.execute(sql, (key, json.dumps(value)))
        self._repo.commit()

    def delete(self, key: str) -> None:
        self._ensure_table()
        self._repo.execute(
            f"DELETE FROM {self.table} WHERE option_name = {self._repo.ph(1)}", (key,)
        )
        self._repo.commit()

    def keys(self) -> list[str]:
        self._ensure_table()
        rows = self._repo.query(f"SELECT option_name FROM {self.table} ORDER BY option_name")
        return [row["option_name"] for row in rows]


def add(store: ConfigStore, key: str, value: Any) -> bool:
    """Write *value* only when *key* is absent; returns True if written."""
    if store.get(key) is not None:
        return False
    store.set(key, value)
    return True


__all__ = ["InMemoryConfigStore", "SqlConfigStore", "add"]
