"""
Canonical protocol definitions for the lifecycle engine.

The engine never talks to a concrete database driver, option table or
operating-system call directly.  Every collaborator is injected and only
has to match one of the shapes below.

Architecture:
    ::

        protocols.py
        ├── Connection    relational store (DDL/DML, parameterized queries)
        ├── ConfigStore   scalar key/value option persistence
        └── FileSystem    mkdir/list/rename/unlink/realpath

    Consumers:
        core.repository, core.config_store, core.options, core.context,
        install.*, migrations.*

Guardrails:
    ❌ DON'T: Reach for module-level database or option globals
    ✅ DO: Accept collaborators through LifecycleContext

    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts; implementations live in
       sqlite_conn.py, config_store.py and filesystem.py

Tags:
    protocol, connection, config-store, filesystem, contracts
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

# ---------------------------------------------------------------------------
# Relational store
# ---------------------------------------------------------------------------


@runtime_checkable
class Connection(Protocol):
    """
    Minimal SYNCHRONOUS connection interface for the relational store.

    ``sqlite3`` wrapped by :class:`~sermonbrowser.core.sqlite_conn.SqliteConnection`
    satisfies it, as does any DB-API cursor-style adapter for MySQL.
    Existence probes are built on top of this contract by
    :class:`~sermonbrowser.core.repository.SchemaRepository`.

    Examples:
        >>> conn.execute("SELECT id FROM wp_sb_tags WHERE name = ?", ("Grace",))
        >>> row = conn.fetchone()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with optional parameters."""
        ...

    def executemany(self, sql: str, params: list[tuple]) -> Any:
        """Execute SQL statement for multiple parameter sets."""
        ...

    def fetchone(self) -> Any:
        """Fetch one row from last query."""
        ...

    def fetchall(self) -> list:
        """Fetch all rows from last query."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


# ---------------------------------------------------------------------------
# Configuration store
# ---------------------------------------------------------------------------


@runtime_checkable
class ConfigStore(Protocol):
    """
    Generic key/value option persistence.

    ``get`` returns ``None`` for a missing key.  Values are scalars,
    JSON-compatible containers, or opaque strings (base64 blobs).
    """

    def get(self, key: str) -> Any:
        """Return the stored value or ``None``."""
        ...

    def set(self, key: str, value: Any) -> None:
        """Create or overwrite *key*."""
        ...

    def delete(self, key: str) -> None:
        """Remove *key*; missing keys are ignored."""
        ...


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------


@runtime_checkable
class FileSystem(Protocol):
    """
    Blocking filesystem operations used by install, upgrade and wipe.

    Methods raise ``OSError`` on failure; callers decide whether that is
    fatal (see :func:`sermonbrowser.core.result.attempt`).
    """

    def mkdir(self, path: str, mode: int = 0o755, recursive: bool = True) -> None:
        ...

    def is_dir(self, path: str) -> bool:
        ...

    def exists(self, path: str) -> bool:
        ...

    def listdir(self, path: str) -> list[str]:
        ...

    def rename(self, src: str, dst: str) -> None:
        ...

    def unlink(self, path: str) -> None:
        ...

    def chmod(self, path: str, mode: int) -> None:
        ...

    def realpath(self, path: str) -> str:
        """Canonical absolute path with every symlink resolved."""
        ...


__all__ = [
    "Connection",
    "ConfigStore",
    "FileSystem",
]
