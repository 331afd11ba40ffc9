"""
Typed errors for the sermon lifecycle engine.

Install and upgrade are best-effort by default: a failing statement is
recorded and the run continues.  These types exist for the cases where
a caller asks for more (strict mode, a held upgrade lock, bad settings)
and for turning low-level driver/OS failures into something loggable.

Architecture:
    ::

        SermonBrowserError  (category, retryable, context, cause)
          ├── ConfigError              (CONFIG)
          ├── StorageError             (STORAGE)
          ├── DatabaseError            (DATABASE)
          │     └── MigrationError     step label + versions in context
          └── UpgradeInProgressError   (CONCURRENCY, retryable)

Guardrails:
    ❌ DON'T: raise for a rejected uninstall path; return False instead
    ✅ DO: chain the driver/OS exception via ``cause=``

Tags:
    errors, exceptions, migrations, strict-mode
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Coarse classification used in logs and reports."""

    DATABASE = "DATABASE"
    STORAGE = "STORAGE"
    CONFIG = "CONFIG"
    CONCURRENCY = "CONCURRENCY"
    INTERNAL = "INTERNAL"


class SermonBrowserError(Exception):
    """Base exception for every error raised by this package."""

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SermonBrowserError:
        """Add context to this error (fluent API)."""
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.context:
            result["context"] = dict(self.context)
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class ConfigError(SermonBrowserError):
    """Invalid settings or an unusable configuration store."""

    default_category = ErrorCategory.CONFIG


class StorageError(SermonBrowserError):
    """Filesystem failure (upload directory, attachment relocation)."""

    default_category = ErrorCategory.STORAGE


class DatabaseError(SermonBrowserError):
    """Database query or DDL error."""

    default_category = ErrorCategory.DATABASE


class MigrationError(DatabaseError):
    """A lifecycle operation failed while running in strict mode."""


class UpgradeInProgressError(SermonBrowserError):
    """Another process holds the upgrade lock."""

    default_category = ErrorCategory.CONCURRENCY
    default_retryable = True


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an arbitrary exception."""
    if isinstance(error, SermonBrowserError):
        return error.category
    if isinstance(error, OSError):
        return ErrorCategory.STORAGE
    # DB-API drivers all name their base class ``Error``/``DatabaseError``.
    if type(error).__module__.split(".")[0] in ("sqlite3", "pymysql", "mysql", "MySQLdb"):
        return ErrorCategory.DATABASE
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "SermonBrowserError",
    "ConfigError",
    "StorageError",
    "DatabaseError",
    "MigrationError",
    "UpgradeInProgressError",
    "categorize_error",
]
