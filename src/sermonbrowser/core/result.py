"""
Result capture for lifecycle operations.

Every DDL statement, option write and file operation performed by the
installer, the upgrade cascade and the uninstaller goes through
:func:`attempt`.  The default is best-effort: a failure is logged and
recorded on an :class:`OperationReport` and execution continues, so a
single bad statement never blocks activation.  ``strict=True`` turns the
same call into fail-fast without touching the caller's control flow.

Example::

    report = OperationReport()
    attempt(report, "create_table:wp_sb_tags", conn.execute, ddl)
    if not report.success:
        for outcome in report.errors:
            print(outcome.label, outcome.error)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from sermonbrowser.core.errors import ErrorCategory, MigrationError, StorageError, categorize_error
from sermonbrowser.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Outcome of one captured operation."""

    label: str
    ok: bool
    error: str | None = None
    category: str | None = None


@dataclass
class OperationReport:
    """Collected outcomes of an install, upgrade or uninstall run.

    Attributes:
        applied: Labels of operations that completed.
        skipped: Labels of operations skipped by an existence guard.
        errors: Failed operations, in execution order.
        warnings: Non-fatal messages (held lock, unknown version, ...).
    """

    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[StepOutcome] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors

    def skip(self, label: str) -> None:
        self.skipped.append(label)
        logger.debug("operation.skipped", label=label)

    def warn(self, message: str, **fields: Any) -> None:
        self.warnings.append(message)
        logger.warning("operation.warning", message=message, **fields)

    def merge(self, other: OperationReport) -> OperationReport:
        """Append another report's outcomes onto this one."""
        self.applied.extend(other.applied)
        self.skipped.extend(other.skipped)
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "applied": list(self.applied),
            "skipped": list(self.skipped),
            "errors": [
                {"label": e.label, "error": e.error, "category": e.category}
                for e in self.errors
            ],
            "warnings": list(self.warnings),
        }


def attempt(
    report: OperationReport,
    label: str,
    fn: Callable[..., Any],
    *args: Any,
    strict: bool = False,
    **kwargs: Any,
) -> Any:
    """Run ``fn(*args, **kwargs)`` and record the outcome on *report*.

    Returns the function's result, or ``None`` when it raised and
    *strict* is off.

    Raises:
        StorageError: When *strict* is on and a filesystem call raised.
        MigrationError: When *strict* is on and any other call raised.  The
            original exception is chained as the cause.
    """
    try:
        value = fn(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001 - recorded on the report
        category = categorize_error(exc)
        report.errors.append(
            StepOutcome(label=label, ok=False, error=str(exc), category=category.value)
        )
        logger.error(
            "operation.failed",
            label=label,
            error=str(exc),
            error_type=type(exc).__name__,
            category=category.value,
        )
        if strict:
            error_cls = StorageError if category is ErrorCategory.STORAGE else MigrationError
            error = error_cls(f"{label} failed: {exc}", cause=exc)
            raise error.with_context(label=label) from exc
        return None

    report.applied.append(label)
    logger.debug("operation.applied", label=label)
    return value


__all__ = ["StepOutcome", "OperationReport", "attempt"]
