"""Cascading schema-version runner.

Applies an ordered list of :class:`MigrationStep` entries starting at
the entry whose ``from_version`` matches the stored schema version and
continuing through the last one, stamping each step's ``to_version``
as it completes.

::

    CascadeRunner(ctx, SCHEMA_STEPS).run("1.3")

      1.3 → 1.4   apply, stamp sb_sermon_db_version = "1.4"
      1.4 → 1.5   apply, stamp sb_sermon_db_version = "1.5"
      1.5 → 1.6   apply, stamp db_version = "1.6"
      1.6 → 1.7   apply, stamp db_version = "1.7"   (last entry, stop)

    CascadeRunner(ctx, SCHEMA_STEPS).run("0.9")

      no matching entry → stamp sb_sermon_db_version = "1.0", stop

Steps are not idempotent across each other: each assumes every earlier
step has already run.  Within a step, existence probes keep re-runs from
failing on objects that are already there.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sermonbrowser.core.logging import LogContext, get_logger
from sermonbrowser.core.result import OperationReport

if TYPE_CHECKING:
    from sermonbrowser.core.context import LifecycleContext

logger = get_logger(__name__)

# Raw ConfigStore key used for the schema version before 1.6.
LEGACY_VERSION_KEY = "sb_sermon_db_version"
# Version stamped for installs too old to recognise.
LEGACY_BASE_VERSION = "1.0"

MARKER_LEGACY = "legacy"
MARKER_OPTION = "option"

StepFn = Callable[["LifecycleContext", OperationReport], None]


@dataclass(frozen=True)
class MigrationStep:
    """One schema transition.

    Attributes:
        from_version: Version this step upgrades from.
        to_version: Version stamped once the step completes.
        apply: ``apply(ctx, report)`` performing the step's work.
        marker: Where the version is stamped: the legacy raw key
            (``"legacy"``) or the ``db_version`` option (``"option"``).
    """

    from_version: str
    to_version: str
    apply: StepFn
    marker: str = MARKER_LEGACY

    @property
    def label(self) -> str:
        return f"{self.from_version}->{self.to_version}"


def stamp_version(ctx: LifecycleContext, version: str, marker: str) -> None:
    if marker == MARKER_OPTION:
        ctx.options.update("db_version", version)
    else:
        ctx.config.set(LEGACY_VERSION_KEY, version)


class CascadeRunner:
    """Runs the migration cascade from a given schema version."""

    def __init__(self, ctx: LifecycleContext, steps: Sequence[MigrationStep]) -> None:
        self.ctx = ctx
        self.steps = list(steps)

    def _index(self, version: str) -> int | None:
        for i, step in enumerate(self.steps):
            if step.from_version == version:
                return i
        return None

    def pending(self, version: str) -> list[MigrationStep]:
        """Steps that :meth:`run` would apply for *version*."""
        index = self._index(version)
        return [] if index is None else self.steps[index:]

    def run(self, version: str) -> OperationReport:
        """Apply every step from *version* onward.

        Raises:
            MigrationError: In strict mode, on the first failed operation
                (StorageError when that operation touched the filesystem).
                The version of the failing step is not stamped.
        """
        report = OperationReport()
        index = self._index(version)

        if index is None:
            stamp_version(self.ctx, LEGACY_BASE_VERSION, MARKER_LEGACY)
            report.warn(
                "unrecognised schema version, stamped legacy base",
                from_version=version,
                stamped=LEGACY_BASE_VERSION,
            )
            return report

        for step in self.steps[index:]:
            with LogContext(from_version=step.from_version, to_version=step.to_version):
                logger.info("upgrade.step_started")
                errors_before = len(report.errors)
                step.apply(self.ctx, report)
                stamp_version(self.ctx, step.to_version, step.marker)
                self.ctx.db.commit()
                logger.info(
                    "upgrade.step_applied",
                    errors=len(report.errors) - errors_before,
                )
            report.applied.append(f"step:{step.label}")

        return report


__all__ = [
    "CascadeRunner",
    "LEGACY_BASE_VERSION",
    "LEGACY_VERSION_KEY",
    "MigrationStep",
    "stamp_version",
]
