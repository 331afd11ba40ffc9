"""
Upgrader - legacy option migration, code-version bump and schema cascade.

Manifesto:
    An install can be many releases behind.  The schema cascade replays
    every step from the stored version to the latest one, in order, and
    records each version as it lands so an interrupted run resumes from
    the last completed step.

Architecture:
    ::

        Upgrader(ctx)
          ├── upgrade_options()               legacy sb_* keys → aggregate
          ├── version_upgrade(old, new)       code_version, filter_type, transients
          └── database_upgrade(old_version)
                  │
                  ▼
              UpgradeGuard.acquire("schema-upgrade")   (settings.upgrade_lock)
                  │
                  ▼
              CascadeRunner(ctx, SCHEMA_STEPS).run(old_version)

Guardrails:
    ❌ DON'T: branch on version_upgrade's old code version
    ✅ DO: add a MigrationStep for any new schema change

Tags:
    upgrade, migrations, cascade, options, single-flight
"""

from __future__ import annotations

import os
import socket

from sermonbrowser.core.concurrency import UpgradeGuard
from sermonbrowser.core.context import LifecycleContext
from sermonbrowser.core.errors import UpgradeInProgressError
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.result import OperationReport
from sermonbrowser.install.legacy_options import (
    BASE64_OPTION_MAPPINGS,
    OBSOLETE_OPTION,
    STANDARD_OPTION_MAPPINGS,
    upgrade_options,
)
from sermonbrowser.migrations.runner import CascadeRunner, MigrationStep
from sermonbrowser.migrations.steps import SCHEMA_STEPS

logger = get_logger(__name__)

UPGRADE_LOCK_KEY = "schema-upgrade"

# Rendered-template caches invalidated on every code upgrade.
TEMPLATE_TRANSIENTS = ("sb_template_search", "sb_template_single")


def transient_keys(name: str) -> tuple[str, str]:
    return f"_transient_{name}", f"_transient_timeout_{name}"


class Upgrader:
    """Upgrade entry points for one :class:`LifecycleContext`."""

    def __init__(
        self,
        ctx: LifecycleContext,
        steps: tuple[MigrationStep, ...] = SCHEMA_STEPS,
    ) -> None:
        self.ctx = ctx
        self.steps = steps

    def upgrade_options(self) -> list[str]:
        """Move legacy option keys to their current names."""
        return upgrade_options(self.ctx.config, self.ctx.options)

    def version_upgrade(self, old_code: str, new_code: str) -> None:
        """Record a new code release.

        ``old_code`` is accepted for call-site compatibility; no upgrade
        path currently depends on it.
        """
        del old_code
        options = self.ctx.options
        options.update("code_version", new_code)
        if options.get("filter_type") == "":
            options.update("filter_type", "dropdown")
        for name in TEMPLATE_TRANSIENTS:
            for key in transient_keys(name):
                self.ctx.config.delete(key)
        logger.info("upgrade.code_version", code_version=new_code)

    def database_upgrade(self, old_version: str) -> OperationReport:
        """Run the schema cascade from *old_version*.

        Raises:
            UpgradeInProgressError: Lock held elsewhere and strict mode on.
            MigrationError: A statement failed and strict mode is on.
            StorageError: A file operation failed and strict mode is on.
        """
        runner = CascadeRunner(self.ctx, self.steps)
        settings = self.ctx.settings
        if not settings.upgrade_lock:
            return runner.run(old_version)

        guard = UpgradeGuard(self.ctx.db, self.ctx.dialect, self.ctx.lock_table)
        holder = f"{socket.gethostname()}:{os.getpid()}"
        if not guard.acquire(UPGRADE_LOCK_KEY, holder, settings.lock_timeout_seconds):
            current = guard.holder(UPGRADE_LOCK_KEY)
            if settings.strict:
                raise UpgradeInProgressError(
                    "schema upgrade already running",
                    context={"holder": current, "from_version": old_version},
                )
            report = OperationReport()
            report.warn("schema upgrade already running", holder=current)
            return report
        try:
            return runner.run(old_version)
        finally:
            guard.release(UPGRADE_LOCK_KEY, holder)


__all__ = [
    "BASE64_OPTION_MAPPINGS",
    "OBSOLETE_OPTION",
    "STANDARD_OPTION_MAPPINGS",
    "TEMPLATE_TRANSIENTS",
    "UPGRADE_LOCK_KEY",
    "Upgrader",
    "transient_keys",
]
