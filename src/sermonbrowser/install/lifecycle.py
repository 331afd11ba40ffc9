"""Host-side upgrade check.

Run once per request/boot by the host::

    report = check_upgrades(ctx)

    stored schema version      action
    ─────────────────────      ──────────────────────────────
    absent                     Installer.run()
    != DATABASE_VERSION        Upgrader.database_upgrade(stored)
    == DATABASE_VERSION        nothing

    then, if code_version != CODE_VERSION:
                               Upgrader.version_upgrade(stored, CODE_VERSION)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sermonbrowser.core.context import LifecycleContext
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.result import OperationReport
from sermonbrowser.install.defaults import CODE_VERSION, DATABASE_VERSION
from sermonbrowser.install.installer import Installer
from sermonbrowser.install.upgrader import Upgrader
from sermonbrowser.migrations.runner import LEGACY_VERSION_KEY

logger = get_logger(__name__)


@dataclass
class LifecycleReport:
    """What :func:`check_upgrades` did."""

    schema_before: str | None
    schema_after: str | None
    code_before: str | None
    code_after: str | None
    installed: bool = False
    upgraded: bool = False
    code_bumped: bool = False
    report: OperationReport = field(default_factory=OperationReport)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_before": self.schema_before,
            "schema_after": self.schema_after,
            "code_before": self.code_before,
            "code_after": self.code_after,
            "installed": self.installed,
            "upgraded": self.upgraded,
            "code_bumped": self.code_bumped,
            "report": self.report.to_dict(),
        }


def schema_version(ctx: LifecycleContext) -> str | None:
    """Stored schema version: legacy raw key first, then the ``db_version`` option."""
    legacy = ctx.config.get(LEGACY_VERSION_KEY)
    if legacy:
        return str(legacy)
    current = ctx.options.get("db_version")
    return str(current) if current else None


def code_version(ctx: LifecycleContext) -> str | None:
    value = ctx.options.get("code_version")
    return str(value) if value else None


def check_upgrades(
    ctx: LifecycleContext,
    code: str = CODE_VERSION,
    latest: str = DATABASE_VERSION,
) -> LifecycleReport:
    stored = schema_version(ctx)
    stored_code = code_version(ctx)
    result = LifecycleReport(
        schema_before=stored, schema_after=stored, code_before=stored_code, code_after=stored_code
    )
    upgrader = Upgrader(ctx)

    if stored is None:
        result.report.merge(Installer(ctx).run())
        result.installed = True
    elif stored != latest:
        result.report.merge(upgrader.database_upgrade(stored))
        result.upgraded = True

    if code_version(ctx) != code:
        upgrader.version_upgrade(stored_code or "", code)
        result.code_bumped = True

    result.schema_after = schema_version(ctx)
    result.code_after = code_version(ctx)
    logger.info("lifecycle.checked", **{k: v for k, v in result.to_dict().items() if k != "report"})
    return result


__all__ = ["LifecycleReport", "check_upgrades", "code_version", "schema_version"]
