"""Full teardown.

``Uninstaller(ctx).run(wipe_files)`` optionally empties the upload
directory, drops every managed table, deletes every option key and
returns the completion notice.  Outside a network install the plugin is
also removed from ``active_plugins`` and the deactivation hook fires.

File deletion is containment-checked: each entry's canonical path must
lie inside the canonical upload directory, so neither ``..`` names nor
symlinks pointing elsewhere can make it delete anything outside.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field

from sermonbrowser.core.context import LifecycleContext
from sermonbrowser.core.filesystem import is_within
from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.result import OperationReport, attempt
from sermonbrowser.install.defaults import PLUGIN_FILE
from sermonbrowser.install.legacy_options import LEGACY_OPTION_KEYS

logger = get_logger(__name__)

TABLE_NAMES: tuple[str, ...] = (
    "sb_preachers",
    "sb_series",
    "sb_services",
    "sb_sermons",
    "sb_stuff",
    "sb_books",
    "sb_books_sermons",
    "sb_sermons_tags",
    "sb_tags",
)

NETWORK_MESSAGE = "All sermon data has been removed."
SITE_MESSAGE = "Uninstall completed. The SermonBrowser plugin has been deactivated."
DEACTIVATE_HOOK = f"deactivate_{PLUGIN_FILE}"


@dataclass
class UninstallNotice:
    """What the operator is told once teardown finishes."""

    message: str
    deactivated: bool = False
    removed_files: list[str] = field(default_factory=list)
    report: OperationReport = field(default_factory=OperationReport)


class Uninstaller:
    """Teardown for one :class:`LifecycleContext`.

    Parameters:
        ctx: Lifecycle context.
        on_deactivate: Called with the hook name when the plugin is
            removed from ``active_plugins``.
    """

    def __init__(
        self,
        ctx: LifecycleContext,
        on_deactivate: Callable[[str], None] | None = None,
    ) -> None:
        self.ctx = ctx
        self.on_deactivate = on_deactivate
        self.report = OperationReport()

    @staticmethod
    def get_table_names() -> list[str]:
        return list(TABLE_NAMES)

    def run(self, wipe_files: bool = False) -> UninstallNotice:
        removed: list[str] = []
        if wipe_files:
            removed = self.wipe_upload_directory()
        self.drop_tables()
        self.delete_options()
        notice = self.display_message()
        notice.removed_files = removed
        logger.info(
            "uninstall.completed",
            wipe_files=wipe_files,
            removed=len(removed),
            errors=len(self.report.errors),
        )
        return notice

    # -- files ---------------------------------------------------------------

    def upload_directory(self) -> str:
        relative = self.ctx.options.get("upload_dir") or self.ctx.settings.upload_dir
        return os.path.join(str(self.ctx.settings.root_dir), relative)

    def wipe_upload_directory(self) -> list[str]:
        """Delete every file entry in the upload directory; returns their names."""
        fs = self.ctx.fs
        directory = self.upload_directory()
        if not fs.is_dir(directory):
            self.report.skip(f"wipe:{directory}")
            return []
        entries = attempt(self.report, f"listdir:{directory}", fs.listdir, directory, strict=self.ctx.strict)
        return [name for name in entries or [] if self.delete_upload_entry(name)]

    def delete_upload_entry(self, name: str) -> bool:
        """Unlink one entry; False when rejected, a directory, or unlinking failed."""
        fs = self.ctx.fs
        directory = self.upload_directory()
        base = fs.realpath(directory)
        path = os.path.join(directory, name)
        target = fs.realpath(path)
        if target == base or not is_within(base, target):
            logger.warning("uninstall.entry_rejected", entry=name, resolved=target)
            return False
        if fs.is_dir(path):
            self.report.skip(f"unlink:{name}")
            return False
        before = len(self.report.errors)
        attempt(self.report, f"unlink:{name}", fs.unlink, path, strict=self.ctx.strict)
        return len(self.report.errors) == before

    # -- database / options --------------------------------------------------

    def drop_tables(self) -> None:
        ctx = self.ctx
        prefix = ctx.settings.table_prefix
        for table in [prefix + name for name in TABLE_NAMES] + [ctx.lock_table]:
            if not ctx.schema.table_exists(table):
                self.report.skip(f"drop_table:{table}")
                continue
            attempt(self.report, f"drop_table:{table}", ctx.db.execute, ctx.dialect.drop_table(table), strict=ctx.strict)
        ctx.db.commit()

    def delete_options(self) -> None:
        for key in [*self.ctx.options.storage_keys(), *LEGACY_OPTION_KEYS]:
            self.ctx.config.delete(key)
        self.ctx.options.clear_cache()

    # -- notice --------------------------------------------------------------

    def display_message(self) -> UninstallNotice:
        if self.ctx.settings.network_install:
            return UninstallNotice(NETWORK_MESSAGE, report=self.report)
        return UninstallNotice(SITE_MESSAGE, deactivated=self.deactivate_plugin(), report=self.report)

    def deactivate_plugin(self) -> bool:
        active = self.ctx.config.get("active_plugins")
        if not isinstance(active, list) or PLUGIN_FILE not in active:
            return False
        active = [p for p in active if p != PLUGIN_FILE]
        if self.on_deactivate is not None:
            self.on_deactivate(DEACTIVATE_HOOK)
        self.ctx.config.set("active_plugins", active)
        logger.info("uninstall.deactivated", plugin=PLUGIN_FILE)
        return True


__all__ = [
    "DEACTIVATE_HOOK",
    "NETWORK_MESSAGE",
    "SITE_MESSAGE",
    "TABLE_NAMES",
    "UninstallNotice",
    "Uninstaller",
]
