"""Lifecycle context.

:class:`LifecycleContext` is passed to the installer, the upgrader, the
cascade steps and the uninstaller.  It carries the three injected
collaborators and the settings, and derives everything else from them
(prefixed table names, the options manager, schema probes).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import cached_property

from sermonbrowser.core.dialect import Dialect, get_dialect
from sermonbrowser.core.options import OptionsManager
from sermonbrowser.core.protocols import ConfigStore, Connection, FileSystem
from sermonbrowser.core.repository import SchemaRepository
from sermonbrowser.core.settings import LifecycleSettings


@dataclass
class LifecycleContext:
    """Collaborators and settings for one lifecycle invocation.

    Attributes:
        db: Relational store (``Connection`` protocol).
        config: Key/value option store.
        fs: Filesystem used for upload directories and attachment files.
        settings: Paths, prefix and failure-mode flags.
        dialect: SQL dialect; defaults to the one named in ``settings``.
    """

    db: Connection
    config: ConfigStore
    fs: FileSystem
    settings: LifecycleSettings = field(default_factory=LifecycleSettings)
    dialect: Dialect | None = None

    def __post_init__(self) -> None:
        if self.dialect is None:
            self.dialect = get_dialect(self.settings.dialect)

    @cached_property
    def options(self) -> OptionsManager:
        return OptionsManager(self.config)

    @cached_property
    def schema(self) -> SchemaRepository:
        return SchemaRepository(self.db, self.dialect)

    @property
    def strict(self) -> bool:
        return self.settings.strict

    def table(self, logical: str) -> str:
        """Prefixed physical name, e.g. ``table("sermons")`` → ``wp_sb_sermons``."""
        return f"{self.settings.table_prefix}sb_{logical}"

    def upload_path(self, *parts: str) -> str:
        return os.path.join(str(self.settings.upload_root), *parts)

    def legacy_files_path(self, *parts: str) -> str:
        return os.path.join(str(self.settings.legacy_files_root), *parts)

    @property
    def lock_table(self) -> str:
        return f"{self.settings.table_prefix}sb_upgrade_locks"


__all__ = ["LifecycleContext"]
