"""Settings for the sermon lifecycle engine.

Storage locations, table prefix, permission modes and the stricter
failure modes are read from ``SERMONBROWSER_*`` environment variables
(or a ``.env`` file) and validated by pydantic at startup.

Examples:
    >>> from sermonbrowser.core.settings import LifecycleSettings
    >>> s = LifecycleSettings(root_dir="/srv/site", table_prefix="wp2_")
    >>> s.upload_root
    PosixPath('/srv/site/wp-content/uploads/sermons')

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LifecycleSettings(BaseSettings):
    """Configuration for install, upgrade and uninstall.

    Fields
    ──────
    root_dir              : Site root; relative paths below resolve against it
    upload_dir            : Sermon upload directory, relative to ``root_dir``
    legacy_files_dir      : Pre-1.1 attachment directory, relative to ``root_dir``
    site_url              : Public site URL (upload/podcast URL defaults)
    table_prefix          : Prefix for every managed table name
    database              : SQLite database path used by the CLI
    dialect               : ``sqlite`` or ``mysql``
    dir_mode / file_mode  : Permission modes for created dirs / moved files
    network_install       : Multisite install; skips self-deactivation
    strict                : Fail fast on the first failed operation
    upgrade_lock          : Run the cascade under a single-flight DB lock
    lock_timeout_seconds  : Expiry for a held upgrade lock
    """

    model_config = SettingsConfigDict(
        env_prefix="SERMONBROWSER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    root_dir: Path = Field(default_factory=Path.cwd)
    upload_dir: str = "wp-content/uploads/sermons/"
    legacy_files_dir: str = "wp-content/plugins/sermon-browser/files/"
    site_url: str = "http://localhost/"
    dir_mode: int = 0o755
    file_mode: int = 0o644

    # ── Database ─────────────────────────────────────────────────
    table_prefix: str = "wp_"
    database: str = "sermonbrowser.db"
    dialect: str = "sqlite"

    # ── Behaviour ────────────────────────────────────────────────
    network_install: bool = False
    strict: bool = False
    upgrade_lock: bool = True
    lock_timeout_seconds: int = Field(default=600, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    @field_validator("upload_dir", "legacy_files_dir")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        # Stored option values keep the trailing slash the templates expect.
        return value if value.endswith("/") else value + "/"

    @field_validator("dialect")
    @classmethod
    def _known_dialect(cls, value: str) -> str:
        value = value.lower()
        if value not in ("sqlite", "mysql", "mariadb"):
            raise ValueError(f"unsupported dialect: {value}")
        return value

    @property
    def upload_root(self) -> Path:
        return Path(self.root_dir) / self.upload_dir

    @property
    def legacy_files_root(self) -> Path:
        return Path(self.root_dir) / self.legacy_files_dir

    @property
    def upload_url(self) -> str:
        return self.site_url.rstrip("/") + "/" + self.upload_dir

    @property
    def podcast_url(self) -> str:
        return self.site_url.rstrip("/") + "/?podcast"


__all__ = ["LifecycleSettings"]
