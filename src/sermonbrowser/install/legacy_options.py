"""Legacy option keys and their migration into the options aggregate.

Releases before 1.6 stored each option under its own ``sb_*`` key, some
of them base64-encoded with backslash escaping.  ``upgrade_options``
moves every non-empty legacy value to its current name and removes the
old key.  Running it again finds nothing left to move.
"""

from __future__ import annotations

from sermonbrowser.core.logging import get_logger
from sermonbrowser.core.options import OptionsManager, b64decode_text, strip_slashes
from sermonbrowser.core.protocols import ConfigStore

logger = get_logger(__name__)

STANDARD_OPTION_MAPPINGS: tuple[tuple[str, str], ...] = (
    ("sb_sermon_style_date_modified", "style_date_modified"),
    ("sb_sermon_db_version", "db_version"),
    ("sb_sermon_version", "code_version"),
    ("sb_podcast", "podcast_url"),
    ("sb_filtertype", "filter_type"),
    ("sb_filterhide", "filter_hide"),
    ("sb_widget_sermon", "sermons_widget_options"),
    ("sb_sermon_upload_dir", "upload_dir"),
    ("sb_sermon_upload_url", "upload_url"),
    ("sb_display_method", "display_method"),
    ("sb_sermons_per_page", "sermons_per_page"),
    ("sb_show_donate_reminder", "show_donate_reminder"),
)

BASE64_OPTION_MAPPINGS: tuple[tuple[str, str], ...] = (
    ("sb_sermon_single_form", "single_template"),
    ("sb_sermon_single_output", "single_output"),
    ("sb_sermon_multi_form", "search_template"),
    ("sb_sermon_multi_output", "search_output"),
    ("sb_sermon_style", "css_style"),
)

OBSOLETE_OPTION = "sb_sermon_style_output"

# Every pre-1.6 key.  Values that were empty at upgrade time stay behind
# under these names and are removed on uninstall.
LEGACY_OPTION_KEYS: tuple[str, ...] = tuple(
    old for old, _ in STANDARD_OPTION_MAPPINGS + BASE64_OPTION_MAPPINGS
) + (OBSOLETE_OPTION,)


def upgrade_options(config: ConfigStore, options: OptionsManager) -> list[str]:
    """Rename legacy keys; returns the new names that received a value."""
    moved: list[str] = []

    for old, new in STANDARD_OPTION_MAPPINGS:
        value = config.get(old)
        if value:
            options.update(new, value)
            config.delete(old)
            moved.append(new)

    for old, new in BASE64_OPTION_MAPPINGS:
        value = config.get(old)
        if value:
            options.update(new, strip_slashes(b64decode_text(str(value))))
            config.delete(old)
            moved.append(new)

    config.delete(OBSOLETE_OPTION)

    if moved:
        logger.info("upgrade.options_migrated", options=moved)
    return moved


__all__ = [
    "BASE64_OPTION_MAPPINGS",
    "LEGACY_OPTION_KEYS",
    "OBSOLETE_OPTION",
    "STANDARD_OPTION_MAPPINGS",
    "upgrade_options",
]
