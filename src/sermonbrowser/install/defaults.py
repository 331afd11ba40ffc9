"""Version constants and default option values.

Template bodies ship as files in ``install/templates/`` and are read on
demand.  The stylesheet carries a ``**SB_PATH**`` placeholder that is
replaced with the plugin's public URL.
"""

from __future__ import annotations

import time
from functools import cache
from pathlib import Path
from typing import Any

DATABASE_VERSION = "1.7"
CODE_VERSION = "0.8.0"

# Base time-of-day that pre-1.6 sermon dates implicitly carry.
DEFAULT_TIME = "00:00"

MP3_SHORTCODE = '[audio mp3="%SERMONURL%"]'
PLUGIN_FILE = "sermon-browser/sermon.php"

_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


@cache
def _read(name: str) -> str:
    return (_TEMPLATE_DIR / name).read_text(encoding="utf-8")


def search_template() -> str:
    """Multi-sermon (search results) template."""
    return _read("search.html")


def single_template() -> str:
    return _read("single.html")


def excerpt_template() -> str:
    return _read("excerpt.html")


def default_css(plugin_url: str = "") -> str:
    return _read("style.css").replace("**SB_PATH**", plugin_url.rstrip("/"))


# Import-assistance toggles: everything off except the prompt.
IMPORT_DEFAULTS: dict[str, Any] = {
    "import_prompt": True,
    "import_title": False,
    "import_artist": False,
    "import_album": False,
    "import_comments": False,
    "import_filename": "none",
    "hide_no_attachments": False,
}


def install_options(
    *,
    upload_dir: str,
    upload_url: str,
    podcast_url: str,
    plugin_url: str = "",
    now: int | None = None,
) -> dict[str, Any]:
    """Every option a fresh install writes, in write order."""
    options: dict[str, Any] = {
        "upload_dir": upload_dir,
        "upload_url": upload_url,
        "podcast_url": podcast_url,
        "display_method": "dynamic",
        "sermons_per_page": "10",
        "search_template": search_template(),
        "single_template": single_template(),
        "css_style": default_css(plugin_url),
        "style_date_modified": int(time.time()) if now is None else now,
        "db_version": DATABASE_VERSION,
        "filter_type": "oneclick",
        "filter_hide": "hide",
    }
    options.update(IMPORT_DEFAULTS)
    options["mp3_shortcode"] = MP3_SHORTCODE
    return options


__all__ = [
    "CODE_VERSION",
    "DATABASE_VERSION",
    "DEFAULT_TIME",
    "IMPORT_DEFAULTS",
    "MP3_SHORTCODE",
    "PLUGIN_FILE",
    "default_css",
    "excerpt_template",
    "install_options",
    "search_template",
    "single_template",
]
