"""
Options manager for the sermon catalogue.

Most options live together in one aggregate ConfigStore key,
``sermonbrowser_options``, holding base64 of a JSON object.  The three
large text options (two templates and the stylesheet) are stored one per
key as ``sermonbrowser_<name>``, base64-encoded.

Architecture:
    ::

        OptionsManager(store)
          get("filter_type")     → aggregate["filter_type"]  ("" if absent)
          get("css_style")       → b64decode(store["sermonbrowser_css_style"])
          update(key, value)     → rewrite aggregate / special key
          delete(key)            → remove from aggregate / drop special key

        ConfigStore
          sermonbrowser_options          = b64(json({...}))
          sermonbrowser_single_template  = b64(text)
          sermonbrowser_search_template  = b64(text)
          sermonbrowser_css_style        = b64(text)

Guardrails:
    ❌ DON'T: read ``sermonbrowser_options`` directly from the store
    ✅ DO: go through ``OptionsManager`` so the cache stays coherent

Tags:
    options, configuration, base64, legacy-keys
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any

from sermonbrowser.core.errors import ConfigError
from sermonbrowser.core.protocols import ConfigStore

AGGREGATE_KEY = "sermonbrowser_options"
SPECIAL_OPTIONS: tuple[str, ...] = ("single_template", "search_template", "css_style")

_SLASH_RE = re.compile(r"\\(.?)", re.S)


def b64encode_text(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def b64decode_text(blob: str) -> str:
    """Decode base64 text; undecodable input yields ``""``."""
    try:
        return base64.b64decode(blob).decode("utf-8")
    except (binascii.Error, ValueError):
        return ""


def strip_slashes(text: str) -> str:
    """Undo backslash escaping: ``\\'`` → ``'``, ``\\\\`` → ``\\``, ``\\0`` → NUL."""
    return _SLASH_RE.sub(lambda m: "\0" if m.group(1) == "0" else m.group(1), text)


def special_key(name: str) -> str:
    return f"sermonbrowser_{name}"


class OptionsManager:
    """Typed access to the aggregate and special option keys."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store
        self._cache: dict[str, Any] | None = None

    @staticmethod
    def special_names() -> tuple[str, ...]:
        return SPECIAL_OPTIONS

    @staticmethod
    def storage_keys() -> list[str]:
        """Every ConfigStore key this manager writes to."""
        return [AGGREGATE_KEY, *(special_key(name) for name in SPECIAL_OPTIONS)]

    def get(self, key: str) -> Any:
        """Return an option value, or ``""`` when it is not set."""
        if key in SPECIAL_OPTIONS:
            raw = self.store.get(special_key(key))
            return b64decode_text(raw) if raw else ""
        return self._load().get(key, "")

    def has(self, key: str) -> bool:
        if key in SPECIAL_OPTIONS:
            return self.store.get(special_key(key)) is not None
        return key in self._load()

    def update(self, key: str, value: Any) -> bool:
        """Set an option.  Returns False when the stored value is unchanged."""
        if key in SPECIAL_OPTIONS:
            self.store.set(special_key(key), b64encode_text(str(value)))
            return True
        cache = self._load()
        if key in cache and cache[key] == value:
            return False
        cache[key] = value
        self._save(cache)
        return True

    def delete(self, key: str) -> None:
        if key in SPECIAL_OPTIONS:
            self.store.delete(special_key(key))
            return
        cache = self._load()
        if key in cache:
            del cache[key]
            self._save(cache)

    def all(self) -> dict[str, Any]:
        """Snapshot of the aggregate plus the decoded special options."""
        values = dict(self._load())
        for name in SPECIAL_OPTIONS:
            if self.has(name):
                values[name] = self.get(name)
        return values

    def clear_cache(self) -> None:
        self._cache = None

    def _load(self) -> dict[str, Any]:
        if self._cache is not None:
            return self._cache
        raw = self.store.get(AGGREGATE_KEY)
        if raw is None:
            self._cache = {}
            return self._cache
        try:
            decoded = json.loads(base64.b64decode(raw).decode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise ConfigError(
                f"{AGGREGATE_KEY} is not valid base64 JSON", cause=exc
            ) from exc
        if not isinstance(decoded, dict):
            raise ConfigError(f"{AGGREGATE_KEY} does not hold an object")
        self._cache = decoded
        return self._cache

    def _save(self, cache: dict[str, Any]) -> None:
        payload = json.dumps(cache, sort_keys=True)
        self.store.set(AGGREGATE_KEY, b64encode_text(payload))


__all__ = [
    "AGGREGATE_KEY",
    "SPECIAL_OPTIONS",
    "OptionsManager",
    "b64decode_text",
    "b64encode_text",
    "special_key",
    "strip_slashes",
]
