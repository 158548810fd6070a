"""JSON persistence for editor settings.

The file on disk may hold any subset of the default sections; missing keys
are filled from ``default_app_settings()`` and a broken file never stops the
editor from starting.
"""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

from epicmd.services.file_io import MarkdownFileError, atomic_write_text
from epicmd.settings_models import (
    DEFAULT_AUTO_SAVE_SECONDS,
    DEFAULT_RENDER_DEBOUNCE_MS,
    RenderStyle,
    default_app_settings,
)

logger = logging.getLogger(__name__)


class SettingsStoreError(RuntimeError):
    """Raised when a settings file cannot be parsed or written."""


def deep_merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Fills keys missing from ``data``; values already present always win."""
    merged = deepcopy(dict(data))
    for key, fallback in defaults.items():
        present = merged.get(key)
        if key not in merged:
            merged[key] = deepcopy(fallback)
        elif isinstance(present, dict) and isinstance(fallback, Mapping):
            merged[key] = deep_merge_defaults(present, fallback)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    node: Any = data
    for part in key.split(".") if key else ():
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def dot_set(data: dict[str, Any], key: str, value: Any) -> None:
    if not key:
        raise ValueError("Key cannot be empty.")
    *parents, leaf = key.split(".")
    node = data
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[leaf] = value


def _read_settings_file(path: Path) -> dict[str, Any]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SettingsStoreError(f"Could not read settings file '{path}': {exc}") from exc
    if not isinstance(raw, dict):
        raise SettingsStoreError(
            f"Settings root in '{path}' must be a JSON object, found {type(raw).__name__}."
        )
    return raw


class JsonSettingsStore:
    """Settings document backed by one JSON file, addressed with dot keys."""

    def __init__(self, path: Path, defaults: Mapping[str, Any] | None = None) -> None:
        self.path = Path(path)
        self.defaults: dict[str, Any] = deepcopy(dict(defaults if defaults is not None else default_app_settings()))
        self.data: dict[str, Any] = deepcopy(self.defaults)
        self.dirty: bool = False
        self.last_error: str | None = None

    def load(self) -> dict[str, Any]:
        """Reads the file; a missing file marks the store dirty so it gets written."""
        self.last_error = None
        if not self.path.exists():
            self.data = deepcopy(self.defaults)
            self.dirty = True
            return self.data

        try:
            loaded = _read_settings_file(self.path)
        except SettingsStoreError as exc:
            # The invalid file is left untouched on disk.
            self.last_error = str(exc)
            logger.warning("%s; using defaults", exc)
            self.data = deep_merge_defaults(self.data, self.defaults)
            self.dirty = False
            return self.data

        self.data = deep_merge_defaults(loaded, self.defaults)
        self.dirty = False
        logger.debug("Loaded settings from %s", self.path)
        return self.data

    def save(self) -> None:
        text = json.dumps(self.data, indent=2, sort_keys=True)
        try:
            atomic_write_text(self.path, text)
        except MarkdownFileError as exc:
            raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc
        self.dirty = False
        self.last_error = None

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def set(self, key: str, value: Any) -> bool:
        if self.get(key) == value:
            return False
        dot_set(self.data, key, value)
        self.dirty = True
        return True

    def restore_defaults(self) -> None:
        self.data = deepcopy(self.defaults)
        self.dirty = True

    def snapshot(self) -> dict[str, Any]:
        return deepcopy(self.data)


def render_style_from_store(store: JsonSettingsStore) -> RenderStyle:
    return RenderStyle.from_settings(store.snapshot())


def debounce_ms_from_store(store: JsonSettingsStore) -> int:
    value = store.get("editor.render_debounce_ms", DEFAULT_RENDER_DEBOUNCE_MS)
    if isinstance(value, bool):
        return DEFAULT_RENDER_DEBOUNCE_MS
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return DEFAULT_RENDER_DEBOUNCE_MS


def auto_save_seconds_from_store(store: JsonSettingsStore) -> float:
    """Seconds between auto-saves; 0 means off."""
    value = store.get("editor.auto_save_seconds", DEFAULT_AUTO_SAVE_SECONDS)
    if isinstance(value, bool):
        return float(DEFAULT_AUTO_SAVE_SECONDS)
    try:
        return max(0.0, float(value))
    except (TypeError, ValueError):
        return float(DEFAULT_AUTO_SAVE_SECONDS)
