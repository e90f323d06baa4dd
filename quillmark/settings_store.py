"""Engine settings read from a JSON file and layered over the typed defaults."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from quillmark.settings_models import SettingsPaths, default_engine_settings

logger = logging.getLogger(__name__)


def merge_defaults(overrides: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``defaults`` with ``overrides`` layered on top, section by section."""
    merged = {key: deepcopy(value) for key, value in defaults.items()}
    for key, value in overrides.items():
        base = merged.get(key)
        if isinstance(value, Mapping) and isinstance(base, dict):
            merged[key] = merge_defaults(value, base)
        else:
            merged[key] = deepcopy(value)
    return merged


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Look up ``"section.name"`` style keys; an empty key returns ``data``."""
    current: Any = data
    for part in filter(None, str(key or "").split(".")):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


@dataclass(slots=True)
class LoadedSettings:
    path: Path
    data: dict[str, Any] = field(default_factory=dict)
    last_error: str | None = None

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)


def _read_overrides(path: Path) -> dict[str, Any]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"settings root must be a JSON object, found {type(raw).__name__}")
    return raw


def load_engine_settings(path: str | Path | None = None) -> LoadedSettings:
    """Load ``path`` (default ``~/.config/quillmark/settings.json``).

    A missing file means defaults. An unreadable or malformed file also means
    defaults, with the reason kept in ``last_error``; the file is left alone.
    """
    settings_file = Path(path).expanduser() if path else SettingsPaths.default().settings_file
    defaults = default_engine_settings()
    if not settings_file.is_file():
        logger.debug("No settings file at %s, using defaults", settings_file)
        return LoadedSettings(settings_file, merge_defaults({}, defaults))
    try:
        overrides = _read_overrides(settings_file)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring settings file %s: %s", settings_file, exc)
        return LoadedSettings(settings_file, merge_defaults({}, defaults), last_error=str(exc))
    return LoadedSettings(settings_file, merge_defaults(overrides, defaults))


__all__ = ["LoadedSettings", "dot_get", "load_engine_settings", "merge_defaults"]
