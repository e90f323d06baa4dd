"""Template manifest loading for ``QUILL:`` completion.

The manifest is JSON: either an array of template objects or an object with a
``templates`` array. Every template needs ``name`` and ``file`` strings and a
boolean ``production`` flag; ``description`` is optional.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from quillmark.services.metadata_completion import CatalogEntry

logger = logging.getLogger(__name__)

CATALOG_ERROR_CODES = ("not_found", "load_error", "invalid_manifest")


class CatalogError(RuntimeError):
    """Raised when a template manifest cannot be read or is malformed."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code if code in CATALOG_ERROR_CODES else "load_error"


def _manifest_items(raw: Any) -> list[Any]:
    if isinstance(raw, dict):
        raw = raw.get("templates")
    if not isinstance(raw, list):
        raise CatalogError("invalid_manifest", "Invalid manifest format: expected an array of templates.")
    return raw


def parse_catalog(raw: Any, *, production_only: bool = False) -> list[CatalogEntry]:
    entries: list[CatalogEntry] = []
    for idx, item in enumerate(_manifest_items(raw)):
        if not isinstance(item, dict):
            raise CatalogError("invalid_manifest", f"Template #{idx} must be an object.")
        name = str(item.get("name") or "").strip()
        file_name = str(item.get("file") or "").strip()
        production = item.get("production")
        if not name or not file_name or not isinstance(production, bool):
            raise CatalogError(
                "invalid_manifest",
                f"Invalid template #{idx} in manifest: missing required fields (name, file, production).",
            )
        if production_only and not production:
            logger.debug("Skipping non-production template %r", name)
            continue
        entries.append(
            CatalogEntry(
                name=name,
                description=str(item.get("description") or "").strip(),
                file=file_name,
                production=production,
            )
        )
    return entries


def load_catalog(path: str | Path, *, production_only: bool = False) -> list[CatalogEntry]:
    manifest_path = Path(path).expanduser()
    if not manifest_path.is_file():
        raise CatalogError("not_found", f"Template manifest '{manifest_path}' does not exist.")
    try:
        raw = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not read template manifest %s: %s", manifest_path, exc)
        raise CatalogError("load_error", f"Failed to load manifest '{manifest_path}': {exc}") from exc
    entries = parse_catalog(raw, production_only=production_only)
    logger.debug("Loaded %d template(s) from %s", len(entries), manifest_path)
    return entries


def find_entry(catalog: Iterable[CatalogEntry], file_name: str) -> CatalogEntry:
    target = str(file_name or "").strip()
    entries = list(catalog)
    for entry in entries:
        if entry.file == target:
            return entry
    available = ", ".join(entry.file for entry in entries) or "none"
    raise CatalogError("not_found", f'Template "{target}" not found. Available: {available}')


__all__ = ["CatalogError", "find_entry", "load_catalog", "parse_catalog"]
