"""Tests for template manifest loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from quillmark.services.metadata_completion import CatalogEntry
from quillmark.services.template_catalog import CatalogError, find_entry, load_catalog, parse_catalog

MANIFEST = {
    "templates": [
        {"name": "Memo", "description": "Internal memo", "file": "memo.md", "production": True},
        {"name": "Draft", "file": "draft.md", "production": False},
    ]
}


def _write(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "templates.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


class TestParseCatalog:
    def test_object_with_templates(self) -> None:
        entries = parse_catalog(MANIFEST)
        assert entries == [
            CatalogEntry(name="Memo", description="Internal memo", file="memo.md", production=True),
            CatalogEntry(name="Draft", description="", file="draft.md", production=False),
        ]

    def test_bare_array(self) -> None:
        assert [e.name for e in parse_catalog(MANIFEST["templates"])] == ["Memo", "Draft"]

    def test_production_only(self) -> None:
        assert [e.name for e in parse_catalog(MANIFEST, production_only=True)] == ["Memo"]

    @pytest.mark.parametrize(
        "raw",
        [
            {"items": []},
            "templates",
            [42],
            [{"name": "Memo", "file": "memo.md"}],
            [{"name": "", "file": "memo.md", "production": True}],
            [{"name": "Memo", "file": "memo.md", "production": "yes"}],
        ],
    )
    def test_invalid_manifest(self, raw: object) -> None:
        with pytest.raises(CatalogError) as exc_info:
            parse_catalog(raw)
        assert exc_info.value.code == "invalid_manifest"


class TestLoadCatalog:
    def test_load(self, tmp_path: Path) -> None:
        entries = load_catalog(_write(tmp_path, MANIFEST))
        assert [e.file for e in entries] == ["memo.md", "draft.md"]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CatalogError) as exc_info:
            load_catalog(tmp_path / "absent.json")
        assert exc_info.value.code == "not_found"

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "templates.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogError) as exc_info:
            load_catalog(path)
        assert exc_info.value.code == "load_error"
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_unknown_code_falls_back(self) -> None:
        assert CatalogError("weird", "boom").code == "load_error"


class TestFindEntry:
    def test_found(self) -> None:
        entries = parse_catalog(MANIFEST)
        assert find_entry(entries, "draft.md").name == "Draft"

    def test_not_found_lists_available(self) -> None:
        with pytest.raises(CatalogError, match="memo.md, draft.md") as exc_info:
            find_entry(parse_catalog(MANIFEST), "missing.md")
        assert exc_info.value.code == "not_found"
