"""Shared fixtures for the metadata syntax engine tests."""

from __future__ import annotations

import os

import pytest

from quillmark.services.document import Document
from quillmark.services.metadata_completion import CatalogEntry
from quillmark.services.metadata_patterns import DetectionResult, detect

# Widget tests run without a display server.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

SCENARIO_TEXT = "---\nSCOPE: alpha\nQUILL: memo\ntitle: Report\n---\n\n---\n\n"

TWO_BLOCK_TEXT = (
    "# Heading\n"
    "\n"
    "---\n"
    "SCOPE: intro\n"
    "count: 42  # items\n"
    "---\n"
    "Body text\n"
    "\n"
    "---\n"
    "SCOPE: outro\n"
    "active: true\n"
    "---\n"
)


@pytest.fixture
def scenario_document() -> Document:
    return Document(SCENARIO_TEXT)


@pytest.fixture
def two_block_document() -> Document:
    return Document(TWO_BLOCK_TEXT)


@pytest.fixture
def two_block_result(two_block_document: Document) -> DetectionResult:
    return detect(two_block_document)


@pytest.fixture
def catalog() -> list[CatalogEntry]:
    return [
        CatalogEntry(name="memo", description="Internal memo", file="memo.md"),
        CatalogEntry(name="Letter", description="Formal letter", file="letter.md"),
        CatalogEntry(name="invoice", description="Billing", file="invoice.md", production=False),
    ]
