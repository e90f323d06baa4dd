"""Tests for SCOPE/QUILL identifier completion."""

from __future__ import annotations

from quillmark.services.document import Document
from quillmark.services.metadata_completion import (
    CatalogEntry,
    complete,
    completion_context,
    quill_candidates,
    scope_candidates,
)
from quillmark.services.metadata_patterns import KeywordKind, detect

SCOPES_TEXT = (
    "---\n"
    "SCOPE: beta\n"
    "---\n"
    "text\n"
    "---\n"
    "SCOPE: Alpha\n"
    "SCOPE: beta\n"
    "---\n"
    "---\n"
    "SCOPE: \n"
    "title: x\n"
    "---\n"
)


def _cursor_after(doc: Document, line: int, column: int | None = None) -> int:
    target = doc.line(line)
    return target.end if column is None else target.start + column


class TestCompletionContext:
    def test_scope_context(self) -> None:
        doc = Document("SCOPE: al")
        ctx = completion_context(doc.length, doc)
        assert ctx is not None
        assert ctx.keyword is KeywordKind.SCOPE
        assert ctx.prefix == "al"
        assert (ctx.replace_from, ctx.replace_to) == (7, 9)

    def test_indented_quill_context(self) -> None:
        doc = Document("  QUILL:")
        ctx = completion_context(doc.length, doc)
        assert ctx is not None
        assert ctx.keyword is KeywordKind.QUILL
        assert ctx.prefix == ""

    def test_no_context(self) -> None:
        for text in ("title: x", "SCOPE: two words", "scope: lower", "prose SCOPE: x"):
            doc = Document(text)
            assert completion_context(doc.length, doc) is None

    def test_cursor_before_colon(self) -> None:
        doc = Document("SCOPE: alpha")
        assert completion_context(3, doc) is None

    def test_cursor_is_clamped(self) -> None:
        doc = Document("QUILL: m")
        assert completion_context(500, doc) is not None


class TestComplete:
    def test_scope_candidates_distinct_sorted_excluding_current(self) -> None:
        doc = Document(SCOPES_TEXT)
        blocks = detect(doc).blocks
        cursor = _cursor_after(doc, 10)
        labels = [c.label for c in complete(cursor, doc, blocks)]
        assert labels == ["Alpha", "beta"]

    def test_identifier_on_cursor_line_is_excluded(self) -> None:
        doc = Document("---\nSCOPE: only\n---\n")
        blocks = detect(doc).blocks
        assert complete(_cursor_after(doc, 2), doc, blocks) == []

    def test_quill_candidates_from_catalog(self, catalog: list[CatalogEntry]) -> None:
        doc = Document("---\nQUILL: \n---\n")
        blocks = detect(doc).blocks
        candidates = complete(_cursor_after(doc, 2), doc, blocks, catalog)
        assert [(c.label, c.detail, c.kind) for c in candidates] == [
            ("invoice", "Billing", KeywordKind.QUILL),
            ("Letter", "Formal letter", KeywordKind.QUILL),
            ("memo", "Internal memo", KeywordKind.QUILL),
        ]

    def test_candidates_are_not_prefix_filtered(self, catalog: list[CatalogEntry]) -> None:
        doc = Document("QUILL: zz")
        assert len(complete(doc.length, doc, (), catalog)) == 3

    def test_gating(self, catalog: list[CatalogEntry]) -> None:
        doc = Document("---\ntitle: Report\nQUILL: memo\n---\nprose\n")
        blocks = detect(doc).blocks
        for line in (1, 2, 4, 5):
            assert complete(_cursor_after(doc, line), doc, blocks, catalog) == []
        assert complete(_cursor_after(doc, 3), doc, blocks, catalog)
        assert complete(_cursor_after(doc, 3, 2), doc, blocks, catalog) == []

    def test_insert_text_is_label(self) -> None:
        [candidate] = quill_candidates([CatalogEntry(name="memo")])
        assert candidate.insert_text == "memo"


class TestCandidateBuilders:
    def test_quill_dedup_keeps_first(self) -> None:
        entries = [CatalogEntry(name="memo", description="first"), CatalogEntry(name="memo", description="second")]
        assert [(c.label, c.detail) for c in quill_candidates(entries)] == [("memo", "first")]

    def test_blank_names_skipped(self) -> None:
        assert quill_candidates([CatalogEntry(name="  ")]) == []

    def test_scope_candidates_without_exclusion(self) -> None:
        blocks = detect(Document(SCOPES_TEXT)).blocks
        assert [c.label for c in scope_candidates(blocks)] == ["Alpha", "beta"]
