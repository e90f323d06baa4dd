"""Tests for viewport-restricted span decoration."""

from __future__ import annotations

from quillmark.services.document import Document, TextRange
from quillmark.services.metadata_decorations import SpanKind, SpanScope, blocks_in_range, decorate
from quillmark.services.metadata_patterns import DetectionResult, detect


def _text_of(doc: Document, span) -> str:
    return doc.text[span.start:span.end]


class TestDecorateOrdering:
    def test_sorted_by_start_then_line_scope(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        spans = decorate(two_block_result.blocks, (0, two_block_document.length))
        keys = [(span.start, span.scope.value) for span in spans]
        assert keys == sorted(keys)

    def test_line_span_precedes_marks_at_same_offset(self, two_block_result: DetectionResult) -> None:
        first = two_block_result.blocks[0]
        spans = decorate(two_block_result.blocks, (first.start, first.start + 1))
        assert [span.kind for span in spans] == [SpanKind.BLOCK_BACKGROUND, SpanKind.DELIMITER]
        assert spans[0].scope is SpanScope.LINE
        assert spans[1].scope is SpanScope.MARK

    def test_keyword_line_background_then_keyword(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        line = two_block_document.line(4)
        spans = decorate(two_block_result.blocks, (line.start, line.end))
        assert [span.kind for span in spans] == [
            SpanKind.BLOCK_BACKGROUND,
            SpanKind.SCOPE_KEYWORD,
            SpanKind.IDENTIFIER,
        ]
        assert [_text_of(two_block_document, s) for s in spans[1:]] == ["SCOPE", "intro"]


class TestDecorateViewport:
    def test_every_span_intersects_viewport(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        for lo in range(0, two_block_document.length, 7):
            hi = lo + 9
            for span in decorate(two_block_result.blocks, (lo, hi)):
                assert span.end > lo and span.start < hi

    def test_viewport_starting_at_block_end(self) -> None:
        doc = Document("---\nSCOPE: a\n---\nprose here\n")
        block = detect(doc).blocks[0]
        assert decorate((block,), (block.end, block.end + 5)) == []
        assert decorate((block,), (block.end - 1, block.end + 5))

    def test_empty_viewport(self, two_block_result: DetectionResult) -> None:
        first = two_block_result.blocks[0]
        assert decorate(two_block_result.blocks, (0, 0)) == []
        assert decorate(two_block_result.blocks, (first.start, first.start)) == []

    def test_viewport_ending_at_block_start(self, two_block_result: DetectionResult) -> None:
        first = two_block_result.blocks[0]
        assert decorate(two_block_result.blocks, (0, first.start)) == []

    def test_gap_between_blocks_is_empty(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        body = two_block_document.line(7)
        assert decorate(two_block_result.blocks, (body.start, body.end)) == []

    def test_second_block_only(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        second = two_block_result.blocks[1]
        spans = decorate(two_block_result.blocks, TextRange(second.start, two_block_document.length))
        assert spans
        assert all(span.start >= second.start for span in spans)

    def test_inverted_and_negative_viewport(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        forward = decorate(two_block_result.blocks, (0, two_block_document.length))
        assert decorate(two_block_result.blocks, (two_block_document.length, -10)) == forward

    def test_blocks_in_range(self, two_block_result: DetectionResult) -> None:
        first, second = two_block_result.blocks
        assert blocks_in_range(two_block_result.blocks, 0, first.start + 1) == [first]
        assert blocks_in_range(two_block_result.blocks, 0, first.start) == []
        assert blocks_in_range(two_block_result.blocks, first.end, second.start) == []
        assert blocks_in_range(two_block_result.blocks, 0, 10_000) == [first, second]


class TestDecorateKinds:
    def test_value_and_comment_kinds(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        spans = decorate(two_block_result.blocks, (0, two_block_document.length))
        by_kind = {}
        for span in spans:
            by_kind.setdefault(span.kind, []).append(_text_of(two_block_document, span))
        assert by_kind[SpanKind.YAML_KEY] == ["count", "active"]
        assert by_kind[SpanKind.YAML_VALUE_NUMBER] == ["42"]
        assert by_kind[SpanKind.YAML_VALUE_BOOLEAN] == ["true"]
        assert by_kind[SpanKind.YAML_COMMENT] == ["# items"]
        assert by_kind[SpanKind.DELIMITER] == ["---"] * 4
        assert len(by_kind[SpanKind.BLOCK_BACKGROUND]) == 8

    def test_empty_identifier_and_value_have_no_mark(self) -> None:
        doc = Document("---\nSCOPE:\nempty:\n---\n")
        spans = decorate(detect(doc).blocks, (0, doc.length))
        kinds = [span.kind for span in spans]
        assert SpanKind.IDENTIFIER not in kinds
        assert SpanKind.YAML_VALUE_STRING not in kinds
        assert SpanKind.SCOPE_KEYWORD in kinds

    def test_orphan_gets_plain_delimiter_mark(self) -> None:
        doc = Document("---\nSCOPE: intro\n")
        result = detect(doc)
        spans = decorate(result.blocks, (0, doc.length), orphan_delimiters=result.orphan_delimiters)
        assert [(s.start, s.end, s.kind) for s in spans] == [(0, 3, SpanKind.DELIMITER)]

    def test_no_blocks_no_spans(self) -> None:
        assert decorate((), (0, 100)) == []
