"""Tests for metadata block folding."""

from __future__ import annotations

from quillmark.services.document import Document
from quillmark.services.metadata_folding import (
    block_at_line,
    block_at_offset,
    fold_range,
    fold_ranges,
    toggle_all_folds,
)
from quillmark.services.metadata_patterns import DetectionResult, detect


class TestFoldRange:
    def test_fold_symmetry(self, two_block_result: DetectionResult) -> None:
        for block in two_block_result.blocks:
            assert fold_range(block.open_line, two_block_result.blocks) is not None
            for line in range(block.open_line + 1, block.close_line):
                assert fold_range(line, two_block_result.blocks) is None

    def test_closing_line_and_outside_lines(self, two_block_result: DetectionResult) -> None:
        first = two_block_result.blocks[0]
        assert fold_range(first.close_line, two_block_result.blocks) is None
        assert fold_range(1, two_block_result.blocks) is None
        assert fold_range(7, two_block_result.blocks) is None

    def test_fold_offsets(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        fold = fold_range(3, two_block_result.blocks)
        assert fold is not None
        assert fold.start == two_block_document.line(3).end
        assert fold.end == two_block_document.line(6).start - 1
        assert fold.body_lines == (4, 5)
        assert fold.as_line_region() == (3, 5)

    def test_orphan_never_folds(self) -> None:
        result = detect(Document("---\nSCOPE: intro\n"))
        assert fold_range(1, result.blocks) is None

    def test_fold_ranges_in_document_order(self, two_block_result: DetectionResult) -> None:
        assert [(f.open_line, f.close_line) for f in fold_ranges(two_block_result.blocks)] == [(3, 6), (9, 12)]


class TestBlockLookup:
    def test_block_at_line(self, two_block_result: DetectionResult) -> None:
        first, second = two_block_result.blocks
        assert block_at_line(5, two_block_result.blocks) is first
        assert block_at_line(12, two_block_result.blocks) is second
        assert block_at_line(7, two_block_result.blocks) is None
        assert block_at_line(1, two_block_result.blocks) is None

    def test_block_at_offset(self, two_block_document: Document, two_block_result: DetectionResult) -> None:
        first = two_block_result.blocks[0]
        assert block_at_offset(two_block_document.line(4).start, two_block_result.blocks) is first
        assert block_at_offset(two_block_document.line(7).start, two_block_result.blocks) is None
        assert block_at_offset(0, two_block_result.blocks) is None


class TestToggleAll:
    def test_folds_everything_when_partially_folded(self, two_block_result: DetectionResult) -> None:
        assert toggle_all_folds(two_block_result.blocks, {3}) == {3, 9}

    def test_unfolds_when_everything_folded(self, two_block_result: DetectionResult) -> None:
        assert toggle_all_folds(two_block_result.blocks, {3, 9}) == set()

    def test_stale_lines_are_dropped(self, two_block_result: DetectionResult) -> None:
        assert toggle_all_folds(two_block_result.blocks, {3, 9, 40}) == set()
        assert toggle_all_folds((), {3}) == set()
