"""Fold ranges for metadata blocks."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Iterable, Sequence

from quillmark.services.metadata_patterns import MetadataBlock

DEFAULT_COLLAPSED_SUMMARY = "---…---"


@dataclass(slots=True, frozen=True)
class FoldRange:
    """Collapsible body of one block.

    ``start`` is the end of the opening delimiter line and ``end`` the offset
    just before the closing delimiter line, so both delimiters stay visible.
    """

    open_line: int
    close_line: int
    start: int
    end: int

    @property
    def body_lines(self) -> tuple[int, int]:
        return self.open_line + 1, self.close_line - 1

    def as_line_region(self) -> tuple[int, int]:
        # (start_line, last_hidden_line) in the fold-provider convention.
        return self.open_line, self.close_line - 1


def _fold_for_block(block: MetadataBlock) -> FoldRange:
    return FoldRange(
        open_line=block.open_line,
        close_line=block.close_line,
        start=block.opening.end,
        end=max(block.opening.end, block.closing.start - 1),
    )


def block_at_line(line: int, blocks: Sequence[MetadataBlock]) -> MetadataBlock | None:
    """Block whose delimiter-to-delimiter line span contains ``line``."""
    try:
        target = int(line)
    except (TypeError, ValueError):
        return None
    starts = [block.open_line for block in blocks]
    idx = bisect_right(starts, target) - 1
    if idx < 0:
        return None
    block = blocks[idx]
    return block if block.contains_line(target) else None


def block_at_offset(offset: int, blocks: Sequence[MetadataBlock]) -> MetadataBlock | None:
    starts = [block.start for block in blocks]
    idx = bisect_right(starts, int(offset)) - 1
    if idx < 0:
        return None
    block = blocks[idx]
    return block if block.start <= int(offset) <= block.end else None


def fold_range(line: int, blocks: Sequence[MetadataBlock]) -> FoldRange | None:
    """Fold for the block opened on ``line``; ``None`` for any other line.

    Orphan delimiters never appear in ``blocks``, so they never fold.
    """
    block = block_at_line(line, blocks)
    if block is None or block.open_line != int(line):
        return None
    return _fold_for_block(block)


def fold_ranges(blocks: Iterable[MetadataBlock]) -> list[FoldRange]:
    return [_fold_for_block(block) for block in blocks]


def toggle_all_folds(blocks: Sequence[MetadataBlock], folded_lines: Iterable[int]) -> set[int]:
    """Next set of folded opener lines for a fold-all/unfold-all toggle.

    When every block is already folded everything is unfolded; otherwise every
    block is folded. Folded lines that no longer open a block are dropped.
    """
    openers = {block.open_line for block in blocks}
    folded = {int(line) for line in folded_lines} & openers
    if openers and folded == openers:
        return set()
    return set(openers)


__all__ = [
    "DEFAULT_COLLAPSED_SUMMARY",
    "FoldRange",
    "block_at_line",
    "block_at_offset",
    "fold_range",
    "fold_ranges",
    "toggle_all_folds",
]
