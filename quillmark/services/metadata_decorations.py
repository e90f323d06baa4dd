"""Styled spans for metadata blocks within a viewport.

Two span scopes are produced. Line spans (block background) cover a whole line
and may share a start offset with the narrower mark spans inside it. Each scope
is collected and sorted on its own and only then merged, line spans first at
equal offsets, so hosts that reject overlapping ranges in a single sorted list
can apply them in order.
"""

from __future__ import annotations

import heapq
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from quillmark.services.document import TextRange
from quillmark.services.metadata_patterns import (
    DelimiterCandidate,
    KeywordKind,
    MetadataBlock,
    ValueType,
)


class SpanScope(Enum):
    LINE = 0
    MARK = 1


class SpanKind(Enum):
    BLOCK_BACKGROUND = "block"
    DELIMITER = "delimiter"
    SCOPE_KEYWORD = "scope-keyword"
    QUILL_KEYWORD = "quill-keyword"
    IDENTIFIER = "identifier"
    YAML_KEY = "yaml-key"
    YAML_VALUE_STRING = "yaml-string"
    YAML_VALUE_NUMBER = "yaml-number"
    YAML_VALUE_BOOLEAN = "yaml-bool"
    YAML_COMMENT = "yaml-comment"

    @property
    def scope(self) -> SpanScope:
        return SpanScope.LINE if self is SpanKind.BLOCK_BACKGROUND else SpanScope.MARK


# Tie-break order for spans starting at the same offset.
KIND_PRIORITY: dict[SpanKind, int] = {kind: idx for idx, kind in enumerate(SpanKind)}

_VALUE_KINDS = {
    ValueType.STRING: SpanKind.YAML_VALUE_STRING,
    ValueType.NUMBER: SpanKind.YAML_VALUE_NUMBER,
    ValueType.BOOLEAN: SpanKind.YAML_VALUE_BOOLEAN,
}


@dataclass(slots=True, frozen=True)
class Span:
    start: int
    end: int
    kind: SpanKind

    @property
    def scope(self) -> SpanScope:
        return self.kind.scope

    @property
    def range(self) -> TextRange:
        return TextRange(self.start, self.end)


def _normalize_viewport(viewport: Sequence[int] | TextRange) -> tuple[int, int]:
    if isinstance(viewport, TextRange):
        lo, hi = viewport.start, viewport.end
    else:
        lo, hi = int(viewport[0]), int(viewport[1])
    if hi < lo:
        lo, hi = hi, lo
    return max(0, lo), max(0, hi)


def _block_spans(block: MetadataBlock) -> Iterable[Span]:
    yield Span(block.opening.start, block.opening.end, SpanKind.BLOCK_BACKGROUND)
    for body in block.body_lines:
        yield Span(body.start, body.end, SpanKind.BLOCK_BACKGROUND)
    yield Span(block.closing.start, block.closing.end, SpanKind.BLOCK_BACKGROUND)

    yield Span(block.opening.start, block.opening.end, SpanKind.DELIMITER)
    yield Span(block.closing.start, block.closing.end, SpanKind.DELIMITER)
    for kw in block.keywords:
        kind = SpanKind.SCOPE_KEYWORD if kw.kind is KeywordKind.SCOPE else SpanKind.QUILL_KEYWORD
        yield Span(kw.keyword_range.start, kw.keyword_range.end, kind)
        if not kw.identifier_range.is_empty():
            yield Span(kw.identifier_range.start, kw.identifier_range.end, SpanKind.IDENTIFIER)
    for entry in block.yaml_entries:
        yield Span(entry.key_range.start, entry.key_range.end, SpanKind.YAML_KEY)
        if not entry.value_range.is_empty():
            yield Span(entry.value_range.start, entry.value_range.end, _VALUE_KINDS[entry.value_type])
    for comment in block.comments:
        yield Span(comment.range.start, comment.range.end, SpanKind.YAML_COMMENT)


def _line_key(span: Span) -> tuple[int, int]:
    return span.start, KIND_PRIORITY[span.kind]


def _mark_key(span: Span) -> tuple[int, int, int]:
    return span.start, KIND_PRIORITY[span.kind], span.end


def _merge_key(span: Span) -> tuple[int, int]:
    return span.start, span.scope.value


def blocks_in_range(blocks: Sequence[MetadataBlock], start: int, end: int) -> list[MetadataBlock]:
    """Blocks overlapping ``[start, end)``; ``blocks`` must be in document order."""
    # Blocks never overlap, so their end offsets are sorted as well.
    ends = [block.end for block in blocks]
    out: list[MetadataBlock] = []
    for idx in range(bisect_right(ends, start), len(blocks)):
        block = blocks[idx]
        if block.start >= end:
            break
        out.append(block)
    return out


def decorate(
    blocks: Sequence[MetadataBlock],
    viewport: Sequence[int] | TextRange,
    *,
    orphan_delimiters: Sequence[DelimiterCandidate] = (),
) -> list[Span]:
    """Return the spans for every block intersecting ``viewport``.

    Only spans that themselves touch the viewport are returned. Orphan
    delimiters get a plain delimiter mark and nothing else.
    """
    lo, hi = _normalize_viewport(viewport)
    line_spans: list[Span] = []
    mark_spans: list[Span] = []

    for block in blocks_in_range(blocks, lo, hi):
        for span in _block_spans(block):
            if not span.range.intersects(lo, hi):
                continue
            if span.scope is SpanScope.LINE:
                line_spans.append(span)
            else:
                mark_spans.append(span)

    for orphan in orphan_delimiters:
        if orphan.range.intersects(lo, hi):
            mark_spans.append(Span(orphan.start, orphan.end, SpanKind.DELIMITER))

    line_spans.sort(key=_line_key)
    mark_spans.sort(key=_mark_key)
    return list(heapq.merge(line_spans, mark_spans, key=_merge_key))


__all__ = [
    "KIND_PRIORITY",
    "Span",
    "SpanKind",
    "SpanScope",
    "blocks_in_range",
    "decorate",
]
