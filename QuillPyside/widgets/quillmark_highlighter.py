"""QSyntaxHighlighter that paints metadata spans block by block."""

from __future__ import annotations

from typing import Sequence

from PySide6.QtCore import QTimer
from PySide6.QtGui import QSyntaxHighlighter, QTextDocument

from quillmark.services.document import Document
from quillmark.services.metadata_decorations import Span, SpanKind, decorate
from quillmark.services.metadata_folding import block_at_line
from quillmark.services.metadata_patterns import DetectionResult
from quillmark.services.syntax_engine import MetadataSyntaxEngine

from .quillmark_theme import QuillmarkTheme

StructureSignature = tuple[tuple[int, int], ...]


def block_format_ranges(spans: Sequence[Span], block_start: int, block_length: int) -> list[tuple[int, int, SpanKind]]:
    """Clip spans to one text block as ``(relative_start, length, kind)``.

    Order is preserved, so line-scope formats are applied before the mark
    formats that refine them.
    """
    block_end = block_start + max(0, int(block_length))
    out: list[tuple[int, int, SpanKind]] = []
    for span in spans:
        start = max(span.start, block_start)
        end = min(span.end, block_end)
        if end <= start:
            continue
        out.append((start - block_start, end - start, span.kind))
    return out


def structure_signature(result: DetectionResult) -> StructureSignature:
    pairs = [(block.open_line, block.close_line) for block in result.blocks]
    pairs.extend((orphan.line, 0) for orphan in result.orphan_delimiters)
    return tuple(pairs)


class QuillmarkHighlighter(QSyntaxHighlighter):
    """Applies ``decorate()`` output using each text block as the viewport.

    One detection is kept per ``QTextDocument.revision()`` and length. Qt
    only re-runs ``highlightBlock`` for edited blocks, so when an edit changes
    which lines belong to metadata blocks a debounced ``rehighlight()`` follows.
    """

    STATE_PLAIN = 0

    def __init__(
        self,
        parent: QTextDocument | None = None,
        *,
        engine: MetadataSyntaxEngine | None = None,
        theme: QuillmarkTheme | None = None,
        debounce_ms: int = 120,
    ):
        super().__init__(parent)
        self.engine = engine or MetadataSyntaxEngine()
        self.theme = theme or QuillmarkTheme.from_settings()
        self._snapshot_key: tuple[int, int] | None = None
        self._snapshot = Document("")
        self._result = DetectionResult()
        self._painted_signature: StructureSignature = ()

        self._structure_timer = QTimer(self)
        self._structure_timer.setSingleShot(True)
        self._structure_timer.setInterval(max(0, int(debounce_ms)))
        self._structure_timer.timeout.connect(self._check_structure)
        self._watched_document: QTextDocument | None = None
        self._watch(parent)

    def _watch(self, document: QTextDocument | None) -> None:
        if self._watched_document is not None:
            try:
                self._watched_document.contentsChange.disconnect(self._on_contents_change)
            except (RuntimeError, TypeError):
                pass
        self._watched_document = document
        if document is not None:
            document.contentsChange.connect(self._on_contents_change)

    def setDocument(self, doc: QTextDocument | None) -> None:
        self._watch(doc)
        self._snapshot_key = None
        super().setDocument(doc)

    def set_theme(self, theme: QuillmarkTheme) -> None:
        self.theme = theme
        self.rehighlight()

    def detection(self) -> tuple[Document, DetectionResult]:
        doc = self.document()
        if doc is None:
            return Document(""), DetectionResult()
        revision = int(doc.revision())
        # setPlainText() may leave the revision unchanged, the length rarely.
        key = (revision, int(doc.characterCount()))
        if key != self._snapshot_key:
            self._snapshot = Document(doc.toPlainText(), revision=revision)
            self._result = self.engine.detect(self._snapshot)
            self._snapshot_key = key
        return self._snapshot, self._result

    def _on_contents_change(self, _position: int, _removed: int, _added: int) -> None:
        self._structure_timer.start()

    def _check_structure(self) -> None:
        _, result = self.detection()
        signature = structure_signature(result)
        if signature != self._painted_signature:
            self.rehighlight()

    def rehighlight(self) -> None:
        _, result = self.detection()
        self._painted_signature = structure_signature(result)
        super().rehighlight()

    def highlightBlock(self, text: str):
        block = self.currentBlock()
        _, result = self.detection()
        start = int(block.position())
        spans = decorate(result.blocks, (start, start + len(text)), orphan_delimiters=result.orphan_delimiters)
        backgrounds: list[tuple[int, int]] = []
        for rel_start, length, kind in block_format_ranges(spans, start, len(text)):
            if kind is SpanKind.BLOCK_BACKGROUND:
                backgrounds.append((rel_start, rel_start + length))
                fmt = self.theme.format_for(kind)
            elif any(lo <= rel_start and rel_start + length <= hi for lo, hi in backgrounds):
                fmt = self.theme.format_on_background(kind)
            else:
                fmt = self.theme.format_for(kind)
            self.setFormat(rel_start, length, fmt)

        # A state change makes Qt continue into the next block.
        owner = block_at_line(block.blockNumber() + 1, result.blocks)
        if owner is None:
            self.setCurrentBlockState(self.STATE_PLAIN)
        else:
            self.setCurrentBlockState(owner.open_line)


__all__ = ["QuillmarkHighlighter", "block_format_ranges", "structure_signature"]
