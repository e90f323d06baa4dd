"""Plain-text editor hosting the metadata highlighter, folds and completion."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from PySide6.QtCore import QPoint, QRect, QSize, Qt, QTimer
from PySide6.QtGui import (
    QColor,
    QFont,
    QKeySequence,
    QPainter,
    QPolygon,
    QShortcut,
    QTextCursor,
)
from PySide6.QtWidgets import QListWidget, QListWidgetItem, QPlainTextEdit, QWidget

from quillmark.services.document import Document
from quillmark.services.metadata_completion import (
    Candidate,
    CatalogEntry,
    CompletionContext,
    completion_context,
)
from quillmark.services.metadata_folding import (
    DEFAULT_COLLAPSED_SUMMARY,
    block_at_line,
    fold_ranges,
    toggle_all_folds,
)
from quillmark.services.metadata_patterns import DetectionResult
from quillmark.services.syntax_engine import MetadataSyntaxEngine
from quillmark.settings_models import default_engine_settings
from quillmark.settings_store import dot_get, merge_defaults

from .quillmark_highlighter import QuillmarkHighlighter
from .quillmark_theme import QuillmarkTheme

_COMPLETION_ITEM_ROLE = int(Qt.UserRole) + 1


class _FoldGutter(QWidget):
    def __init__(self, editor: "QuillmarkEditor"):
        super().__init__(editor)
        self._editor = editor

    def sizeHint(self):
        return QSize(self._editor.gutter_width(), 0)

    def paintEvent(self, event):
        self._editor.gutter_paint_event(event)

    def mousePressEvent(self, event):
        self._editor.gutter_mouse_press_event(event)


class QuillmarkEditor(QPlainTextEdit):
    def __init__(
        self,
        parent: QWidget | None = None,
        *,
        settings: Mapping[str, Any] | None = None,
        catalog: Sequence[CatalogEntry] = (),
    ):
        super().__init__(parent)
        self._settings: dict[str, Any] = merge_defaults(dict(settings or {}), default_engine_settings())
        self.engine = MetadataSyntaxEngine.from_settings(self._settings, catalog=catalog)

        self._highlighter: QuillmarkHighlighter | None = None
        if bool(self._cfg("highlight.enabled", True)):
            self._highlighter = QuillmarkHighlighter(
                self.document(),
                engine=self.engine,
                theme=QuillmarkTheme.from_settings(self._settings),
                debounce_ms=int(self._cfg("highlight.rehighlight_debounce_ms", 120)),
            )

        font_family = str(self._cfg("font_family", "") or "")
        font = QFont(font_family) if font_family else QFont("monospace")
        font.setStyleHint(QFont.Monospace)
        font.setPointSize(max(6, int(self._cfg("font_size", 11))))
        self.setFont(font)

        self._folding_enabled = bool(self._cfg("folding.enabled", True))
        self._fold_gutter_width = max(8, int(self._cfg("folding.gutter_width", 14)))
        self._collapsed_summary = str(self._cfg("folding.collapsed_summary", DEFAULT_COLLAPSED_SUMMARY))
        self._fold_ranges: dict[int, int] = {}
        self._folded_starts: set[int] = set()
        self.gutter = _FoldGutter(self)

        self._fold_refresh_timer = QTimer(self)
        self._fold_refresh_timer.setSingleShot(True)
        self._fold_refresh_timer.setInterval(max(0, int(self._cfg("folding.refresh_debounce_ms", 140))))
        self._fold_refresh_timer.timeout.connect(self._refresh_fold_ranges)
        self.textChanged.connect(self._schedule_fold_refresh)

        self.blockCountChanged.connect(self._update_gutter_width)
        self.updateRequest.connect(self._update_gutter_area)
        self._update_gutter_width(0)

        self._completion_enabled = bool(self._cfg("completion.enabled", True))
        self._completion_auto = bool(self._cfg("completion.auto_trigger", True))
        self._completion_max_items = max(1, int(self._cfg("completion.max_items", 200)))
        self._completion_max_visible_rows = 10
        self._completion_items: list[Candidate] = []
        self._completion_popup = QListWidget(self)
        self._completion_popup.hide()
        self._completion_popup.setFocusPolicy(Qt.NoFocus)
        self._completion_popup.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self._completion_popup.setUniformItemSizes(True)
        self._completion_popup.setSelectionMode(QListWidget.SingleSelection)
        self._completion_popup.itemClicked.connect(self._on_completion_item_clicked)

        self._shortcuts: list[QShortcut] = []
        self._install_shortcuts()
        self._schedule_fold_refresh(immediate=True)

    # --------- settings ---------
    def _cfg(self, key: str, default: Any = None) -> Any:
        return dot_get(self._settings, key, default)

    def _install_shortcuts(self) -> None:
        actions = {
            "action.fold_block": self.fold_block_at_cursor,
            "action.unfold_block": self.unfold_block_at_cursor,
            "action.toggle_all_metadata_folds": self.toggle_all_metadata_folds,
            "action.trigger_completion": self.show_completions,
        }
        bindings = self._cfg("keybindings", {}) or {}
        for action_id, handler in actions.items():
            for chord in bindings.get(action_id, []) or []:
                sequence = QKeySequence(str(chord or ""))
                if sequence.isEmpty():
                    continue
                shortcut = QShortcut(sequence, self)
                shortcut.setContext(Qt.WidgetShortcut)
                shortcut.activated.connect(handler)
                self._shortcuts.append(shortcut)

    def set_catalog(self, catalog: Sequence[CatalogEntry]) -> None:
        self.engine.set_catalog(catalog)

    def snapshot(self) -> tuple[Document, DetectionResult]:
        if self._highlighter is not None:
            return self._highlighter.detection()
        document = Document(self.toPlainText(), revision=int(self.document().revision()))
        return document, self.engine.detect(document)

    # --------- folding ---------
    def _schedule_fold_refresh(self, immediate: bool = False):
        if not self._folding_enabled:
            return
        if immediate:
            self._fold_refresh_timer.stop()
            self._refresh_fold_ranges()
            return
        self._fold_refresh_timer.start()

    def _refresh_fold_ranges(self):
        _, result = self.snapshot()
        ranges: dict[int, int] = {}
        for fold in fold_ranges(result.blocks):
            start_line, end_line = fold.as_line_region()
            if end_line > start_line:
                ranges[start_line - 1] = end_line - 1
        self._fold_ranges = ranges
        self._folded_starts = {line for line in self._folded_starts if line in self._fold_ranges}
        self._apply_fold_visibility()

    def _set_all_blocks_visible(self):
        block = self.document().firstBlock()
        while block.isValid():
            block.setVisible(True)
            block.setLineCount(max(1, block.layout().lineCount()))
            block = block.next()

    def _apply_fold_visibility(self):
        self._set_all_blocks_visible()
        for start_block in sorted(self._folded_starts):
            end_block = self._fold_ranges.get(start_block)
            if end_block is None or end_block <= start_block:
                continue
            block = self.document().findBlockByNumber(start_block).next()
            while block.isValid() and block.blockNumber() <= end_block:
                block.setVisible(False)
                block.setLineCount(0)
                block = block.next()
        self._refresh_fold_layout()

    def _refresh_fold_layout(self):
        doc = self.document()
        doc.markContentsDirty(0, max(0, doc.characterCount()))
        self.viewport().update()
        self.gutter.update()

    def folded_lines(self) -> set[int]:
        return {start + 1 for start in self._folded_starts}

    def _set_fold(self, block_number: int, folded: bool) -> bool:
        if block_number not in self._fold_ranges:
            return False
        if folded:
            self._folded_starts.add(block_number)
        else:
            self._folded_starts.discard(block_number)
        self._apply_fold_visibility()
        return True

    def _toggle_fold_at_block(self, block_number: int) -> bool:
        return self._set_fold(block_number, block_number not in self._folded_starts)

    def _metadata_block_number_at_cursor(self) -> int | None:
        _, result = self.snapshot()
        owner = block_at_line(self.textCursor().blockNumber() + 1, result.blocks)
        return None if owner is None else owner.open_line - 1

    def fold_block_at_cursor(self) -> bool:
        block_number = self._metadata_block_number_at_cursor()
        if block_number is None:
            return False
        folded = self._set_fold(block_number, True)
        if folded:
            cursor = QTextCursor(self.document().findBlockByNumber(block_number))
            self.setTextCursor(cursor)
        return folded

    def unfold_block_at_cursor(self) -> bool:
        block_number = self._metadata_block_number_at_cursor()
        if block_number is None:
            return False
        return self._set_fold(block_number, False)

    def toggle_all_metadata_folds(self) -> None:
        self._refresh_fold_ranges()
        _, result = self.snapshot()
        lines = toggle_all_folds(result.blocks, self.folded_lines())
        self._folded_starts = {line - 1 for line in lines if (line - 1) in self._fold_ranges}
        self._apply_fold_visibility()

    # --------- gutter ---------
    def gutter_width(self) -> int:
        return self._fold_gutter_width if self._folding_enabled else 0

    def _update_gutter_width(self, _):
        self.setViewportMargins(self.gutter_width(), 0, 0, 0)

    def _update_gutter_area(self, rect, dy):
        if dy:
            self.gutter.scroll(0, dy)
        else:
            self.gutter.update(0, rect.y(), self.gutter.width(), rect.height())

    def resizeEvent(self, event):
        super().resizeEvent(event)
        cr = self.contentsRect()
        self.gutter.setGeometry(QRect(cr.left(), cr.top(), self.gutter_width(), cr.height()))

    def _fold_marker_rect(self, top: int, line_height: int) -> QRect:
        marker_size = max(8, min(11, int(line_height) - 3))
        x = 2
        y = int(top + max(0, (line_height - marker_size) // 2))
        return QRect(x, y, marker_size, marker_size)

    def gutter_paint_event(self, event):
        painter = QPainter(self.gutter)
        painter.fillRect(event.rect(), self.palette().base().color().darker(108))
        marker_color = QColor(self.palette().text().color())
        marker_color.setAlpha(200)
        line_height = self.fontMetrics().height()

        block = self.firstVisibleBlock()
        block_number = block.blockNumber()
        top = self.blockBoundingGeometry(block).translated(self.contentOffset()).top()
        bottom = top + self.blockBoundingRect(block).height()
        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and bottom >= event.rect().top() and block_number in self._fold_ranges:
                marker = self._fold_marker_rect(int(top), line_height)
                painter.setPen(Qt.NoPen)
                painter.setBrush(marker_color)
                if block_number in self._folded_starts:
                    pts = [
                        QPoint(marker.left(), marker.top()),
                        QPoint(marker.left(), marker.bottom()),
                        QPoint(marker.right(), marker.center().y()),
                    ]
                else:
                    pts = [
                        QPoint(marker.left(), marker.top()),
                        QPoint(marker.right(), marker.top()),
                        QPoint(marker.center().x(), marker.bottom()),
                    ]
                painter.drawPolygon(QPolygon(pts))
            block = block.next()
            top = bottom
            bottom = top + self.blockBoundingRect(block).height()
            block_number += 1

    def gutter_mouse_press_event(self, event):
        if event.button() != Qt.LeftButton:
            event.ignore()
            return
        pos = event.position().toPoint() if hasattr(event, "position") else event.pos()
        block = self.cursorForPosition(QPoint(0, pos.y())).block()
        if block.isValid() and self._toggle_fold_at_block(block.blockNumber()):
            event.accept()
            return
        event.ignore()

    def paintEvent(self, event):
        super().paintEvent(event)
        if not self._folded_starts:
            return
        painter = QPainter(self.viewport())
        summary_color = QColor(self.palette().text().color())
        summary_color.setAlpha(140)
        painter.setPen(summary_color)
        fm = self.fontMetrics()
        offset = self.contentOffset()
        for start_block in sorted(self._folded_starts):
            block = self.document().findBlockByNumber(start_block)
            if not block.isValid() or not block.isVisible():
                continue
            geometry = self.blockBoundingGeometry(block).translated(offset)
            if geometry.bottom() < event.rect().top() or geometry.top() > event.rect().bottom():
                continue
            x = int(geometry.left() + self.document().documentMargin() + fm.horizontalAdvance(block.text() + " "))
            painter.drawText(QPoint(x, int(geometry.top() + fm.ascent())), self._collapsed_summary)

    # --------- completion ---------
    def is_completion_popup_visible(self) -> bool:
        return self._completion_popup.isVisible()

    def hide_completion_popup(self):
        self._completion_popup.hide()
        self._completion_items = []
        self._completion_popup.clear()

    def current_candidates(self) -> list[Candidate]:
        document, _ = self.snapshot()
        return self.engine.complete(document, self.textCursor().position())

    def _current_completion_context(self) -> CompletionContext | None:
        document, _ = self.snapshot()
        return completion_context(self.textCursor().position(), document)

    def _completion_matches_prefix(self, candidate: Candidate, prefix: str) -> bool:
        if not prefix:
            return True
        low = candidate.label.lower()
        p = prefix.lower()
        return low.startswith(p) or p in low

    def _rebuild_completion_popup(self):
        ctx = self._current_completion_context()
        prefix = ctx.prefix if ctx is not None else ""
        filtered = [item for item in self._completion_items if self._completion_matches_prefix(item, prefix)]
        self._completion_popup.clear()
        for candidate in filtered[: self._completion_max_items]:
            row_item = QListWidgetItem(candidate.label)
            row_item.setData(_COMPLETION_ITEM_ROLE, candidate.insert_text)
            if candidate.detail:
                row_item.setToolTip(candidate.detail)
            self._completion_popup.addItem(row_item)

        if self._completion_popup.count() <= 0:
            self.hide_completion_popup()
            return
        if self._completion_popup.currentRow() < 0:
            self._completion_popup.setCurrentRow(0)

    def _position_completion_popup(self):
        cursor_rect = self.cursorRect()
        x = cursor_rect.left() + self.gutter_width()
        y = cursor_rect.bottom() + 2
        row_h = max(20, self._completion_popup.sizeHintForRow(0), self.fontMetrics().height() + 6)
        visible_rows = min(self._completion_popup.count(), self._completion_max_visible_rows)
        h = max(28, visible_rows * row_h + 6)
        w = max(220, min(520, int(self.viewport().width() * 0.5)))

        # keep popup inside editor viewport
        if y + h > self.viewport().height():
            y = max(0, cursor_rect.top() - h - 2)
        if x + w > self.viewport().width():
            x = max(0, self.viewport().width() - w - 2)

        self._completion_popup.setGeometry(x, y, w, h)

    def show_completions(self) -> bool:
        if not self._completion_enabled:
            return False
        candidates = self.current_candidates()
        if not candidates:
            self.hide_completion_popup()
            return False
        self._completion_items = candidates
        self._rebuild_completion_popup()
        if self._completion_popup.count() <= 0:
            return False
        self._position_completion_popup()
        self._completion_popup.show()
        self._completion_popup.raise_()
        return True

    def refresh_completion_popup_filter(self):
        if not self.is_completion_popup_visible():
            return
        if self._current_completion_context() is None:
            self.hide_completion_popup()
            return
        row_before = self._completion_popup.currentRow()
        self._rebuild_completion_popup()
        if self._completion_popup.count() > 0 and row_before >= 0:
            self._completion_popup.setCurrentRow(min(row_before, self._completion_popup.count() - 1))
        if self.is_completion_popup_visible():
            self._position_completion_popup()

    def move_completion_selection(self, delta: int):
        if not self.is_completion_popup_visible():
            return
        count = self._completion_popup.count()
        if count <= 0:
            return
        row = self._completion_popup.currentRow()
        if row < 0:
            row = 0
        row = (row + delta) % count
        self._completion_popup.setCurrentRow(row)

    def accept_selected_completion(self) -> bool:
        if not self.is_completion_popup_visible():
            return False
        item = self._completion_popup.currentItem()
        if item is None:
            return False
        text = str(item.data(_COMPLETION_ITEM_ROLE) or "")
        if not text:
            return False
        self.insert_completion(text)
        return True

    def _on_completion_item_clicked(self, _item: QListWidgetItem):
        self.accept_selected_completion()
        self.setFocus()

    def insert_completion(self, text: str) -> None:
        """Replace the identifier typed after the keyword with ``text``."""
        ctx = self._current_completion_context()
        cursor = self.textCursor()
        if ctx is not None:
            cursor.setPosition(ctx.replace_from)
            cursor.setPosition(ctx.replace_to, QTextCursor.KeepAnchor)
        cursor.insertText(str(text or ""))
        self.setTextCursor(cursor)
        self.hide_completion_popup()

    def keyPressEvent(self, event):
        key = event.key()
        mods = event.modifiers()

        if self.is_completion_popup_visible():
            if key in (Qt.Key_Tab, Qt.Key_Return, Qt.Key_Enter):
                if self.accept_selected_completion():
                    event.accept()
                    return
            elif key == Qt.Key_Escape:
                self.hide_completion_popup()
                event.accept()
                return
            elif key in (Qt.Key_Up, Qt.Key_Down):
                self.move_completion_selection(-1 if key == Qt.Key_Up else 1)
                event.accept()
                return

        super().keyPressEvent(event)

        if not self._completion_enabled:
            return
        if self.is_completion_popup_visible():
            self.refresh_completion_popup_filter()
        elif (
            self._completion_auto
            and event.text()
            and not (mods & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier))
        ):
            self.show_completions()


__all__ = ["QuillmarkEditor"]
