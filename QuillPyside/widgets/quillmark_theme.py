"""Character formats for metadata span kinds."""

from __future__ import annotations

from typing import Any, Mapping

from PySide6.QtGui import QBrush, QColor, QFont, QTextCharFormat

from quillmark.services.metadata_decorations import SpanKind
from quillmark.settings_models import default_engine_settings

SPAN_STYLE_KEYS: dict[SpanKind, str] = {
    SpanKind.BLOCK_BACKGROUND: "block",
    SpanKind.DELIMITER: "delimiter",
    SpanKind.SCOPE_KEYWORD: "scope_keyword",
    SpanKind.QUILL_KEYWORD: "quill_keyword",
    SpanKind.IDENTIFIER: "identifier",
    SpanKind.YAML_KEY: "yaml_key",
    SpanKind.YAML_VALUE_STRING: "yaml_string",
    SpanKind.YAML_VALUE_NUMBER: "yaml_number",
    SpanKind.YAML_VALUE_BOOLEAN: "yaml_bool",
    SpanKind.YAML_COMMENT: "yaml_comment",
}


def _char_format(style: Mapping[str, Any]) -> QTextCharFormat:
    fmt = QTextCharFormat()
    color = str(style.get("color") or "").strip()
    if color and QColor(color).isValid():
        fmt.setForeground(QColor(color))
    background = str(style.get("background") or "").strip()
    if background and QColor(background).isValid():
        fmt.setBackground(QBrush(QColor(background)))
    if bool(style.get("bold", False)):
        fmt.setFontWeight(QFont.Bold)
    if bool(style.get("italic", False)):
        fmt.setFontItalic(True)
    return fmt


class QuillmarkTheme:
    def __init__(self, palette: Mapping[str, Mapping[str, Any]], *, mode: str = "dark"):
        self.mode = str(mode or "dark")
        self._formats: dict[SpanKind, QTextCharFormat] = {}
        for kind, key in SPAN_STYLE_KEYS.items():
            style = palette.get(key) if isinstance(palette, Mapping) else None
            self._formats[kind] = _char_format(style if isinstance(style, Mapping) else {})
        # Marks inside a block keep the block background underneath them.
        background = self._formats[SpanKind.BLOCK_BACKGROUND]
        self._layered: dict[SpanKind, QTextCharFormat] = {}
        for kind, fmt in self._formats.items():
            layered = QTextCharFormat(background)
            layered.merge(fmt)
            self._layered[kind] = layered

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any] | None = None) -> "QuillmarkTheme":
        defaults = default_engine_settings()["highlight"]
        highlight = settings.get("highlight") if isinstance(settings, Mapping) else None
        if not isinstance(highlight, Mapping):
            highlight = defaults
        mode = str(highlight.get("theme") or "dark").strip().lower()
        palettes = highlight.get("palettes")
        if not isinstance(palettes, Mapping) or mode not in palettes:
            palettes = defaults["palettes"]
        if mode not in palettes:
            mode = "dark"
        return cls(palettes[mode], mode=mode)

    def format_for(self, kind: SpanKind) -> QTextCharFormat:
        return self._formats.get(kind, QTextCharFormat())

    def format_on_background(self, kind: SpanKind) -> QTextCharFormat:
        return self._layered.get(kind, self.format_for(kind))

    def block_background(self) -> QColor:
        return self.format_for(SpanKind.BLOCK_BACKGROUND).background().color()


__all__ = ["SPAN_STYLE_KEYS", "QuillmarkTheme"]
