"""PySide widgets for editing documents with metadata blocks."""

from .quillmark_editor import QuillmarkEditor
from .quillmark_highlighter import QuillmarkHighlighter
from .quillmark_theme import QuillmarkTheme

__all__ = ["QuillmarkEditor", "QuillmarkHighlighter", "QuillmarkTheme"]
