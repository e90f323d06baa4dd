"""Pure metadata-syntax services: detection, decoration, folding, completion."""

from quillmark.services.document import Document, Line, TextRange
from quillmark.services.metadata_completion import (
    Candidate,
    CatalogEntry,
    CompletionContext,
    complete,
    completion_context,
)
from quillmark.services.metadata_decorations import Span, SpanKind, SpanScope, decorate
from quillmark.services.metadata_folding import FoldRange, fold_range, toggle_all_folds
from quillmark.services.metadata_patterns import (
    DelimiterCandidate,
    DetectionResult,
    Keyword,
    KeywordKind,
    MetadataBlock,
    ValueType,
    YamlComment,
    YamlEntry,
    detect,
)
from quillmark.services.syntax_engine import MetadataSyntaxEngine

__all__ = [
    "Candidate",
    "CatalogEntry",
    "CompletionContext",
    "DelimiterCandidate",
    "DetectionResult",
    "Document",
    "FoldRange",
    "Keyword",
    "KeywordKind",
    "Line",
    "MetadataBlock",
    "MetadataSyntaxEngine",
    "Span",
    "SpanKind",
    "SpanScope",
    "TextRange",
    "ValueType",
    "YamlComment",
    "YamlEntry",
    "complete",
    "completion_context",
    "decorate",
    "detect",
    "fold_range",
    "toggle_all_folds",
]
