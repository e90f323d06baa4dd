"""The four metadata-syntax calls over one shared detection cache."""

from __future__ import annotations

from typing import Sequence

from quillmark.services.detection_cache import DetectionCache
from quillmark.services.document import Document, TextRange
from quillmark.services.metadata_completion import Candidate, CatalogEntry, complete
from quillmark.services.metadata_decorations import Span, decorate
from quillmark.services.metadata_folding import FoldRange, fold_range
from quillmark.services.metadata_patterns import DetectionResult


class MetadataSyntaxEngine:
    """Stateless apart from the memoization layer; every call is idempotent."""

    def __init__(self, *, cache_size: int = 8, catalog: Sequence[CatalogEntry] = ()) -> None:
        self.cache = DetectionCache(cache_size)
        self.catalog: list[CatalogEntry] = list(catalog)

    @classmethod
    def from_settings(cls, settings: dict, catalog: Sequence[CatalogEntry] = ()) -> "MetadataSyntaxEngine":
        cache_cfg = settings.get("cache") if isinstance(settings, dict) else None
        size = 8
        if isinstance(cache_cfg, dict):
            try:
                size = int(cache_cfg.get("max_entries", size))
            except (TypeError, ValueError):
                size = 8
        return cls(cache_size=size, catalog=catalog)

    def set_catalog(self, catalog: Sequence[CatalogEntry]) -> None:
        self.catalog = list(catalog)

    def detect(self, document: Document) -> DetectionResult:
        return self.cache.detect(document)

    def decorate(self, document: Document, viewport: Sequence[int] | TextRange) -> list[Span]:
        if isinstance(viewport, TextRange):
            lo, hi = viewport.start, viewport.end
        else:
            lo, hi = viewport[0], viewport[1]
        result = self.detect(document)
        return decorate(
            result.blocks,
            (document.clamp(lo), document.clamp(hi)),
            orphan_delimiters=result.orphan_delimiters,
        )

    def fold_range(self, document: Document, line: int) -> FoldRange | None:
        return fold_range(line, self.detect(document).blocks)

    def complete(
        self,
        document: Document,
        cursor: int,
        catalog: Sequence[CatalogEntry] | None = None,
    ) -> list[Candidate]:
        entries = self.catalog if catalog is None else catalog
        return complete(cursor, document, self.detect(document).blocks, entries)


__all__ = ["MetadataSyntaxEngine"]
