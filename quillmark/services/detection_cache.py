"""Read-only memoization of detection results per document revision."""

from __future__ import annotations

import logging
from collections import OrderedDict

from quillmark.services.document import Document
from quillmark.services.metadata_patterns import DetectionResult, detect

logger = logging.getLogger(__name__)


class DetectionCache:
    """LRU of ``revision -> (digest, result)``.

    A hit is only served when the stored digest equals the digest of the text
    being asked about, so a reused or reset revision counter never yields a
    stale result.
    """

    def __init__(self, max_entries: int = 8) -> None:
        self.max_entries = max(1, int(max_entries))
        self._entries: OrderedDict[int, tuple[str, DetectionResult]] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, document: Document) -> DetectionResult | None:
        item = self._entries.get(document.revision)
        if item is None:
            return None
        digest, result = item
        if digest != document.digest():
            logger.debug("Discarding cached detection for revision %s: text changed", document.revision)
            del self._entries[document.revision]
            return None
        self._entries.move_to_end(document.revision)
        return result

    def put(self, document: Document, result: DetectionResult) -> None:
        self._entries[document.revision] = (document.digest(), result)
        self._entries.move_to_end(document.revision)
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def detect(self, document: Document) -> DetectionResult:
        cached = self.get(document)
        if cached is not None:
            self.hits += 1
            return cached
        self.misses += 1
        result = detect(document)
        self.put(document, result)
        return result

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["DetectionCache"]
