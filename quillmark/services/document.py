"""Immutable text snapshot with a 1-indexed line table."""

from __future__ import annotations

import hashlib
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterator


@dataclass(slots=True, frozen=True)
class TextRange:
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.end <= self.start

    def intersects(self, start: int, end: int) -> bool:
        """Half-open overlap with ``[start, end)``.

        A zero-width range counts when it sits inside the window, so an empty
        line still picks up its block background.
        """
        if self.is_empty():
            return start <= self.start < end
        return self.start < end and self.end > start


@dataclass(slots=True, frozen=True)
class Line:
    number: int
    start: int
    end: int
    text: str

    @property
    def range(self) -> TextRange:
        return TextRange(self.start, self.end)

    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass(slots=True, frozen=True)
class Document:
    """One analysis pass worth of text.

    Lines are split on ``\\n`` only; a trailing newline yields a final empty
    line, matching how editor widgets count blocks.
    """

    text: str
    revision: int = 0
    line_starts: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        text = str(self.text or "")
        object.__setattr__(self, "text", text)
        starts = [0]
        index = text.find("\n")
        while index >= 0:
            starts.append(index + 1)
            index = text.find("\n", index + 1)
        object.__setattr__(self, "line_starts", tuple(starts))

    @property
    def length(self) -> int:
        return len(self.text)

    @property
    def line_count(self) -> int:
        return len(self.line_starts)

    def digest(self) -> str:
        return hashlib.sha1(self.text.encode("utf-8", errors="replace")).hexdigest()

    def clamp(self, offset: int) -> int:
        try:
            value = int(offset)
        except (TypeError, ValueError):
            value = 0
        return max(0, min(value, len(self.text)))

    def line(self, number: int) -> Line:
        """Return line ``number`` (1-indexed); out-of-range numbers are clamped."""
        idx = max(1, min(int(number), self.line_count)) - 1
        start = self.line_starts[idx]
        if idx + 1 < self.line_count:
            end = self.line_starts[idx + 1] - 1
        else:
            end = len(self.text)
        return Line(number=idx + 1, start=start, end=end, text=self.text[start:end])

    def line_at(self, offset: int) -> Line:
        pos = self.clamp(offset)
        return self.line(bisect_right(self.line_starts, pos))

    def has_line(self, number: int) -> bool:
        return 1 <= int(number) <= self.line_count

    def lines(self) -> Iterator[Line]:
        for number in range(1, self.line_count + 1):
            yield self.line(number)


__all__ = ["Document", "Line", "TextRange"]
