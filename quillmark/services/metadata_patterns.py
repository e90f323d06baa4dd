"""Metadata block detection for extended Markdown documents.

A metadata block is a pair of bare-dash delimiter lines (``---``) enclosing at
least one ``SCOPE:``/``QUILL:`` keyword line or YAML-like ``key: value`` line.
Because the same dash line is also a Markdown horizontal rule, every candidate
is classified by one left-to-right scan:

- seeking an opener: a candidate with blank lines on both sides and no
  qualifying content before the next candidate is a horizontal rule; any other
  candidate becomes the opener.
- seeking a closer: the next candidate closes the block when the body holds
  qualifying content; otherwise the opener is demoted to a horizontal rule and
  the closer is re-examined as an opener.
- an opener without a closer is an orphan and ends the scan.

A missing neighbour (first/last line of the document) never counts as blank.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from itertools import accumulate

from quillmark.services.document import Document, Line, TextRange

logger = logging.getLogger(__name__)

DELIMITER_LINE_PATTERN = re.compile(r"^-{3,}\s*$")
KEYWORD_LINE_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<keyword>SCOPE|QUILL):(?P<rest>.*)$")
YAML_ENTRY_PATTERN = re.compile(r"^(?P<indent>\s*)(?P<key>[A-Za-z0-9_-]+):(?P<rest>.*)$")
COMMENT_LINE_PATTERN = re.compile(r"^(?P<indent>\s*)#")
COMMENT_START_PATTERN = re.compile(r"(?:^|(?<=\s))#")
NUMBER_LITERAL_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


class ValueType(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"


class KeywordKind(Enum):
    SCOPE = "SCOPE"
    QUILL = "QUILL"


@dataclass(slots=True, frozen=True)
class DelimiterCandidate:
    line: int
    start: int
    end: int

    @property
    def range(self) -> TextRange:
        return TextRange(self.start, self.end)


@dataclass(slots=True, frozen=True)
class Keyword:
    kind: KeywordKind
    line: int
    identifier: str
    keyword_range: TextRange
    identifier_range: TextRange


@dataclass(slots=True, frozen=True)
class YamlEntry:
    line: int
    key: str
    value: str
    value_type: ValueType
    key_range: TextRange
    value_range: TextRange


@dataclass(slots=True, frozen=True)
class YamlComment:
    line: int
    range: TextRange


@dataclass(slots=True, frozen=True)
class MetadataBlock:
    opening: DelimiterCandidate
    closing: DelimiterCandidate
    body_lines: tuple[TextRange, ...]
    keywords: tuple[Keyword, ...] = ()
    yaml_entries: tuple[YamlEntry, ...] = ()
    comments: tuple[YamlComment, ...] = ()

    @property
    def open_line(self) -> int:
        return self.opening.line

    @property
    def close_line(self) -> int:
        return self.closing.line

    @property
    def start(self) -> int:
        return self.opening.start

    @property
    def end(self) -> int:
        return self.closing.end

    @property
    def body_line_range(self) -> tuple[int, int]:
        return self.opening.line + 1, self.closing.line - 1

    def contains_line(self, line: int) -> bool:
        return self.opening.line <= int(line) <= self.closing.line

    def scope_names(self) -> list[str]:
        return [kw.identifier for kw in self.keywords if kw.kind is KeywordKind.SCOPE and kw.identifier]


@dataclass(slots=True, frozen=True)
class DetectionResult:
    blocks: tuple[MetadataBlock, ...] = ()
    orphan_delimiters: tuple[DelimiterCandidate, ...] = ()
    horizontal_rules: tuple[DelimiterCandidate, ...] = ()


def is_delimiter_line(text: str) -> bool:
    return DELIMITER_LINE_PATTERN.match(str(text or "")) is not None


def infer_value_type(value: str) -> ValueType:
    text = str(value or "").strip()
    if text.lower() in {"true", "false"}:
        return ValueType.BOOLEAN
    if NUMBER_LITERAL_PATTERN.match(text):
        return ValueType.NUMBER
    return ValueType.STRING


def is_qualifying_line(text: str) -> bool:
    """True for lines that make a delimiter pair a metadata block."""
    raw = str(text or "")
    return KEYWORD_LINE_PATTERN.match(raw) is not None or YAML_ENTRY_PATTERN.match(raw) is not None


def _comment_index(rest: str) -> int | None:
    lead = len(rest) - len(rest.lstrip())
    search_from = 0
    if rest[lead:lead + 1] in ("'", '"'):
        close = rest.find(rest[lead], lead + 1)
        search_from = close + 1 if close >= 0 else len(rest)
    m = COMMENT_START_PATTERN.search(rest, search_from)
    return m.start() if m else None


def _trimmed_range(base: int, text: str) -> tuple[TextRange, str]:
    lead = len(text) - len(text.lstrip())
    value = text.strip()
    start = base + lead
    return TextRange(start, start + len(value)), value


def parse_keyword(line: Line) -> tuple[Keyword, YamlComment | None] | None:
    m = KEYWORD_LINE_PATTERN.match(line.text)
    if not m:
        return None
    kw_start = line.start + m.start("keyword")
    rest = m.group("rest")
    rest_start = line.start + m.start("rest")
    comment = None
    cut = _comment_index(rest)
    if cut is not None:
        comment = YamlComment(line=line.number, range=TextRange(rest_start + cut, line.end))
        rest = rest[:cut]
    ident_range, identifier = _trimmed_range(rest_start, rest)
    keyword = Keyword(
        kind=KeywordKind(m.group("keyword")),
        line=line.number,
        identifier=identifier,
        keyword_range=TextRange(kw_start, kw_start + len(m.group("keyword"))),
        identifier_range=ident_range,
    )
    return keyword, comment


def parse_yaml_entry(line: Line) -> tuple[YamlEntry, YamlComment | None] | None:
    if KEYWORD_LINE_PATTERN.match(line.text):
        return None
    m = YAML_ENTRY_PATTERN.match(line.text)
    if not m:
        return None
    key_start = line.start + m.start("key")
    key_range = TextRange(key_start, key_start + len(m.group("key")))
    rest = m.group("rest")
    rest_start = line.start + m.start("rest")
    comment = None
    cut = _comment_index(rest)
    if cut is not None:
        comment = YamlComment(line=line.number, range=TextRange(rest_start + cut, line.end))
        rest = rest[:cut]
    value_range, value = _trimmed_range(rest_start, rest)
    if not value:
        value_range = TextRange(key_range.end, key_range.end)
    entry = YamlEntry(
        line=line.number,
        key=m.group("key"),
        value=value,
        value_type=infer_value_type(value),
        key_range=key_range,
        value_range=value_range,
    )
    return entry, comment


def parse_comment_line(line: Line) -> YamlComment | None:
    m = COMMENT_LINE_PATTERN.match(line.text)
    if not m:
        return None
    return YamlComment(line=line.number, range=TextRange(line.start + m.end("indent"), line.end))


class _DelimiterScanner:
    """Single pass over the delimiter candidates of one document."""

    STATE_SEEKING_OPENER = 0
    STATE_SEEKING_CLOSER = 1

    def __init__(self, document: Document):
        self.document = document
        self.lines: list[Line] = list(document.lines())
        self.candidates: list[DelimiterCandidate] = [
            DelimiterCandidate(line=line.number, start=line.start, end=line.end)
            for line in self.lines
            if is_delimiter_line(line.text)
        ]
        # _qualifying[n] = qualifying lines among 1..n, so any body range is O(1).
        self._qualifying = [0, *accumulate(1 if is_qualifying_line(line.text) else 0 for line in self.lines)]

    def _has_qualifying(self, first_line: int, last_line: int) -> bool:
        first = max(1, first_line)
        last = min(len(self.lines), last_line)
        if last < first:
            return False
        return self._qualifying[last] - self._qualifying[first - 1] > 0

    def _is_blank(self, number: int) -> bool:
        if not 1 <= number <= len(self.lines):
            return False
        return self.lines[number - 1].is_blank()

    def _is_horizontal_rule(self, candidate: DelimiterCandidate, following: DelimiterCandidate | None) -> bool:
        if not (self._is_blank(candidate.line - 1) and self._is_blank(candidate.line + 1)):
            return False
        stop = following.line - 1 if following is not None else len(self.lines)
        return not self._has_qualifying(candidate.line + 1, stop)

    def _build_block(self, opening: DelimiterCandidate, closing: DelimiterCandidate) -> MetadataBlock:
        keywords: list[Keyword] = []
        entries: list[YamlEntry] = []
        comments: list[YamlComment] = []
        body: list[TextRange] = []
        for line in self.lines[opening.line:closing.line - 1]:
            body.append(line.range)
            parsed_kw = parse_keyword(line)
            if parsed_kw is not None:
                keyword, comment = parsed_kw
                keywords.append(keyword)
                if comment is not None:
                    comments.append(comment)
                continue
            parsed_entry = parse_yaml_entry(line)
            if parsed_entry is not None:
                entry, comment = parsed_entry
                entries.append(entry)
                if comment is not None:
                    comments.append(comment)
                continue
            comment = parse_comment_line(line)
            if comment is not None:
                comments.append(comment)
        return MetadataBlock(
            opening=opening,
            closing=closing,
            body_lines=tuple(body),
            keywords=tuple(keywords),
            yaml_entries=tuple(entries),
            comments=tuple(comments),
        )

    def run(self) -> DetectionResult:
        blocks: list[MetadataBlock] = []
        rules: list[DelimiterCandidate] = []
        orphans: list[DelimiterCandidate] = []

        state = self.STATE_SEEKING_OPENER
        opener: DelimiterCandidate | None = None
        idx = 0
        while idx < len(self.candidates):
            candidate = self.candidates[idx]
            if state == self.STATE_SEEKING_OPENER:
                following = self.candidates[idx + 1] if idx + 1 < len(self.candidates) else None
                if self._is_horizontal_rule(candidate, following):
                    rules.append(candidate)
                else:
                    opener = candidate
                    state = self.STATE_SEEKING_CLOSER
                idx += 1
                continue

            assert opener is not None
            if self._has_qualifying(opener.line + 1, candidate.line - 1):
                blocks.append(self._build_block(opener, candidate))
                idx += 1
            else:
                # Empty pair: the opener was a rule; retry this candidate as an opener.
                rules.append(opener)
            opener = None
            state = self.STATE_SEEKING_OPENER

        if state == self.STATE_SEEKING_CLOSER and opener is not None:
            orphans.append(opener)

        return DetectionResult(blocks=tuple(blocks), orphan_delimiters=tuple(orphans), horizontal_rules=tuple(rules))


def detect(document: Document | str) -> DetectionResult:
    """Find every metadata block, orphan delimiter and horizontal rule."""
    if not isinstance(document, Document):
        document = Document(str(document or ""))
    if not document.text:
        return DetectionResult()
    result = _DelimiterScanner(document).run()
    logger.debug(
        "Detected %d metadata block(s), %d orphan delimiter(s), %d rule(s) in revision %s",
        len(result.blocks),
        len(result.orphan_delimiters),
        len(result.horizontal_rules),
        document.revision,
    )
    return result


__all__ = [
    "DelimiterCandidate",
    "DetectionResult",
    "Keyword",
    "KeywordKind",
    "MetadataBlock",
    "ValueType",
    "YamlComment",
    "YamlEntry",
    "detect",
    "infer_value_type",
    "is_delimiter_line",
    "is_qualifying_line",
    "parse_comment_line",
    "parse_keyword",
    "parse_yaml_entry",
]
