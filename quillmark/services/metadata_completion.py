"""Identifier completion after ``SCOPE:`` and ``QUILL:`` keywords."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from quillmark.services.document import Document
from quillmark.services.metadata_patterns import KeywordKind, MetadataBlock

_KEYWORD_PREFIX_PATTERN = re.compile(r"^\s*(?P<keyword>SCOPE|QUILL):\s*(?P<prefix>\S*)$")


@dataclass(slots=True, frozen=True)
class CatalogEntry:
    name: str
    description: str = ""
    file: str = ""
    production: bool = True


@dataclass(slots=True, frozen=True)
class Candidate:
    label: str
    kind: KeywordKind
    detail: str = ""

    @property
    def insert_text(self) -> str:
        return self.label


@dataclass(slots=True, frozen=True)
class CompletionContext:
    keyword: KeywordKind
    line: int
    prefix: str
    replace_from: int
    replace_to: int


def completion_context(cursor: int, document: Document) -> CompletionContext | None:
    """Keyword context for ``cursor``, judged on its line up to the cursor."""
    pos = document.clamp(cursor)
    line = document.line_at(pos)
    left = line.text[: pos - line.start]
    m = _KEYWORD_PREFIX_PATTERN.match(left)
    if not m:
        return None
    prefix = m.group("prefix")
    return CompletionContext(
        keyword=KeywordKind(m.group("keyword")),
        line=line.number,
        prefix=prefix,
        replace_from=pos - len(prefix),
        replace_to=pos,
    )


def _sort_key(name: str) -> tuple[str, str]:
    return name.lower(), name


def scope_candidates(blocks: Iterable[MetadataBlock], *, exclude_line: int | None = None) -> list[Candidate]:
    names: set[str] = set()
    for block in blocks:
        for kw in block.keywords:
            if kw.kind is not KeywordKind.SCOPE or not kw.identifier:
                continue
            if exclude_line is not None and kw.line == exclude_line:
                continue
            names.add(kw.identifier)
    return [Candidate(label=name, kind=KeywordKind.SCOPE) for name in sorted(names, key=_sort_key)]


def quill_candidates(catalog: Iterable[CatalogEntry]) -> list[Candidate]:
    seen: dict[str, CatalogEntry] = {}
    for entry in catalog:
        name = str(entry.name or "").strip()
        if name and name not in seen:
            seen[name] = entry
    return [
        Candidate(label=name, kind=KeywordKind.QUILL, detail=str(seen[name].description or ""))
        for name in sorted(seen, key=_sort_key)
    ]


def complete(
    cursor: int,
    document: Document,
    blocks: Sequence[MetadataBlock],
    catalog: Sequence[CatalogEntry] = (),
) -> list[Candidate]:
    """Candidates for the identifier being typed at ``cursor``.

    After ``SCOPE:`` the scope names used elsewhere in the document are
    offered; after ``QUILL:`` the catalog entries. Anywhere else nothing is.
    Candidates are not filtered by the typed prefix; hosts narrow them.
    """
    ctx = completion_context(cursor, document)
    if ctx is None:
        return []
    if ctx.keyword is KeywordKind.SCOPE:
        return scope_candidates(blocks, exclude_line=ctx.line)
    return quill_candidates(catalog)


__all__ = [
    "Candidate",
    "CatalogEntry",
    "CompletionContext",
    "complete",
    "completion_context",
    "quill_candidates",
    "scope_candidates",
]
