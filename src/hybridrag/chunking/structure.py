"""Structural analysis of raw document text.

Detects Markdown-style headings, blank-line separated paragraphs, fenced
code blocks, bulleted/numbered lists and pipe-delimited tables. Every
detector is a plain regex scan, so malformed input simply produces empty
lists; nothing here raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_HEADING_RE = re.compile(r"^(#{1,6})[ \t]+(.+)$", re.MULTILINE)

_PARAGRAPH_SPLIT_RE = re.compile(r"\n[ \t]*\n\s*")

_CODE_BLOCK_RE = re.compile(r"```.*?```", re.DOTALL)

_LIST_MARKER = r"[ \t]*(?:[-*+]|\d+[.)])[ \t]+"
_LIST_RE = re.compile(
    rf"^{_LIST_MARKER}.+(?:\n{_LIST_MARKER}.+)*",
    re.MULTILINE,
)
_LIST_MARKER_RE = re.compile(rf"^{_LIST_MARKER}")

_TABLE_RE = re.compile(
    r"^[ \t]*\|.*\|[ \t]*(?:\n[ \t]*\|.*\|[ \t]*)*",
    re.MULTILINE,
)


# ---------------------------------------------------------------------------
# Elements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    offset: int

    @property
    def start(self) -> int:
        return self.offset

    @property
    def end(self) -> int:
        # Heading line length is not tracked; the marker start is the boundary.
        return self.offset


@dataclass(frozen=True)
class Paragraph:
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class CodeBlock:
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class ListBlock:
    items: tuple[str, ...]
    start: int
    end: int


@dataclass(frozen=True)
class Table:
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class DocumentStructure:
    """All structural elements detected in one document."""

    headings: list[Heading] = field(default_factory=list)
    paragraphs: list[Paragraph] = field(default_factory=list)
    code_blocks: list[CodeBlock] = field(default_factory=list)
    lists: list[ListBlock] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)

    def protected_spans(self) -> list[tuple[int, int]]:
        """Spans that must never be cut (code blocks and tables)."""
        spans = [(b.start, b.end) for b in self.code_blocks]
        spans.extend((t.start, t.end) for t in self.tables)
        return sorted(spans)

    def offsets(self) -> set[int]:
        """Every element start/end offset."""
        points: set[int] = {h.offset for h in self.headings}
        for group in (self.paragraphs, self.code_blocks, self.lists, self.tables):
            for element in group:
                points.add(element.start)
                points.add(element.end)
        return points

    def heading_texts(self) -> list[str]:
        return [h.text for h in self.headings]

    @property
    def is_empty(self) -> bool:
        return not (
            self.headings or self.paragraphs or self.code_blocks or self.lists or self.tables
        )


# ---------------------------------------------------------------------------
# Detectors
# ---------------------------------------------------------------------------


def detect_headings(text: str) -> list[Heading]:
    return [
        Heading(level=len(m.group(1)), text=m.group(2).strip(), offset=m.start())
        for m in _HEADING_RE.finditer(text)
        if m.group(2).strip()
    ]


def detect_paragraphs(text: str) -> list[Paragraph]:
    """Blank-line separated paragraphs with exact (trimmed) offsets."""
    paragraphs: list[Paragraph] = []
    cursor = 0
    separators = [(m.start(), m.end()) for m in _PARAGRAPH_SPLIT_RE.finditer(text)]
    separators.append((len(text), len(text)))

    for sep_start, sep_end in separators:
        part = text[cursor:sep_start]
        stripped = part.strip()
        if stripped:
            start = cursor + (len(part) - len(part.lstrip()))
            paragraphs.append(Paragraph(text=stripped, start=start, end=start + len(stripped)))
        cursor = sep_end

    return paragraphs


def detect_code_blocks(text: str) -> list[CodeBlock]:
    return [
        CodeBlock(text=m.group(0), start=m.start(), end=m.end())
        for m in _CODE_BLOCK_RE.finditer(text)
    ]


def detect_lists(text: str) -> list[ListBlock]:
    lists: list[ListBlock] = []
    for m in _LIST_RE.finditer(text):
        items = tuple(
            item
            for item in (_LIST_MARKER_RE.sub("", line).strip() for line in m.group(0).split("\n"))
            if item
        )
        lists.append(ListBlock(items=items, start=m.start(), end=m.end()))
    return lists


def detect_tables(text: str) -> list[Table]:
    return [
        Table(text=m.group(0).strip(), start=m.start(), end=m.end())
        for m in _TABLE_RE.finditer(text)
    ]


def analyze_structure(text: str) -> DocumentStructure:
    """Scan ``text`` for all structural elements.

    Headings, lists and tables that start inside a fenced code block are
    dropped (e.g. ``# comment`` lines in a Python snippet).

    Args:
        text: Raw document text.

    Returns:
        A ``DocumentStructure``; every list is empty for empty input.
    """
    if not text:
        return DocumentStructure()

    code_blocks = detect_code_blocks(text)
    code_spans = [(b.start, b.end) for b in code_blocks]

    def outside_code(start: int) -> bool:
        return not any(s <= start < e for s, e in code_spans)

    return DocumentStructure(
        headings=[h for h in detect_headings(text) if outside_code(h.offset)],
        paragraphs=detect_paragraphs(text),
        code_blocks=code_blocks,
        lists=[lb for lb in detect_lists(text) if outside_code(lb.start)],
        tables=[t for t in detect_tables(text) if outside_code(t.start)],
    )


__all__ = [
    "CodeBlock",
    "DocumentStructure",
    "Heading",
    "ListBlock",
    "Paragraph",
    "Table",
    "analyze_structure",
    "detect_code_blocks",
    "detect_headings",
    "detect_lists",
    "detect_paragraphs",
    "detect_tables",
]
