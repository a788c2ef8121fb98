"""Chunk metadata enrichment.

Derives everything a chunk carries beyond its text: content type,
semantic weight, document position, heading context, keywords and the
section label. Every function here is pure.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

from hybridrag.chunking.classifier import (
    REFERENCE_THRESHOLD,
    TECHNICAL_THRESHOLD,
    classify_chunk_type,
    semantic_weight,
)
from hybridrag.chunking.schemas import NO_SECTION, UNKNOWN_SECTION, ChunkPosition, ChunkType
from hybridrag.chunking.structure import DocumentStructure

logger = logging.getLogger(__name__)

INTRO_CUTOFF = 0.2
CONCLUSION_CUTOFF = 0.8

DEFAULT_KEYWORD_COUNT = 5

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "as", "is", "was", "are", "were", "be",
    "this", "that", "these", "those", "it", "its", "can", "will", "would",
})

_PUNCT_RE = re.compile(r"[^\w\s]")
_INLINE_HEADING_RE = re.compile(r"^#+\s+(.+)$", re.MULTILINE)

_SECTION_LABEL_MAX = 50
_SECTION_LINE_LIMIT = 100

# Minimum share of a chunk span an element kind must cover to label it.
_CONTENT_TYPE_SHARE = 0.5


@dataclass(frozen=True)
class ChunkEnrichment:
    """Derived metadata for a single chunk."""

    chunk_type: ChunkType
    semantic_weight: float
    position: ChunkPosition
    headings: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    document_section: str = UNKNOWN_SECTION
    content_type: str = "text"
    page_number: int | None = None


# ---------------------------------------------------------------------------
# Individual derivations
# ---------------------------------------------------------------------------


def determine_position(start_offset: int, document_length: int) -> ChunkPosition:
    """Bucket a chunk by its relative start offset in the document."""
    if document_length <= 0:
        return ChunkPosition.INTRO
    relative = start_offset / document_length
    if relative < INTRO_CUTOFF:
        return ChunkPosition.INTRO
    if relative > CONCLUSION_CUTOFF:
        return ChunkPosition.CONCLUSION
    return ChunkPosition.BODY


def position_from_index(chunk_index: int, total_chunks: int) -> ChunkPosition:
    """Fallback bucketing when the chunk offset is unknown."""
    if total_chunks <= 0:
        return ChunkPosition.INTRO
    relative = chunk_index / total_chunks
    if relative < INTRO_CUTOFF:
        return ChunkPosition.INTRO
    if relative > CONCLUSION_CUTOFF:
        return ChunkPosition.CONCLUSION
    return ChunkPosition.BODY


def relevant_headings(content: str, headings: Sequence[str] | None = None) -> list[str]:
    """Headings in scope for a chunk.

    With known document headings, keeps those whose text occurs in the
    chunk. Without them, falls back to Markdown headings inside the chunk.
    Returns ``["No Section"]`` when nothing matches.
    """
    if headings is None:
        found = [m.group(1).strip() for m in _INLINE_HEADING_RE.finditer(content)]
    else:
        found = []
        for heading in headings:
            if heading and heading in content and heading not in found:
                found.append(heading)
    return found or [NO_SECTION]


def extract_keywords(content: str, top_n: int = DEFAULT_KEYWORD_COUNT) -> list[str]:
    """Top-N terms by frequency; ties keep first-occurrence order."""
    if top_n <= 0:
        return []
    tokens = [
        token
        for token in _PUNCT_RE.sub(" ", content.lower()).split()
        if len(token) > 3 and token not in STOPWORDS and not token.isdigit()
    ]
    return [word for word, _ in Counter(tokens).most_common(top_n)]


def detect_document_section(content: str, headings: Sequence[str] | None = None) -> str:
    """Section label: first heading, else a short first line, else a sentinel."""
    in_scope = headings if headings is not None else relevant_headings(content)
    if in_scope and in_scope[0] != NO_SECTION:
        return in_scope[0]

    first_line = content.split("\n", 1)[0].strip()
    if first_line and len(first_line) < _SECTION_LINE_LIMIT:
        suffix = "..." if len(first_line) > _SECTION_LABEL_MAX else ""
        return first_line[:_SECTION_LABEL_MAX] + suffix
    return UNKNOWN_SECTION


def detect_content_type(
    content: str,
    start: int,
    end: int,
    structure: DocumentStructure | None,
) -> str:
    """Structural label used for intent boosting.

    ``table``, ``code_block`` or ``list`` when that element kind covers at
    least half of the chunk span, ``header`` for heading-only chunks,
    otherwise ``text``.
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if lines and all(line.lstrip().startswith("#") for line in lines):
        return "header"
    if structure is None or end <= start:
        return "text"

    span = end - start
    coverage = {
        "table": _covered(structure.tables, start, end),
        "code_block": _covered(structure.code_blocks, start, end),
        "list": _covered(structure.lists, start, end),
    }
    kind, covered = max(coverage.items(), key=lambda item: item[1])
    if covered and covered / span >= _CONTENT_TYPE_SHARE:
        return kind
    return "text"


def _covered(elements: Sequence, start: int, end: int) -> int:
    return sum(max(0, min(e.end, end) - max(e.start, start)) for e in elements)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def enrich_chunk(
    content: str,
    chunk_index: int,
    full_text: str,
    total_chunks: int,
    *,
    start_offset: int | None = None,
    end_offset: int | None = None,
    structure: DocumentStructure | None = None,
    page_number: int | None = None,
    keyword_count: int = DEFAULT_KEYWORD_COUNT,
    technical_threshold: int = TECHNICAL_THRESHOLD,
    reference_threshold: int = REFERENCE_THRESHOLD,
) -> ChunkEnrichment:
    """Derive all metadata for one chunk.

    Args:
        content: The chunk text.
        chunk_index: 0-based position of the chunk in its document.
        full_text: The whole document text.
        total_chunks: Number of chunks emitted for the document.
        start_offset: Character offset of the chunk in ``full_text``. When
            omitted the position is derived from the chunk index.
        end_offset: End offset matching ``start_offset``.
        structure: Structural analysis of ``full_text`` (heading context
            and content type).
        page_number: Page carried over from extraction.
        keyword_count: How many keywords to keep.
        technical_threshold: Classifier code threshold.
        reference_threshold: Classifier reference threshold.

    Returns:
        A ``ChunkEnrichment``.
    """
    if start_offset is not None:
        position = determine_position(start_offset, len(full_text))
    else:
        position = position_from_index(chunk_index, total_chunks)

    known_headings = structure.heading_texts() if structure is not None else None
    headings = relevant_headings(content, known_headings)

    start = start_offset if start_offset is not None else 0
    end = end_offset if end_offset is not None else start + len(content)

    return ChunkEnrichment(
        chunk_type=classify_chunk_type(content, technical_threshold, reference_threshold),
        semantic_weight=semantic_weight(content),
        position=position,
        headings=headings,
        keywords=extract_keywords(content, keyword_count),
        document_section=detect_document_section(content, headings),
        content_type=detect_content_type(content, start, end, structure),
        page_number=page_number,
    )


def enrich_chunks_batch(
    chunks: Sequence[str],
    full_text: str,
    page_number: int | None = None,
) -> list[ChunkEnrichment]:
    """Enrich raw chunk strings that carry no offsets (index-based position)."""
    total = len(chunks)
    return [
        enrich_chunk(content, i, full_text, total, page_number=page_number)
        for i, content in enumerate(chunks)
    ]
