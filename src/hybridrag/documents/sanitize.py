"""Text sanitation applied between extraction and chunking.

Two passes:
1. ``clean_document_text`` strips bytes that break storage and indexing
   (null bytes, control characters, lone surrogates) and normalises to NFC
   while keeping line structure, which the structural analyzer relies on.
2. ``sanitize_document_text`` redacts prompt-injection phrases so that
   retrieved chunks cannot steer the answering model.
"""

from __future__ import annotations

import bisect
import logging
import re
import unicodedata
from collections.abc import Sequence

logger = logging.getLogger(__name__)

REDACTION = "[REDACTED]"

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_SURROGATES_RE = re.compile(r"[\ud800-\udfff]")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_INLINE_SPACE_RE = re.compile(r"(?<=\S)[ \t]{2,}(?=\S)")
_EXCESS_NEWLINES_RE = re.compile(r"\n{3,}")

_INJECTION_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"ignore\s+(?:all\s+)?previous\s+instructions", re.IGNORECASE),
    re.compile(r"you\s+are\s+now\s+an?\b", re.IGNORECASE),
    re.compile(r"\bsystem\s*:", re.IGNORECASE),
    re.compile(r"</?system>", re.IGNORECASE),
    re.compile(r"\bassistant\s*:", re.IGNORECASE),
    re.compile(r"forget\s+(?:everything|your\b)", re.IGNORECASE),
    re.compile(r"new\s+instructions\s*:", re.IGNORECASE),
    re.compile(r"override\s+(?:your\s+)?(?:instructions|rules)", re.IGNORECASE),
]


def clean_document_text(text: str) -> str:
    """Remove unstorable characters and tidy whitespace without losing lines.

    Fenced code keeps its indentation: only runs of spaces *between* words
    are collapsed.
    """
    if not text:
        return ""
    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _CONTROL_CHARS_RE.sub("", cleaned)
    cleaned = _SURROGATES_RE.sub("", cleaned)
    cleaned = unicodedata.normalize("NFC", cleaned)
    cleaned = _TRAILING_SPACE_RE.sub("", cleaned)
    cleaned = _INLINE_SPACE_RE.sub(" ", cleaned)
    cleaned = _EXCESS_NEWLINES_RE.sub("\n\n", cleaned)
    return cleaned.strip()


def sanitize_document_text(text: str) -> str:
    """Redact prompt-injection phrases, leaving surrounding text intact."""
    if not text:
        return text
    redacted = text
    hits = 0
    for pattern in _INJECTION_PATTERNS:
        redacted, n = pattern.subn(REDACTION, redacted)
        hits += n
    if hits:
        logger.warning("Redacted %d prompt-injection phrase(s) from document text", hits)
    return redacted


def prepare_text(text: str) -> str:
    """Full sanitation pass used by the ingestion pipeline."""
    return sanitize_document_text(clean_document_text(text))


def prepare_pages(page_texts: Sequence[str]) -> tuple[str, list[tuple[int, int]]]:
    """Sanitise pages one at a time and join them with blank lines.

    Returns the joined text and a ``(start_offset, page_number)`` pair for
    every page that kept any text, so offsets into the joined text can be
    mapped back to 1-based page numbers.
    """
    parts: list[str] = []
    page_starts: list[tuple[int, int]] = []
    offset = 0
    for number, page in enumerate(page_texts, start=1):
        cleaned = prepare_text(page)
        if not cleaned:
            continue
        if parts:
            offset += 2
        page_starts.append((offset, number))
        parts.append(cleaned)
        offset += len(cleaned)
    return "\n\n".join(parts), page_starts


def page_at(page_starts: Sequence[tuple[int, int]], offset: int) -> int | None:
    """Page containing ``offset``, given ``prepare_pages`` start offsets."""
    i = bisect.bisect_right([start for start, _ in page_starts], offset) - 1
    return page_starts[max(i, 0)][1] if page_starts else None
