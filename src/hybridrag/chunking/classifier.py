"""Chunk classification and semantic-weight scoring.

Assigns each chunk a content type (narrative / technical / reference) from
indicator counts and a density score in [0, 1]. Both are pure heuristics
over the chunk text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from hybridrag.chunking.schemas import ChunkType

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Indicators: each one counts once when present in the chunk
# ---------------------------------------------------------------------------

_CODE_INDICATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bfunction\b"),
    re.compile(r"\bclass\b"),
    re.compile(r"\bconst\b"),
    re.compile(r"\blet\b"),
    re.compile(r"\bvar\b"),
    re.compile(r"\bimport\b"),
    re.compile(r"\bexport\b"),
    re.compile(r"```"),
    re.compile(r"\b[a-z]+(?:[A-Z][a-z0-9]+)+\b"),  # camelCase identifiers
)

_REFERENCE_INDICATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\|"),
    re.compile(r"---"),
    re.compile(r"###"),
    re.compile(r"^[ \t]*- ", re.MULTILINE),
    re.compile(r"^[ \t]*\* ", re.MULTILINE),
    re.compile(r"^[ \t]*1\.", re.MULTILINE),
    re.compile(r"^[ \t]*2\.", re.MULTILINE),
    re.compile(r"^[ \t]*3\.", re.MULTILINE),
)

TECHNICAL_THRESHOLD = 2
REFERENCE_THRESHOLD = 3

# ---------------------------------------------------------------------------
# Semantic weight
# ---------------------------------------------------------------------------

UNIQUE_RATIO_WEIGHT = 0.4
WORD_LENGTH_WEIGHT = 0.3
SENTENCE_LENGTH_WEIGHT = 0.3

_WORD_LENGTH_NORM = 10.0
_SENTENCE_LENGTH_NORM = 20.0

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


@dataclass(frozen=True)
class IndicatorScores:
    """Raw indicator counts behind a classification."""

    code: int
    reference: int


def score_indicators(content: str) -> IndicatorScores:
    code = sum(1 for pattern in _CODE_INDICATORS if pattern.search(content))
    reference = sum(1 for pattern in _REFERENCE_INDICATORS if pattern.search(content))
    return IndicatorScores(code=code, reference=reference)


def classify_chunk_type(
    content: str,
    technical_threshold: int = TECHNICAL_THRESHOLD,
    reference_threshold: int = REFERENCE_THRESHOLD,
) -> ChunkType:
    """Classify chunk content as narrative, technical, or reference.

    Code indicators are checked first: ``code > technical_threshold`` wins
    over any reference signal.

    Args:
        content: Chunk text.
        technical_threshold: Code-indicator count that must be exceeded.
        reference_threshold: Reference-indicator count that must be exceeded.

    Returns:
        The ``ChunkType``.
    """
    scores = score_indicators(content)
    if scores.code > technical_threshold:
        return ChunkType.TECHNICAL
    if scores.reference > reference_threshold:
        return ChunkType.REFERENCE
    return ChunkType.NARRATIVE


def semantic_weight(content: str) -> float:
    """Density score combining lexical diversity, word length and sentence length.

    ``0.4 * unique_ratio + 0.3 * min(1, avg_word_len / 10)
    + 0.3 * min(1, avg_sentence_len / 20)``, clamped to [0, 1].
    """
    words = content.split()
    if not words:
        return 0.0

    unique_ratio = len({w.lower() for w in words}) / len(words)
    avg_word_length = sum(len(w) for w in words) / len(words)
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(content) if s.strip()]
    avg_sentence_length = len(words) / max(len(sentences), 1)

    score = (
        unique_ratio * UNIQUE_RATIO_WEIGHT
        + min(1.0, avg_word_length / _WORD_LENGTH_NORM) * WORD_LENGTH_WEIGHT
        + min(1.0, avg_sentence_length / _SENTENCE_LENGTH_NORM) * SENTENCE_LENGTH_WEIGHT
    )
    return max(0.0, min(1.0, score))
