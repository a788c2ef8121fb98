"""Content-aware chunker that cuts only at structural boundaries.

Boundaries are the start/end offsets of every structural element found by
``analyze_structure`` plus the document start and end. Segments between
consecutive boundaries are packed greedily into chunks of at most
``max_chunk_size`` characters; a chunk is flushed only once it reached
``min_chunk_size``, and the next chunk is seeded with the trailing words of
the previous one.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass

from hybridrag.chunking.base import BaseChunker
from hybridrag.chunking.classifier import REFERENCE_THRESHOLD, TECHNICAL_THRESHOLD
from hybridrag.chunking.enricher import DEFAULT_KEYWORD_COUNT, enrich_chunk
from hybridrag.chunking.schemas import Chunk, ChunkingConfig, ChunkMetadata
from hybridrag.chunking.structure import DocumentStructure, analyze_structure

logger = logging.getLogger(__name__)

_WORD_RE = re.compile(r"\S+")


@dataclass(frozen=True)
class ChunkSpan:
    """A raw chunk before enrichment.

    ``start``/``end`` cover the document text the chunk adds; the
    ``overlap`` prefix repeated from the previous chunk is not included.
    """

    text: str
    start: int
    end: int
    overlap: str = ""
    boundary_respected: bool = True


@dataclass(frozen=True)
class _Segment:
    text: str
    start: int
    end: int
    forced: bool = False


def compute_boundaries(text: str, structure: DocumentStructure) -> list[int]:
    """Sorted, de-duplicated cut offsets for ``text``.

    Offsets strictly inside a code block or table are discarded so that no
    chunk boundary can split one.
    """
    points = {0, len(text)} | structure.offsets()
    protected = structure.protected_spans()
    return sorted(
        p for p in points
        if 0 <= p <= len(text) and not any(start < p < end for start, end in protected)
    )


class BoundaryChunker(BaseChunker):
    """Split documents at semantic boundaries with adaptive sizing."""

    def __init__(
        self,
        config: ChunkingConfig | None = None,
        keyword_count: int = DEFAULT_KEYWORD_COUNT,
        technical_threshold: int = TECHNICAL_THRESHOLD,
        reference_threshold: int = REFERENCE_THRESHOLD,
    ):
        self.config = config or ChunkingConfig()
        self.keyword_count = keyword_count
        self.technical_threshold = technical_threshold
        self.reference_threshold = reference_threshold

    @classmethod
    def from_settings(cls, settings) -> BoundaryChunker:
        """Build from a ``Settings`` object (``chunking`` + ``classifier``)."""
        c = settings.chunking
        return cls(
            config=ChunkingConfig(
                max_chunk_size=c.max_chunk_size,
                min_chunk_size=c.min_chunk_size,
                overlap_size=c.overlap_size,
                respect_boundaries=c.respect_boundaries,
                adaptive_sizing=c.adaptive_sizing,
            ),
            keyword_count=settings.classifier.keyword_count,
            technical_threshold=settings.classifier.technical_threshold,
            reference_threshold=settings.classifier.reference_threshold,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def chunk(
        self,
        text: str,
        metadata: ChunkMetadata | None = None,
        page_number: int | None = None,
    ) -> list[Chunk]:
        if not text or not text.strip():
            return []

        structure = analyze_structure(text)
        spans = self.split(text, structure)
        base = metadata or ChunkMetadata()
        page = page_number if page_number is not None else base.page_number
        total = len(spans)

        chunks: list[Chunk] = []
        for i, span in enumerate(spans):
            info = enrich_chunk(
                span.text,
                i,
                text,
                total,
                start_offset=span.start,
                end_offset=span.end,
                structure=structure,
                page_number=page,
                keyword_count=self.keyword_count,
                technical_threshold=self.technical_threshold,
                reference_threshold=self.reference_threshold,
            )
            meta = dataclasses.replace(
                base,
                chunk_type=info.chunk_type,
                content_type=info.content_type,
                semantic_weight=info.semantic_weight,
                position=info.position,
                headings=info.headings,
                keywords=info.keywords,
                document_section=info.document_section,
                page_number=info.page_number,
                boundary_respected=span.boundary_respected,
                original_size=len(span.text),
            )
            chunks.append(Chunk(
                text=span.text,
                metadata=meta,
                chunk_index=i,
                total_chunks=total,
                start=span.start,
                end=span.end,
            ))

        logger.debug(
            "BoundaryChunker produced %d chunks from %d chars (%d headings, %d code blocks, %d tables)",
            total,
            len(text),
            len(structure.headings),
            len(structure.code_blocks),
            len(structure.tables),
        )
        return chunks

    def chunk_text(self, text: str) -> list[str]:
        """Raw chunk strings without enrichment."""
        if not text or not text.strip():
            return []
        return [span.text for span in self.split(text, analyze_structure(text))]

    def split(self, text: str, structure: DocumentStructure) -> list[ChunkSpan]:
        """Pack boundary segments into chunk spans."""
        cfg = self.config
        segments = self._segments(text, compute_boundaries(text, structure))
        if not cfg.respect_boundaries:
            segments = [piece for seg in segments for piece in self._force_split(seg)]

        spans: list[ChunkSpan] = []
        buffer = ""
        carry = ""
        overlap = ""
        chunk_start: int | None = None
        chunk_end = 0
        forced = False

        for seg in segments:
            if (
                chunk_start is not None
                and len(buffer) + len(seg.text) > cfg.max_chunk_size
                and self._can_flush(buffer)
            ):
                flushed = buffer.strip()
                spans.append(ChunkSpan(flushed, chunk_start, chunk_end, overlap, not forced))
                carry = self._overlap_tail(flushed)
                buffer = ""
                chunk_start = None
                forced = False

            if chunk_start is None:
                chunk_start = seg.start
                overlap = self._fit_overlap(carry, len(seg.text))
                buffer = f"{overlap} " if overlap else ""
            buffer += seg.text + " "
            chunk_end = seg.end
            forced = forced or seg.forced

        if chunk_start is not None and buffer.strip():
            spans.append(ChunkSpan(buffer.strip(), chunk_start, chunk_end, overlap, not forced))

        return spans

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _can_flush(self, buffer: str) -> bool:
        if not self.config.adaptive_sizing:
            return bool(buffer.strip())
        return len(buffer) >= self.config.min_chunk_size

    def _overlap_tail(self, chunk_text: str) -> str:
        n = self.config.overlap_words
        if n <= 0:
            return ""
        return " ".join(chunk_text.split()[-n:])

    def _fit_overlap(self, overlap: str, segment_len: int) -> str:
        """Drop leading overlap words until overlap + segment fits in one chunk."""
        words = overlap.split()
        while words and len(" ".join(words)) + 1 + segment_len > self.config.max_chunk_size:
            words.pop(0)
        return " ".join(words)

    @staticmethod
    def _segments(text: str, boundaries: list[int]) -> list[_Segment]:
        segments: list[_Segment] = []
        for left, right in zip(boundaries, boundaries[1:]):
            raw = text[left:right]
            stripped = raw.strip()
            if not stripped:
                continue
            start = left + (len(raw) - len(raw.lstrip()))
            segments.append(_Segment(stripped, start, start + len(stripped)))
        return segments

    def _force_split(self, seg: _Segment) -> list[_Segment]:
        """Break an oversized segment at whitespace into max-size windows."""
        limit = self.config.max_chunk_size
        if len(seg.text) <= limit:
            return [seg]

        pieces: list[_Segment] = []
        window_start: int | None = None
        window_end = 0
        for match in _WORD_RE.finditer(seg.text):
            if window_start is not None and match.end() - window_start > limit:
                pieces.append(self._window(seg, window_start, window_end))
                window_start = None
            if window_start is None:
                window_start = match.start()
            window_end = match.end()
        if window_start is not None:
            pieces.append(self._window(seg, window_start, window_end))
        return pieces

    @staticmethod
    def _window(seg: _Segment, start: int, end: int) -> _Segment:
        return _Segment(seg.text[start:end], seg.start + start, seg.start + end, forced=True)
