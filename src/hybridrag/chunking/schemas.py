"""Data models for chunks."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

NO_SECTION = "No Section"
UNKNOWN_SECTION = "Unknown Section"


class ChunkType(StrEnum):
    """Content classification assigned by the enricher."""

    NARRATIVE = "narrative"
    TECHNICAL = "technical"
    REFERENCE = "reference"


class ChunkPosition(StrEnum):
    """Coarse location of a chunk inside its document."""

    INTRO = "intro"
    BODY = "body"
    CONCLUSION = "conclusion"


@dataclass
class ChunkingConfig:
    """Sizing rules for the boundary chunker (all sizes in characters)."""

    max_chunk_size: int = 1500
    min_chunk_size: int = 200
    overlap_size: int = 100
    respect_boundaries: bool = True
    adaptive_sizing: bool = True

    def __post_init__(self) -> None:
        if self.max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        if self.min_chunk_size < 0 or self.overlap_size < 0:
            raise ValueError("min_chunk_size and overlap_size must be non-negative")
        if self.min_chunk_size > self.max_chunk_size:
            raise ValueError("min_chunk_size must not exceed max_chunk_size")

    @property
    def overlap_words(self) -> int:
        """Number of trailing words carried into the next chunk."""
        return self.overlap_size // 5


@dataclass(frozen=True)
class ChunkMetadata:
    """Metadata carried by each chunk and stored alongside embeddings."""

    document_id: str | None = None
    document_name: str | None = None
    tenant_id: str | None = None
    chunk_type: ChunkType = ChunkType.NARRATIVE
    content_type: str = "text"
    semantic_weight: float = 0.0
    position: ChunkPosition = ChunkPosition.BODY
    headings: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)
    document_section: str = UNKNOWN_SECTION
    page_number: int | None = None
    boundary_respected: bool = True
    original_size: int = 0


@dataclass
class Chunk:
    """A single retrievable piece of a document."""

    text: str
    metadata: ChunkMetadata
    chunk_index: int = 0
    total_chunks: int = 0
    start: int = 0
    end: int = 0

    @property
    def char_count(self) -> int:
        return len(self.text)
