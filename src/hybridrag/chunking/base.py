"""Abstract base class for chunkers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from hybridrag.chunking.schemas import Chunk, ChunkMetadata


class BaseChunker(ABC):
    """Interface for document chunking strategies."""

    @abstractmethod
    def chunk(
        self,
        text: str,
        metadata: ChunkMetadata | None = None,
        page_number: int | None = None,
    ) -> list[Chunk]:
        """Split text into enriched chunks.

        Args:
            text: Full document text.
            metadata: Document-level metadata copied onto each chunk.
            page_number: Page carried over from extraction, if any.

        Returns:
            List of ``Chunk`` objects in document order. Empty input
            yields an empty list.
        """

    @classmethod
    def strategy_name(cls) -> str:
        """Return human-readable strategy name."""
        return cls.__name__
