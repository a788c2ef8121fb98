"""Content-aware document chunking and chunk enrichment."""

from hybridrag.chunking.base import BaseChunker
from hybridrag.chunking.boundary_chunker import BoundaryChunker, compute_boundaries
from hybridrag.chunking.schemas import (
    Chunk,
    ChunkingConfig,
    ChunkMetadata,
    ChunkPosition,
    ChunkType,
)
from hybridrag.chunking.structure import DocumentStructure, analyze_structure

__all__ = [
    "BaseChunker",
    "BoundaryChunker",
    "Chunk",
    "ChunkMetadata",
    "ChunkPosition",
    "ChunkType",
    "ChunkingConfig",
    "DocumentStructure",
    "analyze_structure",
    "compute_boundaries",
]
