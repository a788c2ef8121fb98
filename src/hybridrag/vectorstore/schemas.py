"""Data models for vector store operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any

from hybridrag.chunking.schemas import ChunkMetadata, ChunkPosition, ChunkType


@dataclass
class VectorRecord:
    """A chunk with its embedding, ready for storage."""

    id: str
    text: str
    embedding: list[float]
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchResult:
    """A single hit from vector or keyword search."""

    id: str
    text: str
    score: float
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)


@dataclass(frozen=True)
class SearchScope:
    """Restricts a search to one tenant and optionally one document.

    Applied by the store before ranking, so ``top_k`` counts only
    in-scope chunks.
    """

    tenant_id: str | None = None
    document_name: str | None = None
    document_id: str | None = None

    def matches(self, meta: ChunkMetadata) -> bool:
        if self.tenant_id and meta.tenant_id != self.tenant_id:
            return False
        if self.document_name and meta.document_name != self.document_name:
            return False
        return not (self.document_id and meta.document_id != self.document_id)

    def to_dict(self) -> dict[str, Any]:
        """Flat field -> value mapping for payload-filtering backends."""
        d: dict[str, Any] = {}
        if self.tenant_id:
            d["tenant_id"] = self.tenant_id
        if self.document_name:
            d["document_name"] = self.document_name
        if self.document_id:
            d["document_id"] = self.document_id
        return d

    @property
    def is_empty(self) -> bool:
        return not self.to_dict()


# ---------------------------------------------------------------------------
# Metadata serialization shared by the backends
# ---------------------------------------------------------------------------


def metadata_to_dict(meta: ChunkMetadata) -> dict[str, Any]:
    d = asdict(meta)
    d["chunk_type"] = str(meta.chunk_type)
    d["position"] = str(meta.position)
    return d


def metadata_from_dict(data: dict[str, Any]) -> ChunkMetadata:
    known = {f.name for f in fields(ChunkMetadata)}
    values = {k: v for k, v in data.items() if k in known}
    if "chunk_type" in values:
        values["chunk_type"] = ChunkType(values["chunk_type"])
    if "position" in values:
        values["position"] = ChunkPosition(values["position"])
    values["headings"] = list(values.get("headings") or [])
    values["keywords"] = list(values.get("keywords") or [])
    return ChunkMetadata(**values)
