"""Data models for retrieval operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from hybridrag.chunking.schemas import ChunkMetadata


class SearchType(StrEnum):
    """Which search side(s) produced a candidate."""

    SEMANTIC = "semantic"
    KEYWORD = "keyword"
    HYBRID = "hybrid"


@dataclass
class RetrievalConfig:
    """Configuration for one hybrid retrieval.

    Attributes:
        top_k: Final number of chunks handed to the caller.
        similarity_threshold: Cosine floor for the semantic side.
        candidate_multiplier: Each search side fetches ``top_k * multiplier``.
        tenant_id: Restrict to one tenant's chunks.
        document_name: Restrict to one document (pre-filter).
        intent_rerank: Apply intent boosting before truncation.
    """

    top_k: int = 5
    similarity_threshold: float = 0.05
    candidate_multiplier: int = 2
    tenant_id: str | None = None
    document_name: str | None = None
    intent_rerank: bool = True

    @property
    def match_count(self) -> int:
        return self.top_k * self.candidate_multiplier

    @classmethod
    def from_settings(cls, settings, **overrides) -> RetrievalConfig:
        r = settings.retrieval
        values = {
            "top_k": r.top_k,
            "similarity_threshold": r.similarity_threshold,
            "candidate_multiplier": r.candidate_multiplier,
            "intent_rerank": r.intent_rerank,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class RetrievedChunk:
    """A candidate chunk with its per-side scores.

    ``boosted_score``/``boost_factor`` are filled in by the intent reranker.
    """

    id: str
    text: str
    metadata: ChunkMetadata = field(default_factory=ChunkMetadata)
    semantic_score: float | None = None
    keyword_score: float | None = None
    search_type: SearchType = SearchType.SEMANTIC
    boosted_score: float | None = None
    boost_factor: float | None = None

    @property
    def score(self) -> float:
        """Base similarity: semantic score when present, else keyword score."""
        if self.semantic_score is not None:
            return self.semantic_score
        return self.keyword_score if self.keyword_score is not None else 0.0

    @property
    def final_score(self) -> float:
        return self.boosted_score if self.boosted_score is not None else self.score


@dataclass
class HybridSearchResult:
    """Result of one hybrid retrieval."""

    query: str
    expanded_query: str
    chunks: list[RetrievedChunk] = field(default_factory=list)
    semantic_count: int = 0
    keyword_count: int = 0
    intent: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        """True when no chunk survived merging and ranking."""
        return not self.chunks

    @property
    def total_candidates(self) -> int:
        return self.semantic_count + self.keyword_count


class ExpansionSource(StrEnum):
    """Which tier produced a query expansion."""

    LLM = "llm"
    DICTIONARY = "dictionary"
    NONE = "none"
    ERROR = "error"


@dataclass(frozen=True)
class ExpansionResult:
    """Outcome of ``QueryExpander.expand``; ``expanded_query`` is never empty."""

    original_query: str
    expanded_query: str
    source: ExpansionSource
    cached: bool = False

    @property
    def expansion_applied(self) -> bool:
        return self.expanded_query != self.original_query
