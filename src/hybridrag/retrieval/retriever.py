"""Hybrid retriever: semantic and keyword search in parallel, merged by chunk id."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor

from hybridrag.embeddings.base import EmbeddingProvider
from hybridrag.retrieval.intent import detect_query_intent
from hybridrag.retrieval.reranker import IntentReranker
from hybridrag.retrieval.schemas import (
    HybridSearchResult,
    RetrievalConfig,
    RetrievedChunk,
    SearchType,
)
from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.schemas import SearchResult, SearchScope

logger = logging.getLogger(__name__)


def merge_results(
    semantic: Sequence[SearchResult],
    keyword: Sequence[SearchResult],
) -> list[RetrievedChunk]:
    """Union both result lists by chunk id.

    Semantic hits come first in their original order. A keyword hit on an
    id already present turns that entry into a ``hybrid`` one carrying both
    scores; keyword-only hits are appended in keyword order.
    """
    merged: dict[str, RetrievedChunk] = {}

    for hit in semantic:
        if hit.id in merged:
            continue
        merged[hit.id] = RetrievedChunk(
            id=hit.id,
            text=hit.text,
            metadata=hit.metadata,
            semantic_score=hit.score,
            search_type=SearchType.SEMANTIC,
        )

    for hit in keyword:
        existing = merged.get(hit.id)
        if existing is None:
            merged[hit.id] = RetrievedChunk(
                id=hit.id,
                text=hit.text,
                metadata=hit.metadata,
                keyword_score=hit.score,
                search_type=SearchType.KEYWORD,
            )
        elif existing.keyword_score is None:
            existing.keyword_score = hit.score
            existing.search_type = SearchType.HYBRID

    return list(merged.values())


class HybridRetriever:
    """Orchestrates embedding → (semantic ∥ keyword) search → merge → rerank."""

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        vector_store: VectorStore,
        reranker: IntentReranker | None = None,
        max_workers: int = 2,
    ):
        self.embedding_provider = embedding_provider
        self.vector_store = vector_store
        self.reranker = reranker or IntentReranker()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="hybrid-search"
        )

    def retrieve(
        self,
        query: str,
        config: RetrievalConfig | None = None,
        expanded_query: str | None = None,
    ) -> HybridSearchResult:
        """Run one hybrid retrieval.

        Args:
            query: The user's original query; drives keyword search and
                intent detection.
            config: Retrieval settings (top_k, threshold, scope).
            expanded_query: Query text for the semantic side. Defaults to
                ``query``.

        Returns:
            A ``HybridSearchResult``. A failing search side contributes no
            candidates; when both fail ``result.empty`` is True.
        """
        cfg = config or RetrievalConfig()
        semantic_query = expanded_query or query
        scope = SearchScope(tenant_id=cfg.tenant_id, document_name=cfg.document_name)
        result = HybridSearchResult(query=query, expanded_query=semantic_query)

        semantic_future = self._executor.submit(
            self._semantic_search, semantic_query, cfg.match_count, scope, cfg.similarity_threshold
        )
        keyword_future = self._executor.submit(
            self.vector_store.keyword_search, query, cfg.match_count, scope
        )

        semantic = self._collect("semantic", semantic_future.result, result)
        keyword = self._collect("keyword", keyword_future.result, result)
        result.semantic_count = len(semantic)
        result.keyword_count = len(keyword)

        candidates = merge_results(semantic, keyword)
        if cfg.intent_rerank:
            intent = detect_query_intent(query)
            result.intent = str(intent)
            result.chunks = self.reranker.rerank(query, candidates, cfg.top_k, intent=intent)
        else:
            candidates.sort(key=lambda c: c.score, reverse=True)
            result.chunks = candidates[: cfg.top_k]

        logger.info(
            "Hybrid retrieval: %d semantic + %d keyword -> %d merged -> %d returned (intent=%s)",
            result.semantic_count,
            result.keyword_count,
            len(candidates),
            len(result.chunks),
            result.intent,
        )
        if result.empty:
            logger.warning("No results for query %r", query)
        return result

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _semantic_search(
        self, query: str, top_k: int, scope: SearchScope, min_score: float
    ) -> list[SearchResult]:
        embedding = self.embedding_provider.embed_query(query)
        return self.vector_store.search(embedding, top_k=top_k, scope=scope, min_score=min_score)

    @staticmethod
    def _collect(
        side: str,
        get: Callable[[], list[SearchResult]],
        result: HybridSearchResult,
    ) -> list[SearchResult]:
        try:
            return get()
        except Exception as exc:
            logger.warning("%s search failed: %s", side.capitalize(), exc)
            result.errors.append(f"{side}: {exc}")
            return []
