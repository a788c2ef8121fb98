"""Tests for hybrid retrieval: merging, intent detection and re-ranking."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from hybridrag.chunking.schemas import ChunkMetadata
from hybridrag.config import Settings
from hybridrag.retrieval.intent import QueryIntent, boost_factor, detect_query_intent
from hybridrag.retrieval.reranker import IntentReranker
from hybridrag.retrieval.retriever import HybridRetriever, merge_results
from hybridrag.retrieval.schemas import RetrievalConfig, RetrievedChunk, SearchType
from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.schemas import SearchResult, SearchScope, VectorRecord

from conftest import MockEmbedder


def _hit(rid: str, score: float, content_type: str = "text") -> SearchResult:
    return SearchResult(
        id=rid, text=f"chunk {rid}", score=score, metadata=ChunkMetadata(content_type=content_type)
    )


def _candidate(rid: str, semantic: float | None, content_type: str = "text", keyword=None):
    return RetrievedChunk(
        id=rid,
        text=f"chunk {rid}",
        metadata=ChunkMetadata(content_type=content_type),
        semantic_score=semantic,
        keyword_score=keyword,
    )


# ---------------------------------------------------------------------------
# Config and result models
# ---------------------------------------------------------------------------


class TestRetrievalConfig:
    def test_match_count(self):
        assert RetrievalConfig(top_k=5).match_count == 10

    def test_from_settings_with_overrides(self):
        settings = Settings()
        settings.retrieval.top_k = 8
        cfg = RetrievalConfig.from_settings(settings, top_k=None, tenant_id="acme")
        assert cfg.top_k == 8
        assert cfg.tenant_id == "acme"
        assert cfg.similarity_threshold == pytest.approx(0.05)

    def test_base_score_prefers_semantic(self):
        assert _candidate("a", 0.4, keyword=1.0).score == 0.4
        assert _candidate("b", None, keyword=0.7).score == 0.7
        assert _candidate("c", None).score == 0.0


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------


class TestMergeResults:
    def test_union_by_id(self):
        merged = merge_results([_hit("a", 0.9), _hit("b", 0.8)], [_hit("b", 1.0), _hit("c", 0.5)])
        assert [c.id for c in merged] == ["a", "b", "c"]
        assert merged[0].search_type == SearchType.SEMANTIC
        assert merged[1].search_type == SearchType.HYBRID
        assert (merged[1].semantic_score, merged[1].keyword_score) == (0.8, 1.0)
        assert merged[2].search_type == SearchType.KEYWORD
        assert merged[2].semantic_score is None

    def test_no_id_lost_or_duplicated(self):
        semantic = [_hit(str(i), 1 - i / 10) for i in range(5)]
        keyword = [_hit(str(i), 1.0) for i in range(3, 8)]
        merged = merge_results(semantic, keyword)
        assert sorted(c.id for c in merged) == [str(i) for i in range(8)]

    def test_both_empty(self):
        assert merge_results([], []) == []


# ---------------------------------------------------------------------------
# Intent
# ---------------------------------------------------------------------------


class TestIntentDetection:
    @pytest.mark.parametrize(
        ("query", "intent"),
        [
            ("What is the quick ratio?", QueryIntent.BALANCE_SHEET_METRIC),
            ("Who is the independent accountant?", QueryIntent.FILING_METADATA),
            ("What is the trading symbol on the cover page?", QueryIntent.FILING_METADATA),
            ("How did gross margin change?", QueryIntent.INCOME_STATEMENT_METRIC),
            ("What was capital expenditure in 2023?", QueryIntent.CASH_FLOW_METRIC),
            ("Which reportable segment grew fastest?", QueryIntent.SEGMENT_ANALYSIS),
            ("Tell me about the company history", QueryIntent.GENERAL),
        ],
    )
    def test_detect(self, query, intent):
        assert detect_query_intent(query) == intent

    def test_first_matching_intent_wins(self):
        # matches both income statement and segment patterns
        assert detect_query_intent("revenue by region") == QueryIntent.INCOME_STATEMENT_METRIC

    def test_boost_factors(self):
        assert boost_factor(QueryIntent.BALANCE_SHEET_METRIC, "table") == 1.8
        assert boost_factor(QueryIntent.BALANCE_SHEET_METRIC, "text") == 0.9
        assert boost_factor(QueryIntent.BALANCE_SHEET_METRIC, None) == 0.9
        assert boost_factor(QueryIntent.BALANCE_SHEET_METRIC, "list") == 1.0
        assert boost_factor(QueryIntent.FILING_METADATA, "header") == 2.5
        assert boost_factor(QueryIntent.GENERAL, "table") == 1.0


# ---------------------------------------------------------------------------
# Re-ranking
# ---------------------------------------------------------------------------


class TestIntentReranker:
    def test_table_overtakes_close_text(self):
        candidates = [_candidate("text", 0.75), _candidate("table", 0.70, content_type="table")]
        ranked = IntentReranker().rerank("What is the quick ratio?", candidates, top_k=2)
        assert [c.id for c in ranked] == ["table", "text"]
        assert ranked[0].boost_factor == 1.8
        assert ranked[0].boosted_score == pytest.approx(0.70 * 1.8)
        assert ranked[1].boosted_score == pytest.approx(0.75 * 0.9)

    def test_input_is_not_mutated(self):
        candidates = [_candidate("a", 0.5, content_type="table")]
        IntentReranker().rerank("quick ratio", candidates, top_k=1)
        assert candidates[0].boosted_score is None

    def test_truncates_to_top_k(self):
        candidates = [_candidate(str(i), i / 10) for i in range(10)]
        ranked = IntentReranker().rerank("quick ratio", candidates, top_k=3)
        assert [c.id for c in ranked] == ["9", "8", "7"]

    def test_general_intent_is_stable(self):
        candidates = [_candidate("a", 0.5), _candidate("b", 0.9), _candidate("c", 0.5)]
        ranked = IntentReranker().rerank("company history", candidates, top_k=3)
        assert [c.id for c in ranked] == ["b", "a", "c"]
        assert all(c.boost_factor is None for c in ranked)

    def test_keyword_only_candidate_uses_keyword_score(self):
        candidates = [
            _candidate("kw", None, content_type="table", keyword=1.0),
            _candidate("sem", 0.9),
        ]
        ranked = IntentReranker().rerank("quick ratio", candidates, top_k=2)
        assert ranked[0].id == "kw"
        assert ranked[0].final_score == pytest.approx(1.8)

    def test_empty_and_zero_top_k(self):
        assert IntentReranker().rerank("quick ratio", [], top_k=5) == []
        assert IntentReranker().rerank("quick ratio", [_candidate("a", 0.5)], top_k=0) == []


# ---------------------------------------------------------------------------
# Hybrid retriever
# ---------------------------------------------------------------------------

CHUNKS = [
    ("bs-table", "acme", "table", "| Total current assets | 1,200 |\n| Quick ratio | 1.13 |"),
    ("bs-text", "acme", "text", "The quick ratio discussion covers liquidity and receivables."),
    ("capex", "acme", "text", "Capital expenditure on equipment rose to 85 million."),
    ("globex", "globex", "table", "| Quick ratio | 0.80 |"),
]


@pytest.fixture
def populated_store(faiss_store, embedder: MockEmbedder):
    faiss_store.add([
        VectorRecord(
            id=rid,
            text=text,
            embedding=embedder.embed(text),
            metadata=ChunkMetadata(
                document_id=f"doc-{tenant}",
                document_name=f"{tenant}-10k.pdf",
                tenant_id=tenant,
                content_type=ctype,
            ),
        )
        for rid, tenant, ctype, text in CHUNKS
    ])
    return faiss_store


@pytest.fixture
def retriever(populated_store, embedder):
    r = HybridRetriever(embedding_provider=embedder, vector_store=populated_store)
    yield r
    r.close()


class TestHybridRetriever:
    def test_balance_sheet_query_prefers_tables(self, retriever: HybridRetriever):
        result = retriever.retrieve("quick ratio", RetrievalConfig(top_k=3, tenant_id="acme"))
        assert result.intent == "balance_sheet_metric"
        assert result.chunks[0].id == "bs-table"
        assert all(c.metadata.tenant_id == "acme" for c in result.chunks)
        assert result.semantic_count > 0
        assert result.keyword_count == 2
        assert not result.errors

    def test_hybrid_hits_carry_both_scores(self, retriever: HybridRetriever):
        result = retriever.retrieve("quick ratio", RetrievalConfig(top_k=5, tenant_id="acme"))
        hybrid = [c for c in result.chunks if c.search_type == SearchType.HYBRID]
        assert hybrid
        assert all(c.semantic_score is not None and c.keyword_score is not None for c in hybrid)

    def test_document_scope(self, retriever: HybridRetriever):
        cfg = RetrievalConfig(top_k=5, document_name="globex-10k.pdf")
        result = retriever.retrieve("quick ratio", cfg)
        assert [c.id for c in result.chunks] == ["globex"]

    def test_expanded_query_drives_semantic_side(self, populated_store):
        embedder = MockEmbedder()
        queries = []
        original = embedder.embed_query

        def record(q):
            queries.append(q)
            return original(q)

        embedder.embed_query = record
        retriever = HybridRetriever(embedder, populated_store)
        try:
            cfg = RetrievalConfig(tenant_id="acme", intent_rerank=False)
            result = retriever.retrieve("capex", cfg, expanded_query="capex capital expenditure")
        finally:
            retriever.close()
        assert queries == ["capex capital expenditure"]
        assert result.expanded_query == "capex capital expenditure"
        assert result.chunks[0].id == "capex"

    def test_without_rerank(self, retriever: HybridRetriever):
        cfg = RetrievalConfig(top_k=4, intent_rerank=False)
        result = retriever.retrieve("quick ratio", cfg)
        assert result.intent is None
        scores = [c.score for c in result.chunks]
        assert scores == sorted(scores, reverse=True)
        assert all(c.boosted_score is None for c in result.chunks)

    def test_searches_run_concurrently(self, embedder):
        # each side waits for the other; run one after the other, both time out
        rendezvous = threading.Barrier(2, timeout=5.0)

        def semantic(*args, **kwargs):
            rendezvous.wait()
            return [_hit("a", 0.8)]

        def keyword(*args, **kwargs):
            rendezvous.wait()
            return [_hit("b", 1.0)]

        store = MagicMock(spec=VectorStore)
        store.search.side_effect = semantic
        store.keyword_search.side_effect = keyword
        retriever = HybridRetriever(embedder, store)
        try:
            result = retriever.retrieve("company history")
        finally:
            retriever.close()
        assert result.errors == []
        assert {c.id for c in result.chunks} == {"a", "b"}

    def test_keyword_failure_keeps_semantic(self, embedder):
        store = MagicMock(spec=VectorStore)
        store.search.return_value = [_hit("a", 0.8)]
        store.keyword_search.side_effect = RuntimeError("index offline")
        retriever = HybridRetriever(embedder, store)
        try:
            result = retriever.retrieve("company history")
        finally:
            retriever.close()
        assert [c.id for c in result.chunks] == ["a"]
        assert result.keyword_count == 0
        assert result.errors and result.errors[0].startswith("keyword")

    def test_semantic_failure_keeps_keyword(self):
        embedder = MagicMock()
        embedder.embed_query.side_effect = RuntimeError("embedding service down")
        store = MagicMock(spec=VectorStore)
        store.keyword_search.return_value = [_hit("k", 1.0)]
        retriever = HybridRetriever(embedder, store)
        try:
            result = retriever.retrieve("company history")
        finally:
            retriever.close()
        assert [c.id for c in result.chunks] == ["k"]
        assert result.chunks[0].search_type == SearchType.KEYWORD
        store.search.assert_not_called()

    def test_both_sides_fail(self, embedder):
        store = MagicMock(spec=VectorStore)
        store.search.side_effect = RuntimeError("down")
        store.keyword_search.side_effect = RuntimeError("down")
        retriever = HybridRetriever(embedder, store)
        try:
            result = retriever.retrieve("quick ratio")
        finally:
            retriever.close()
        assert result.empty
        assert len(result.errors) == 2

    def test_passes_scope_and_threshold(self, embedder):
        store = MagicMock(spec=VectorStore)
        store.search.return_value = []
        store.keyword_search.return_value = []
        retriever = HybridRetriever(embedder, store)
        try:
            retriever.retrieve(
                "quick ratio",
                RetrievalConfig(top_k=3, tenant_id="acme", similarity_threshold=0.2),
            )
        finally:
            retriever.close()
        scope = SearchScope(tenant_id="acme")
        assert store.search.call_args.kwargs == {"top_k": 6, "scope": scope, "min_score": 0.2}
        store.keyword_search.assert_called_once_with("quick ratio", 6, scope)
