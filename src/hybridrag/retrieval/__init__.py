"""Retrieval: query expansion, hybrid search, intent-aware re-ranking."""

from hybridrag.retrieval.cache import (
    CacheEntry,
    ExpansionCache,
    InMemoryExpansionCache,
    JsonFileExpansionCache,
    get_expansion_cache,
)
from hybridrag.retrieval.dictionary import expand_with_dictionary
from hybridrag.retrieval.expansion import QueryExpander, hash_query, normalize_query
from hybridrag.retrieval.intent import BOOST_MAPS, INTENT_PATTERNS, QueryIntent, detect_query_intent
from hybridrag.retrieval.reranker import IntentReranker
from hybridrag.retrieval.retriever import HybridRetriever, merge_results
from hybridrag.retrieval.schemas import (
    ExpansionResult,
    ExpansionSource,
    HybridSearchResult,
    RetrievalConfig,
    RetrievedChunk,
    SearchType,
)

__all__ = [
    "BOOST_MAPS",
    "CacheEntry",
    "ExpansionCache",
    "ExpansionResult",
    "ExpansionSource",
    "HybridRetriever",
    "HybridSearchResult",
    "INTENT_PATTERNS",
    "InMemoryExpansionCache",
    "IntentReranker",
    "JsonFileExpansionCache",
    "QueryExpander",
    "QueryIntent",
    "RetrievalConfig",
    "RetrievedChunk",
    "SearchType",
    "detect_query_intent",
    "expand_with_dictionary",
    "get_expansion_cache",
    "hash_query",
    "merge_results",
    "normalize_query",
]
