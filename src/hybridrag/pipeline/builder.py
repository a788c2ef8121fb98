"""Wire pipeline components from ``Settings``.

Every builder accepts pre-built collaborators so tests (and callers with
their own clients) can swap any piece.
"""

from __future__ import annotations

import logging

from hybridrag.chunking.boundary_chunker import BoundaryChunker
from hybridrag.config import Settings
from hybridrag.dispatch import InlineDispatcher, TaskDispatcher, ThreadPoolDispatcher
from hybridrag.documents.loader import FileTextExtractor
from hybridrag.embeddings.base import EmbeddingProvider
from hybridrag.embeddings.factory import build_embedding_provider
from hybridrag.llm.base import LLMProvider
from hybridrag.llm.factory import API_KEY_ENV, build_llm_provider, has_credentials
from hybridrag.pipeline.ingest import IngestPipeline
from hybridrag.pipeline.query import QueryPipeline
from hybridrag.pipeline.registry import DocumentRegistry
from hybridrag.retrieval.cache import ExpansionCache, get_expansion_cache
from hybridrag.retrieval.expansion import QueryExpander
from hybridrag.retrieval.retriever import HybridRetriever
from hybridrag.retrieval.schemas import RetrievalConfig
from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.factory import build_vector_store

logger = logging.getLogger(__name__)


def build_dispatcher(settings: Settings, background: bool = False) -> TaskDispatcher:
    if background:
        return ThreadPoolDispatcher(max_workers=settings.ingestion.max_workers)
    return InlineDispatcher()


def build_expansion_llm(settings: Settings) -> LLMProvider | None:
    """LLM for the expansion tier, or None when disabled or unavailable."""
    exp = settings.expansion
    if not exp.enabled or not exp.use_llm:
        return None
    if not has_credentials(exp.provider):
        logger.info(
            "%s not set, query expansion uses the dictionary only",
            API_KEY_ENV[exp.provider.lower()],
        )
        return None
    try:
        return build_llm_provider(exp)
    except ImportError as exc:
        logger.warning("Expansion LLM unavailable (%s), using dictionary only", exc)
        return None


def build_expander(
    settings: Settings,
    cache: ExpansionCache | None = None,
    llm: LLMProvider | None = None,
    dispatcher: TaskDispatcher | None = None,
) -> QueryExpander:
    exp = settings.expansion
    if cache is None:
        if exp.cache_backend.lower() == "json":
            cache = get_expansion_cache("json", path=exp.cache_path)
        else:
            cache = get_expansion_cache(exp.cache_backend)
    return QueryExpander(
        cache=cache,
        llm=llm if llm is not None else build_expansion_llm(settings),
        dispatcher=dispatcher or build_dispatcher(settings),
        enabled=exp.enabled,
        timeout_seconds=exp.timeout_seconds,
        max_llm_calls=exp.max_llm_calls,
        model=exp.model,
    )


def build_retriever(
    settings: Settings,
    embedding_provider: EmbeddingProvider | None = None,
    vector_store: VectorStore | None = None,
) -> HybridRetriever:
    return HybridRetriever(
        embedding_provider=embedding_provider or build_embedding_provider(settings),
        vector_store=vector_store or build_vector_store(settings),
    )


def build_ingest_pipeline(
    settings: Settings,
    embedding_provider: EmbeddingProvider | None = None,
    vector_store: VectorStore | None = None,
    registry: DocumentRegistry | None = None,
    background: bool = False,
) -> IngestPipeline:
    ing = settings.ingestion
    return IngestPipeline(
        embedding_provider=embedding_provider or build_embedding_provider(settings),
        vector_store=vector_store or build_vector_store(settings),
        extractor=FileTextExtractor(max_file_size_mb=ing.max_file_size_mb),
        chunker=BoundaryChunker.from_settings(settings),
        registry=registry or DocumentRegistry(ing.registry_path),
        dispatcher=build_dispatcher(settings, background=background),
        embed_batch_size=ing.embed_batch_size,
        store_batch_size=ing.store_batch_size,
        document_batch_size=ing.batch_size,
    )


def build_query_pipeline(
    settings: Settings,
    retriever: HybridRetriever | None = None,
    llm: LLMProvider | None = None,
    expander: QueryExpander | None = None,
) -> QueryPipeline:
    if llm is None:
        llm = build_llm_provider(settings.llm)
    return QueryPipeline(
        retriever=retriever or build_retriever(settings),
        llm_provider=llm,
        expander=expander or build_expander(settings),
        retrieval_config=RetrievalConfig.from_settings(settings),
    )
