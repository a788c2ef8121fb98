"""Query pipeline: question → expand → hybrid retrieve → LLM → cited answer."""

from __future__ import annotations

import logging

from hybridrag.llm.base import LLMProvider
from hybridrag.pipeline.citations import extract_citations
from hybridrag.pipeline.prompts import RAG_SYSTEM_PROMPT, build_rag_prompt
from hybridrag.pipeline.schemas import RAGQuery, RAGResponse
from hybridrag.retrieval.expansion import QueryExpander
from hybridrag.retrieval.retriever import HybridRetriever
from hybridrag.retrieval.schemas import RetrievalConfig

logger = logging.getLogger(__name__)

NO_RESULTS_ANSWER = "No relevant documents found for this query."


class QueryPipeline:
    """Orchestrates question → expand → retrieve → generate → cite."""

    def __init__(
        self,
        retriever: HybridRetriever,
        llm_provider: LLMProvider,
        expander: QueryExpander | None = None,
        retrieval_config: RetrievalConfig | None = None,
        system_prompt: str = RAG_SYSTEM_PROMPT,
    ):
        self.retriever = retriever
        self.llm_provider = llm_provider
        self.expander = expander
        self.retrieval_config = retrieval_config or RetrievalConfig()
        self.system_prompt = system_prompt

    def query(self, rag_query: RAGQuery) -> RAGResponse:
        """Run a full query.

        Args:
            rag_query: The question with optional tenant/document scope.

        Returns:
            A ``RAGResponse`` with answer, citations and expansion details.
        """
        question = rag_query.question
        expanded = None
        source = None
        if rag_query.expand and self.expander is not None:
            expansion = self.expander.expand(question)
            expanded, source = expansion.expanded_query, str(expansion.source)

        cfg = self._config_for(rag_query)
        result = self.retriever.retrieve(question, cfg, expanded_query=expanded)
        model = getattr(self.llm_provider, "model", "unknown")

        if result.empty:
            return RAGResponse(
                question=question,
                answer=NO_RESULTS_ANSWER,
                model=model,
                expanded_query=expanded,
                expansion_source=source,
                intent=result.intent,
            )

        prompt = build_rag_prompt(question, result.chunks)
        answer = self.llm_provider.generate(prompt, system=self.system_prompt)
        citations = extract_citations(answer, result.chunks)

        logger.info(
            "Query answered: %d context chunks, %d citations",
            len(result.chunks),
            len(citations),
        )
        return RAGResponse(
            question=question,
            answer=answer,
            citations=citations,
            context_texts=[c.text for c in result.chunks],
            model=model,
            retrieval_count=len(result.chunks),
            expanded_query=expanded,
            expansion_source=source,
            intent=result.intent,
        )

    def query_simple(self, question: str, **kwargs) -> RAGResponse:
        """Convenience wrapper building the ``RAGQuery`` from kwargs."""
        return self.query(RAGQuery(question=question, **kwargs))

    def _config_for(self, rag_query: RAGQuery) -> RetrievalConfig:
        base = self.retrieval_config
        return RetrievalConfig(
            top_k=rag_query.top_k or base.top_k,
            similarity_threshold=base.similarity_threshold,
            candidate_multiplier=base.candidate_multiplier,
            tenant_id=rag_query.tenant_id or base.tenant_id,
            document_name=rag_query.document_name or base.document_name,
            intent_rerank=base.intent_rerank,
        )
