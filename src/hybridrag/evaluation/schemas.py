"""Data models for retrieval evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class EvalScenario:
    """One retrieval test case.

    A retrieved chunk counts as relevant when its document is listed in
    ``relevant_documents`` or its text contains any of ``relevant_terms``
    (case-insensitive).
    """

    id: str
    question: str
    relevant_documents: list[str] = field(default_factory=list)
    relevant_terms: list[str] = field(default_factory=list)
    expected_intent: str | None = None
    tenant_id: str | None = None
    document_name: str | None = None
    tags: list[str] = field(default_factory=list)


@dataclass
class EvalResult:
    """Metrics for a single scenario."""

    scenario_id: str
    question: str
    retrieved: list[str] = field(default_factory=list)
    retrieval_count: int = 0
    expanded_query: str | None = None
    expansion_source: str | None = None
    intent: str | None = None
    intent_correct: bool | None = None

    precision_at_k: float = 0.0
    recall_at_k: float = 0.0
    mrr: float = 0.0
    average_precision: float = 0.0
    ndcg_at_k: float = 0.0
