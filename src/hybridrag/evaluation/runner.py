"""Evaluation harness: run retrieval scenarios, collect metrics, report results."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from hybridrag.evaluation import retrieval_metrics as metrics
from hybridrag.evaluation.schemas import EvalResult, EvalScenario
from hybridrag.retrieval.expansion import QueryExpander
from hybridrag.retrieval.retriever import HybridRetriever
from hybridrag.retrieval.schemas import RetrievalConfig, RetrievedChunk

logger = logging.getLogger(__name__)


class EvalRunner:
    """Run evaluation scenarios against a hybrid retriever and aggregate metrics."""

    def __init__(
        self,
        retriever: HybridRetriever,
        expander: QueryExpander | None = None,
        config: RetrievalConfig | None = None,
    ):
        self.retriever = retriever
        self.expander = expander
        self.config = config or RetrievalConfig()

    @staticmethod
    def load_scenarios(path: str | Path) -> list[EvalScenario]:
        """Load scenarios from a YAML file or a directory of YAML files."""
        p = Path(path)
        scenarios: list[EvalScenario] = []

        if p.is_file():
            scenarios.extend(_parse_yaml(p))
        elif p.is_dir():
            for yaml_file in sorted(p.glob("*.yaml")) + sorted(p.glob("*.yml")):
                scenarios.extend(_parse_yaml(yaml_file))
        else:
            raise FileNotFoundError(f"Scenario path not found: {path}")

        logger.info("Loaded %d evaluation scenarios from %s", len(scenarios), path)
        return scenarios

    def run_retrieval(self, scenarios: list[EvalScenario]) -> list[EvalResult]:
        """Retrieve for each scenario and score the ranking."""
        return [self._evaluate(scenario) for scenario in scenarios]

    @staticmethod
    def summary(results: list[EvalResult]) -> dict[str, float]:
        """Mean of every metric across ``results``."""
        if not results:
            return {}

        n = len(results)
        judged = [r for r in results if r.intent_correct is not None]
        summary = {
            "precision_at_k": sum(r.precision_at_k for r in results) / n,
            "recall_at_k": sum(r.recall_at_k for r in results) / n,
            "mrr": sum(r.mrr for r in results) / n,
            "map": sum(r.average_precision for r in results) / n,
            "ndcg_at_k": sum(r.ndcg_at_k for r in results) / n,
            "avg_retrieval_count": sum(r.retrieval_count for r in results) / n,
            "total_scenarios": n,
        }
        if judged:
            summary["intent_accuracy"] = sum(1 for r in judged if r.intent_correct) / len(judged)
        return summary

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _evaluate(self, scenario: EvalScenario) -> EvalResult:
        expanded = source = None
        if self.expander is not None:
            expansion = self.expander.expand(scenario.question)
            expanded, source = expansion.expanded_query, str(expansion.source)

        cfg = RetrievalConfig(
            top_k=self.config.top_k,
            similarity_threshold=self.config.similarity_threshold,
            candidate_multiplier=self.config.candidate_multiplier,
            tenant_id=scenario.tenant_id or self.config.tenant_id,
            document_name=scenario.document_name or self.config.document_name,
            intent_rerank=self.config.intent_rerank,
        )
        result = self.retriever.retrieve(scenario.question, cfg, expanded_query=expanded)

        relevant_flags = [_is_relevant(scenario, chunk) for chunk in result.chunks]
        # Document-level judgements rank document names; term-only ones rank chunk ids
        if scenario.relevant_documents:
            labels = [chunk.metadata.document_name or chunk.id for chunk in result.chunks]
            relevant = set(scenario.relevant_documents)
        else:
            labels = [chunk.id for chunk in result.chunks]
            relevant = {label for label, ok in zip(labels, relevant_flags, strict=True) if ok}
        k = cfg.top_k

        intent_correct = None
        if scenario.expected_intent is not None:
            intent_correct = result.intent == scenario.expected_intent

        return EvalResult(
            scenario_id=scenario.id,
            question=scenario.question,
            retrieved=labels,
            retrieval_count=len(result.chunks),
            expanded_query=expanded,
            expansion_source=source,
            intent=result.intent,
            intent_correct=intent_correct,
            precision_at_k=metrics.precision_at_k(relevant, labels, k),
            recall_at_k=metrics.recall_at_k(relevant, labels, k),
            mrr=metrics.mrr(relevant, labels),
            average_precision=metrics.average_precision(relevant, labels),
            ndcg_at_k=metrics.ndcg_at_k([1.0 if f else 0.0 for f in relevant_flags], k),
        )


def _is_relevant(scenario: EvalScenario, chunk: RetrievedChunk) -> bool:
    if scenario.relevant_documents and chunk.metadata.document_name in scenario.relevant_documents:
        return True
    text = chunk.text.lower()
    return any(term.lower() in text for term in scenario.relevant_terms)


def _parse_yaml(path: Path) -> list[EvalScenario]:
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return []

    raw_scenarios = data if isinstance(data, list) else data.get("scenarios", [data])
    return [
        EvalScenario(
            id=item.get("id", f"{path.stem}_{i}"),
            question=item["question"],
            relevant_documents=item.get("relevant_documents", []),
            relevant_terms=item.get("relevant_terms", []),
            expected_intent=item.get("expected_intent"),
            tenant_id=item.get("tenant_id"),
            document_name=item.get("document_name"),
            tags=item.get("tags", []),
        )
        for i, item in enumerate(raw_scenarios)
    ]
