"""Evaluation: retrieval metrics and a scenario harness."""

from hybridrag.evaluation.runner import EvalRunner
from hybridrag.evaluation.schemas import EvalResult, EvalScenario

__all__ = ["EvalResult", "EvalRunner", "EvalScenario"]
