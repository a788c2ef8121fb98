"""Retrieval quality metrics: precision@k, recall@k, MRR, AP, nDCG.

Every metric takes the ranked list of retrieved labels (document names or
chunk ids) and the set of labels judged relevant.
"""

from __future__ import annotations

import math
from collections.abc import Sequence


def precision_at_k(relevant: set[str], retrieved: Sequence[str], k: int) -> float:
    """Fraction of the top-k results that are relevant."""
    if k <= 0 or not retrieved:
        return 0.0
    hits = sum(1 for label in retrieved[:k] if label in relevant)
    return hits / k


def recall_at_k(relevant: set[str], retrieved: Sequence[str], k: int) -> float:
    """Fraction of relevant labels found in the top-k.

    Duplicate labels (several chunks of one document) count once.
    """
    if not relevant or not retrieved or k <= 0:
        return 0.0
    found = {label for label in retrieved[:k] if label in relevant}
    return len(found) / len(relevant)


def mrr(relevant: set[str], retrieved: Sequence[str]) -> float:
    """Reciprocal rank of the first relevant result."""
    for rank, label in enumerate(retrieved, 1):
        if label in relevant:
            return 1.0 / rank
    return 0.0


def average_precision(relevant: set[str], retrieved: Sequence[str]) -> float:
    """Mean of precision@rank over the ranks holding a new relevant label."""
    if not relevant:
        return 0.0
    seen: set[str] = set()
    total = 0.0
    for rank, label in enumerate(retrieved, 1):
        if label in relevant and label not in seen:
            seen.add(label)
            total += len(seen) / rank
    return total / len(relevant)


def ndcg_at_k(relevance_scores: Sequence[float], k: int) -> float:
    """Normalized Discounted Cumulative Gain at k.

    Args:
        relevance_scores: Graded relevance of each result, in retrieval order.
        k: Cutoff position.
    """
    if not relevance_scores or k <= 0:
        return 0.0

    def dcg(scores: Sequence[float]) -> float:
        return sum(score / math.log2(rank + 1) for rank, score in enumerate(scores, 1))

    ideal = dcg(sorted(relevance_scores, reverse=True)[:k])
    if ideal == 0:
        return 0.0
    return dcg(relevance_scores[:k]) / ideal

