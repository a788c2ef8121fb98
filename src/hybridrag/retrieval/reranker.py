"""Intent-aware re-ranking of hybrid search candidates.

Multiplies each candidate's base score by the boost its content type gets
under the detected query intent, then keeps the best ``top_k``. Pure: the
input list and its chunks are left untouched.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

from hybridrag.retrieval.intent import QueryIntent, boost_factor, detect_query_intent
from hybridrag.retrieval.schemas import RetrievedChunk

logger = logging.getLogger(__name__)


class IntentReranker:
    """Re-rank candidates by query intent and chunk content type."""

    def rerank(
        self,
        query: str,
        candidates: Sequence[RetrievedChunk],
        top_k: int,
        intent: QueryIntent | None = None,
    ) -> list[RetrievedChunk]:
        """Return at most ``top_k`` candidates, best first.

        Args:
            query: The user's original query (used for intent detection).
            candidates: Merged hybrid-search candidates.
            top_k: Number of chunks to keep.
            intent: Skip detection and use this intent.

        Returns:
            New ``RetrievedChunk`` objects. Under ``general`` intent the
            order is a stable sort by base score with no boosts recorded.
        """
        if top_k <= 0 or not candidates:
            return []

        intent = intent or detect_query_intent(query)

        if intent is QueryIntent.GENERAL:
            ranked = sorted(candidates, key=lambda c: c.score, reverse=True)
            return [dataclasses.replace(c) for c in ranked[:top_k]]

        boosted = []
        for candidate in candidates:
            factor = boost_factor(intent, candidate.metadata.content_type)
            boosted.append(dataclasses.replace(
                candidate,
                boosted_score=candidate.score * factor,
                boost_factor=factor,
            ))
        boosted.sort(key=lambda c: c.boosted_score, reverse=True)

        logger.debug(
            "Reranked %d candidates for intent %s (top boost %.2f)",
            len(boosted),
            intent,
            boosted[0].boost_factor if boosted else 1.0,
        )
        return boosted[:top_k]
