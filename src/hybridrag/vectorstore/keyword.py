"""BM25 keyword index used by stores without native full-text search."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence

from rank_bm25 import BM25Okapi

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+(?:[&'/.-][a-z0-9]+)*")


def tokenize(text: str) -> list[str]:
    """Lowercased word tokens; keeps ``p&e``, ``d/e`` and ``10-k`` intact."""
    return _TOKEN_RE.findall(text.lower())


class KeywordIndex:
    """BM25 ranking over an ordered list of chunk texts.

    The BM25 model is rebuilt lazily after the corpus changes. Scores of a
    query's hits are divided by the best hit's score, so the top keyword
    match scores 1.0 and scores compare across queries.
    """

    def __init__(self) -> None:
        self._texts: list[str] = []
        self._bm25: BM25Okapi | None = None

    def reset(self, texts: Sequence[str]) -> None:
        self._texts = list(texts)
        self._bm25 = None

    def rank(
        self,
        query: str,
        top_k: int,
        accept: Callable[[int], bool] | None = None,
    ) -> list[tuple[int, float]]:
        """Return ``(position, normalized_score)`` pairs, best first.

        Args:
            query: Raw query text.
            top_k: Maximum hits.
            accept: Optional predicate on corpus position (scope pre-filter).
        """
        terms = tokenize(query)
        if not terms or not self._texts or top_k <= 0:
            return []

        if self._bm25 is None:
            self._bm25 = BM25Okapi([tokenize(t) or [""] for t in self._texts])

        scores = self._bm25.get_scores(terms)
        query_terms = set(terms)
        hits = [
            (i, float(score))
            for i, score in enumerate(scores)
            if (accept is None or accept(i))
            and query_terms.intersection(tokenize(self._texts[i]))
        ]
        if not hits:
            return []

        # Stable: equal scores keep corpus order
        hits.sort(key=lambda item: item[1], reverse=True)
        hits = hits[:top_k]
        best = max(hits[0][1], 0.0)
        if best <= 0:
            # BM25 IDF goes non-positive for terms in most documents
            return [(i, 1.0) for i, _ in hits]
        return [(i, max(score, 0.0) / best) for i, score in hits]
