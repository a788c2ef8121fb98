"""Query expansion with a three-tier fallback: cache, LLM, dictionary.

``QueryExpander.expand`` never raises. Whatever happens it returns a
non-empty query to search with, and ``source`` records which tier
produced it.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
from concurrent.futures import ThreadPoolExecutor

from hybridrag.dispatch import InlineDispatcher, TaskDispatcher
from hybridrag.llm.base import LLMProvider
from hybridrag.retrieval.cache import CacheEntry, ExpansionCache, InMemoryExpansionCache
from hybridrag.retrieval.dictionary import expand_with_dictionary
from hybridrag.retrieval.schemas import ExpansionResult, ExpansionSource

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0
DEFAULT_MAX_LLM_CALLS = 4
HASH_LENGTH = 32

EXPANSION_PROMPT = """Expand this financial query with synonyms and related terms found in SEC filings (10-K, 10-Q, 8-K).
Add:
- GAAP/IFRS equivalent terms
- Common variations in corporate filings
- Relevant time period formats (e.g., Q2 2023 → second quarter June 30 2023)
- Related line items that might contain the answer

Return ONLY the expanded query as a single line, no explanation or formatting.

Query: "{query}\""""

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query(query: str) -> str:
    """Lowercase, trim, and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", query.lower().strip())


def hash_query(query: str) -> str:
    """Cache key: truncated SHA-256 hex digest of the normalized query."""
    digest = hashlib.sha256(normalize_query(query).encode("utf-8")).hexdigest()
    return digest[:HASH_LENGTH]


def _first_line(text: str) -> str:
    for line in text.splitlines():
        line = line.strip().strip('"').strip()
        if line:
            return line
    return ""


class QueryExpander:
    """Expand search queries before retrieval.

    Args:
        cache: Expansion cache shared across calls (passed by reference).
        llm: Optional LLM used for the second tier. Without it the expander
            goes straight from cache to dictionary.
        dispatcher: Runs cache writes off the request path.
        enabled: When False, queries pass through with source ``none``.
        timeout_seconds: Hard cap on the LLM tier.
        model: Model override passed to ``LLMProvider.complete``.
        max_llm_calls: LLM requests allowed in flight at once. A timed-out
            request keeps its worker until the client's own timeout fires;
            while every worker is taken, the LLM tier is skipped instead of
            queueing behind the stuck calls.
    """

    def __init__(
        self,
        cache: ExpansionCache | None = None,
        llm: LLMProvider | None = None,
        dispatcher: TaskDispatcher | None = None,
        enabled: bool = True,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        model: str | None = None,
        max_llm_calls: int = DEFAULT_MAX_LLM_CALLS,
    ):
        self.cache = cache if cache is not None else InMemoryExpansionCache()
        self.llm = llm
        self.dispatcher = dispatcher or InlineDispatcher()
        self.enabled = enabled
        self.timeout_seconds = timeout_seconds
        self.model = model
        self.max_llm_calls = max_llm_calls
        self._llm_slots = threading.BoundedSemaphore(max_llm_calls)
        self._llm_executor: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def expand(self, query: str) -> ExpansionResult:
        if not self.enabled or not query or not query.strip():
            return ExpansionResult(query, query, ExpansionSource.NONE)

        try:
            key = hash_query(query)

            cached = self._lookup(key)
            if cached is not None and cached.expanded_query.strip():
                logger.debug("Expansion cache hit for %s", key)
                return ExpansionResult(query, cached.expanded_query, cached.source, cached=True)

            expanded, source = self._expand_uncached(query)
            self._schedule_write(key, query, expanded, source)
            logger.info("Expanded query via %s (%d -> %d chars)", source, len(query), len(expanded))
            return ExpansionResult(query, expanded, source)
        except Exception:
            logger.exception("Query expansion failed, using original query")
            return ExpansionResult(query, query, ExpansionSource.ERROR)

    def close(self) -> None:
        if self._llm_executor is not None:
            self._llm_executor.shutdown(wait=False, cancel_futures=True)
            self._llm_executor = None

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _lookup(self, key: str) -> CacheEntry | None:
        try:
            return self.cache.get(key)
        except Exception as exc:
            logger.warning("Expansion cache read failed (%s), treating as miss", exc)
            return None

    def _expand_uncached(self, query: str) -> tuple[str, ExpansionSource]:
        if self.llm is not None:
            expanded = self._expand_with_llm(query)
            if expanded:
                return expanded, ExpansionSource.LLM
        return expand_with_dictionary(query), ExpansionSource.DICTIONARY

    def _expand_with_llm(self, query: str) -> str:
        if self._llm_executor is None:
            self._llm_executor = ThreadPoolExecutor(
                max_workers=self.max_llm_calls, thread_name_prefix="query-expansion"
            )

        if not self._llm_slots.acquire(blocking=False):
            logger.warning("All %d LLM expansion slots busy, using dictionary", self.max_llm_calls)
            return ""

        prompt = EXPANSION_PROMPT.format(query=query)
        future = self._llm_executor.submit(
            self.llm.complete, prompt, self.model, self.timeout_seconds
        )
        future.add_done_callback(lambda _: self._llm_slots.release())
        try:
            return _first_line(future.result(timeout=self.timeout_seconds) or "")
        except TimeoutError:
            future.cancel()
            logger.warning(
                "LLM expansion timed out after %.1fs, falling back to dictionary",
                self.timeout_seconds,
            )
        except Exception as exc:
            logger.warning("LLM expansion failed (%s), falling back to dictionary", exc)
        return ""

    def _schedule_write(
        self, key: str, query: str, expanded: str, source: ExpansionSource
    ) -> None:
        entry = CacheEntry(
            query_hash=key,
            original_query=query,
            expanded_query=expanded,
            source=source,
        )
        try:
            self.dispatcher.submit(self.cache.put, key, entry)
        except Exception as exc:
            logger.warning("Could not schedule expansion cache write: %s", exc)
