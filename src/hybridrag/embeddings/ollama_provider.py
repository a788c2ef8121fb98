"""Ollama embedding provider: local-first, no API keys needed.

Uses the Ollama REST API (http://localhost:11434) with models like
``nomic-embed-text`` or ``mxbai-embed-large``.
"""

from __future__ import annotations

import logging

import httpx

from hybridrag.embeddings.base import EmbeddingProvider
from hybridrag.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"
DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_DIM = 768


class OllamaEmbeddingProvider(EmbeddingProvider):
    """Embed text via a local Ollama server."""

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        dimension: int = DEFAULT_DIM,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._dimension = dimension
        self._client = client or httpx.Client(base_url=self.base_url, timeout=timeout)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch through ``/api/embed``.

        Older Ollama servers lack the batch endpoint; those get one
        ``/api/embeddings`` call per text.
        """
        if not texts:
            return []

        try:
            resp = self._client.post(
                "/api/embed",
                json={"model": self.model, "input": texts},
            )
            resp.raise_for_status()
            embeddings = resp.json().get("embeddings")
            if embeddings is not None:
                return self._check_batch(embeddings, len(texts))
        except httpx.HTTPError as exc:
            logger.debug("Batch embed failed (%s), falling back to sequential", exc)

        return [self._embed_single(text) for text in texts]

    def embed_query(self, query: str) -> list[float]:
        return self._embed_single(query)

    @property
    def dimension(self) -> int:
        return self._dimension

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _embed_single(self, text: str) -> list[float]:
        try:
            resp = self._client.post(
                "/api/embeddings",
                json={"model": self.model, "prompt": text},
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise EmbeddingError(f"Ollama embedding request failed: {exc}") from exc

        vector = resp.json().get("embedding")
        if not vector:
            raise EmbeddingError(f"Ollama returned no embedding for model '{self.model}'")
        return vector

    @staticmethod
    def _check_batch(embeddings: list[list[float]], expected: int) -> list[list[float]]:
        if len(embeddings) != expected:
            raise EmbeddingError(
                f"Ollama returned {len(embeddings)} embeddings for {expected} inputs"
            )
        return embeddings
