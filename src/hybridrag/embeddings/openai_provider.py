"""OpenAI embeddings (``text-embedding-3-small`` by default).

Requires the ``openai`` extra; the key comes from ``OPENAI_API_KEY`` unless
passed explicitly.
"""

from __future__ import annotations

import logging
from typing import Any

from hybridrag.components import require_sdk
from hybridrag.embeddings.base import EmbeddingProvider
from hybridrag.exceptions import EmbeddingError

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-3-small"

NATIVE_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}

MAX_INPUTS_PER_REQUEST = 2048


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embeddings API client.

    Passing ``dimensions`` asks the text-embedding-3 models for shortened
    vectors, so the index can stay small without switching models.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        dimensions: int | None = None,
    ):
        openai = require_sdk("openai", "openai")
        self.model = model
        self._requested_dimensions = dimensions
        self._dimensions = dimensions or NATIVE_DIMENSIONS.get(model, 1536)
        self._client: Any = openai.OpenAI(api_key=api_key)

    def _request(self, inputs: list[str]) -> list[list[float]]:
        params: dict[str, Any] = {"model": self.model, "input": inputs}
        if self._requested_dimensions:
            params["dimensions"] = self._requested_dimensions
        data = self._client.embeddings.create(**params).data
        if len(data) != len(inputs):
            raise EmbeddingError(
                f"OpenAI returned {len(data)} embeddings for {len(inputs)} inputs"
            )
        # data is not guaranteed to come back in input order
        return [d.embedding for d in sorted(data, key=lambda d: d.index)]

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        vectors: list[list[float]] = []
        for start in range(0, len(texts), MAX_INPUTS_PER_REQUEST):
            vectors.extend(self._request(texts[start : start + MAX_INPUTS_PER_REQUEST]))
        return vectors

    def embed_query(self, query: str) -> list[float]:
        return self._request([query])[0]

    @property
    def dimension(self) -> int:
        return self._dimensions
