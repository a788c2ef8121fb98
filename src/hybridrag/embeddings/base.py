"""Embedding provider interface and batched embedding helper."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from hybridrag.exceptions import EmbeddingError


class EmbeddingProvider(ABC):
    """Turns chunk texts and queries into fixed-size vectors.

    ``dimension`` must match the chunk store's dimension; the stores reject
    vectors of any other size.
    """

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """One vector per text, in input order."""

    @abstractmethod
    def embed_query(self, query: str) -> list[float]:
        """Vector for a search query.

        Providers with asymmetric models (e.g. nomic's ``search_query:``
        prefix) embed queries differently from chunk texts.
        """

    def embed(self, text: str) -> list[float]:
        vectors = self.embed_texts([text])
        return vectors[0] if vectors else []

    @property
    @abstractmethod
    def dimension(self) -> int: ...

    @classmethod
    def provider_name(cls) -> str:
        return cls.__name__


def embed_in_batches(
    provider: EmbeddingProvider, texts: Sequence[str], batch_size: int
) -> list[list[float]]:
    """Embed ``texts`` ``batch_size`` at a time.

    Raises:
        EmbeddingError: A batch came back with the wrong number of vectors.
    """
    vectors: list[list[float]] = []
    for start in range(0, len(texts), batch_size):
        batch = list(texts[start : start + batch_size])
        out = provider.embed_texts(batch)
        if len(out) != len(batch):
            raise EmbeddingError(
                f"{provider.provider_name()} returned {len(out)} vectors for {len(batch)} texts"
            )
        vectors.extend(out)
    return vectors
