"""Chunk store interface.

A store holds one ``VectorRecord`` per chunk and answers two kinds of
lookup over the same records: cosine similarity on the embedding and BM25
term relevance on the text. Both honour a ``SearchScope`` pre-filter so a
tenant never sees another tenant's chunks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from hybridrag.vectorstore.schemas import SearchResult, SearchScope, VectorRecord


class VectorStore(ABC):

    # -- writes ------------------------------------------------------------

    @abstractmethod
    def add(self, records: list[VectorRecord]) -> int:
        """Upsert ``records`` by id and return how many were written."""

    @abstractmethod
    def delete(self, ids: list[str]) -> int:
        """Remove chunks by id; unknown ids are ignored. Returns the count removed."""

    @abstractmethod
    def delete_document(self, document_id: str) -> int:
        """Remove every chunk of ``document_id``. Returns the count removed."""

    @abstractmethod
    def clear(self) -> None: ...

    # -- reads -------------------------------------------------------------

    @abstractmethod
    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        scope: SearchScope | None = None,
        min_score: float = 0.0,
    ) -> list[SearchResult]:
        """Nearest chunks to ``query_embedding``, best first.

        Hits scoring below ``min_score`` are dropped, so fewer than
        ``top_k`` results may come back.
        """

    @abstractmethod
    def keyword_search(
        self,
        query: str,
        top_k: int = 10,
        scope: SearchScope | None = None,
    ) -> list[SearchResult]:
        """Chunks ranked by BM25 over their text, best first.

        Chunks sharing no term with ``query`` are not returned.
        """

    @abstractmethod
    def count(self, scope: SearchScope | None = None) -> int: ...

    # -- persistence -------------------------------------------------------

    def save(self, path: str) -> None:
        raise NotImplementedError(f"{type(self).__name__} persists on its own")

    def load(self, path: str) -> None:
        raise NotImplementedError(f"{type(self).__name__} persists on its own")
