"""FAISS vector store: local, zero infrastructure.

Keeps raw vectors next to the FAISS index so deletes can rebuild it, and a
BM25 keyword index over the same records for the keyword side of hybrid
search.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path

import numpy as np

from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.keyword import KeywordIndex
from hybridrag.vectorstore.schemas import (
    SearchResult,
    SearchScope,
    VectorRecord,
    metadata_from_dict,
    metadata_to_dict,
)

logger = logging.getLogger(__name__)


class FAISSStore(VectorStore):
    """FAISS-backed vector store with scope filtering and BM25 keyword search."""

    def __init__(self, dimension: int = 768):
        try:
            import faiss
        except ImportError as exc:
            raise ImportError(
                "faiss-cpu required: pip install hybrid-retrieval-rag[faiss]"
            ) from exc

        self._faiss = faiss
        self._dimension = dimension
        self._lock = threading.RLock()
        self._index = faiss.IndexFlatIP(dimension)  # Inner product (cosine after normalization)
        self._vectors = np.zeros((0, dimension), dtype=np.float32)
        self._records: list[dict] = []  # position -> {id, text, metadata}
        self._keyword = KeywordIndex()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        vectors = np.array([r.embedding for r in records], dtype=np.float32)
        if vectors.ndim != 2 or vectors.shape[1] != self._dimension:
            raise ValueError(
                f"Embedding dimension mismatch: expected {self._dimension}, got {vectors.shape}"
            )
        # L2-normalize for cosine similarity via inner product
        self._faiss.normalize_L2(vectors)

        with self._lock:
            # Upsert: replace records whose id already exists
            incoming = {r.id for r in records}
            if any(rec["id"] in incoming for rec in self._records):
                self._remove(lambda rec: rec["id"] in incoming)

            self._index.add(vectors)
            self._vectors = np.vstack([self._vectors, vectors])
            self._records.extend(
                {"id": r.id, "text": r.text, "metadata": r.metadata} for r in records
            )
            self._keyword.reset([rec["text"] for rec in self._records])

        logger.info("FAISSStore added %d records (total: %d)", len(records), self.count())
        return len(records)

    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        scope: SearchScope | None = None,
        min_score: float = 0.0,
    ) -> list[SearchResult]:
        with self._lock:
            total = self._index.ntotal
            if total == 0 or top_k <= 0:
                return []

            query_vec = np.array([query_embedding], dtype=np.float32)
            self._faiss.normalize_L2(query_vec)

            # Scoped searches rank the whole index so filtering happens before top_k
            fetch_k = total if scope and not scope.is_empty else min(top_k, total)
            scores, indices = self._index.search(query_vec, fetch_k)

            results: list[SearchResult] = []
            for score, idx in zip(scores[0], indices[0], strict=True):
                if idx == -1 or score < min_score:
                    continue
                record = self._records[int(idx)]
                if scope and not scope.matches(record["metadata"]):
                    continue
                results.append(SearchResult(
                    id=record["id"],
                    text=record["text"],
                    score=float(score),
                    metadata=record["metadata"],
                ))
                if len(results) >= top_k:
                    break

        return results

    def keyword_search(
        self,
        query: str,
        top_k: int = 10,
        scope: SearchScope | None = None,
    ) -> list[SearchResult]:
        with self._lock:
            accept = None
            if scope and not scope.is_empty:
                def accept(i: int) -> bool:
                    return scope.matches(self._records[i]["metadata"])

            return [
                SearchResult(
                    id=self._records[i]["id"],
                    text=self._records[i]["text"],
                    score=score,
                    metadata=self._records[i]["metadata"],
                )
                for i, score in self._keyword.rank(query, top_k, accept)
            ]

    def count(self, scope: SearchScope | None = None) -> int:
        with self._lock:
            if scope is None or scope.is_empty:
                return self._index.ntotal
            return sum(1 for rec in self._records if scope.matches(rec["metadata"]))

    def delete(self, ids: list[str]) -> int:
        id_set = set(ids)
        with self._lock:
            return self._remove(lambda rec: rec["id"] in id_set)

    def delete_document(self, document_id: str) -> int:
        with self._lock:
            deleted = self._remove(lambda rec: rec["metadata"].document_id == document_id)
        if deleted:
            logger.info("FAISSStore deleted %d chunks of document %s", deleted, document_id)
        return deleted

    def clear(self) -> None:
        with self._lock:
            self._index = self._faiss.IndexFlatIP(self._dimension)
            self._vectors = np.zeros((0, self._dimension), dtype=np.float32)
            self._records = []
            self._keyword.reset([])

    def save(self, path: str) -> None:
        """Save FAISS index, raw vectors and metadata to disk."""
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)

        with self._lock:
            self._faiss.write_index(self._index, str(p / "index.faiss"))
            np.save(p / "vectors.npy", self._vectors)
            serializable = [
                {
                    "id": rec["id"],
                    "text": rec["text"],
                    "metadata": metadata_to_dict(rec["metadata"]),
                }
                for rec in self._records
            ]

        with open(p / "metadata.json", "w", encoding="utf-8") as f:
            json.dump({"dimension": self._dimension, "records": serializable}, f)

        logger.info("FAISSStore saved to %s (%d records)", path, len(serializable))

    def load(self, path: str) -> None:
        """Load FAISS index, raw vectors and metadata from disk."""
        p = Path(path)

        with open(p / "metadata.json", encoding="utf-8") as f:
            data = json.load(f)

        with self._lock:
            self._index = self._faiss.read_index(str(p / "index.faiss"))
            self._dimension = data.get("dimension", self._dimension)
            self._vectors = np.load(p / "vectors.npy")
            self._records = [
                {
                    "id": rec["id"],
                    "text": rec["text"],
                    "metadata": metadata_from_dict(rec["metadata"]),
                }
                for rec in data["records"]
            ]
            self._keyword.reset([rec["text"] for rec in self._records])

        logger.info("FAISSStore loaded from %s (%d records)", path, self.count())

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _remove(self, predicate) -> int:
        """Drop matching records and rebuild the flat index from raw vectors."""
        keep = [i for i, rec in enumerate(self._records) if not predicate(rec)]
        deleted = len(self._records) - len(keep)
        if deleted == 0:
            return 0

        self._vectors = self._vectors[keep] if keep else self._vectors[:0]
        self._records = [self._records[i] for i in keep]
        self._index = self._faiss.IndexFlatIP(self._dimension)
        if len(self._vectors):
            self._index.add(self._vectors)
        self._keyword.reset([rec["text"] for rec in self._records])
        return deleted
