"""Qdrant vector store: native payload filtering.

Requires the ``qdrant`` extra. Supports Qdrant Cloud, local instances, an
on-disk path and the in-memory client used by the tests. Keyword search
scrolls the in-scope points and ranks them with BM25.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

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

_SCROLL_PAGE = 256


def point_id(record_id: str) -> str:
    """Qdrant point id for a record id; non-UUID ids map to a stable uuid5."""
    try:
        return str(uuid.UUID(record_id))
    except ValueError:
        return str(uuid.uuid5(uuid.NAMESPACE_URL, record_id))


class QdrantStore(VectorStore):
    """Qdrant-backed vector store."""

    def __init__(
        self,
        collection_name: str = "knowledge_chunks",
        dimension: int = 768,
        url: str | None = None,
        api_key: str | None = None,
        path: str | None = None,
    ):
        try:
            from qdrant_client import QdrantClient, models
        except ImportError as exc:
            raise ImportError(
                "qdrant-client required: pip install hybrid-retrieval-rag[qdrant]"
            ) from exc

        self._models = models
        self._collection_name = collection_name
        self._dimension = dimension

        if url:
            self._client = QdrantClient(url=url, api_key=api_key)
        elif path:
            self._client = QdrantClient(path=path)
        else:
            # In-memory for testing
            self._client = QdrantClient(":memory:")

        if not self._client.collection_exists(collection_name):
            self._create_collection()
            logger.info("Created Qdrant collection '%s' (dim=%d)", collection_name, dimension)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def add(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        points = []
        for record in records:
            payload = metadata_to_dict(record.metadata)
            payload["text"] = record.text
            payload["record_id"] = record.id
            points.append(self._models.PointStruct(
                id=point_id(record.id),
                vector=record.embedding,
                payload=payload,
            ))

        self._client.upsert(collection_name=self._collection_name, points=points)
        logger.info("QdrantStore added %d records", len(records))
        return len(records)

    def search(
        self,
        query_embedding: list[float],
        top_k: int = 10,
        scope: SearchScope | None = None,
        min_score: float = 0.0,
    ) -> list[SearchResult]:
        if top_k <= 0:
            return []
        response = self._client.query_points(
            collection_name=self._collection_name,
            query=query_embedding,
            limit=top_k,
            query_filter=self._scope_filter(scope),
            score_threshold=min_score,
            with_payload=True,
        )
        return [
            self._to_result(point.payload or {}, point.id, point.score or 0.0)
            for point in response.points
        ]

    def keyword_search(
        self,
        query: str,
        top_k: int = 10,
        scope: SearchScope | None = None,
    ) -> list[SearchResult]:
        points = self._scroll(self._scope_filter(scope))
        if not points:
            return []

        index = KeywordIndex()
        index.reset([(p.payload or {}).get("text", "") for p in points])
        return [
            self._to_result(points[i].payload or {}, points[i].id, score)
            for i, score in index.rank(query, top_k)
        ]

    def count(self, scope: SearchScope | None = None) -> int:
        result = self._client.count(
            collection_name=self._collection_name,
            count_filter=self._scope_filter(scope),
            exact=True,
        )
        return result.count

    def delete(self, ids: list[str]) -> int:
        if not ids:
            return 0
        points = [point_id(i) for i in ids]
        existing = self._client.retrieve(
            collection_name=self._collection_name, ids=points, with_payload=False
        )
        self._client.delete(
            collection_name=self._collection_name,
            points_selector=self._models.PointIdsList(points=points),
        )
        return len(existing)

    def delete_document(self, document_id: str) -> int:
        selector = self._scope_filter(SearchScope(document_id=document_id))
        deleted = self.count(SearchScope(document_id=document_id))
        if deleted:
            self._client.delete(
                collection_name=self._collection_name,
                points_selector=self._models.FilterSelector(filter=selector),
            )
            logger.info("QdrantStore deleted %d chunks of document %s", deleted, document_id)
        return deleted

    def clear(self) -> None:
        self._client.delete_collection(self._collection_name)
        self._create_collection()

    # ------------------------------------------------------------------
    # Private
    # ------------------------------------------------------------------

    def _create_collection(self) -> None:
        self._client.create_collection(
            collection_name=self._collection_name,
            vectors_config=self._models.VectorParams(
                size=self._dimension,
                distance=self._models.Distance.COSINE,
            ),
        )

    def _scope_filter(self, scope: SearchScope | None) -> Any:
        if scope is None or scope.is_empty:
            return None
        return self._models.Filter(must=[
            self._models.FieldCondition(key=key, match=self._models.MatchValue(value=value))
            for key, value in scope.to_dict().items()
        ])

    def _scroll(self, scroll_filter: Any) -> list[Any]:
        points: list[Any] = []
        offset = None
        while True:
            batch, offset = self._client.scroll(
                collection_name=self._collection_name,
                scroll_filter=scroll_filter,
                limit=_SCROLL_PAGE,
                offset=offset,
                with_payload=True,
                with_vectors=False,
            )
            points.extend(batch)
            if offset is None:
                return points

    @staticmethod
    def _to_result(payload: dict[str, Any], pid: Any, score: float) -> SearchResult:
        return SearchResult(
            id=payload.get("record_id") or str(pid),
            text=payload.get("text", ""),
            score=float(score),
            metadata=metadata_from_dict(payload),
        )
