"""Chunk store lookup by name or from ``Settings``."""

from __future__ import annotations

import logging

from hybridrag.components import ComponentRegistry
from hybridrag.vectorstore.base import VectorStore

logger = logging.getLogger(__name__)

_STORES: ComponentRegistry[VectorStore] = ComponentRegistry(
    "vector store",
    [
        ("faiss", "hybridrag.vectorstore.faiss_store", "FAISSStore"),
        ("qdrant", "hybridrag.vectorstore.qdrant_store", "QdrantStore"),
    ],
)


def get_vector_store(provider: str = "faiss", **kwargs) -> VectorStore:
    """Get a chunk store by name (``faiss`` or ``qdrant``)."""
    return _STORES.create(provider, **kwargs)


def build_vector_store(settings) -> VectorStore:
    """Build the configured store, loading a saved FAISS index when present.

    Qdrant persists on its own (server or local path), so only the FAISS
    store is reloaded here.
    """
    vs = settings.vectorstore
    dim = settings.embedding.dimension
    if vs.backend.lower() == "qdrant":
        return get_vector_store(
            "qdrant", collection_name=vs.collection, dimension=dim, url=vs.url, path=vs.qdrant_path
        )

    store = get_vector_store(vs.backend, dimension=dim)
    try:
        store.load(vs.path)
    except FileNotFoundError:
        logger.debug("No saved index at %s, starting empty", vs.path)
    return store


def available_stores() -> list[str]:
    return _STORES.keys()


def clear_cache() -> None:
    _STORES.clear()
