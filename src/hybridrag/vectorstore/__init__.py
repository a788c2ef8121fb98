"""Chunk store backends: FAISS + BM25 (local) and Qdrant."""

from hybridrag.vectorstore.base import VectorStore
from hybridrag.vectorstore.factory import available_stores, build_vector_store, get_vector_store
from hybridrag.vectorstore.schemas import SearchResult, SearchScope, VectorRecord

__all__ = [
    "SearchResult",
    "SearchScope",
    "VectorRecord",
    "VectorStore",
    "available_stores",
    "build_vector_store",
    "get_vector_store",
]
