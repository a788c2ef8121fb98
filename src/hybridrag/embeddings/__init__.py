"""Text-to-vector backends for chunks and queries."""

from hybridrag.embeddings.base import EmbeddingProvider, embed_in_batches
from hybridrag.embeddings.factory import (
    available_providers,
    build_embedding_provider,
    get_embedding_provider,
)

__all__ = [
    "EmbeddingProvider",
    "available_providers",
    "build_embedding_provider",
    "embed_in_batches",
    "get_embedding_provider",
]
