"""Embedding provider lookup by name or from ``Settings``."""

from __future__ import annotations

from hybridrag.components import ComponentRegistry
from hybridrag.embeddings.base import EmbeddingProvider

_PROVIDERS: ComponentRegistry[EmbeddingProvider] = ComponentRegistry(
    "embedding provider",
    [
        ("ollama", "hybridrag.embeddings.ollama_provider", "OllamaEmbeddingProvider"),
        ("openai", "hybridrag.embeddings.openai_provider", "OpenAIEmbeddingProvider"),
    ],
)


def get_embedding_provider(provider: str = "ollama", **kwargs) -> EmbeddingProvider:
    """Get an embedding provider by name.

    Args:
        provider: One of ``ollama``, ``openai``.
        **kwargs: Passed to the provider constructor. Instances built with
            kwargs are not cached.
    """
    return _PROVIDERS.create(provider, **kwargs)


def build_embedding_provider(settings) -> EmbeddingProvider:
    """Provider for ``settings.embedding``.

    Ollama models have no fixed size, so the configured dimension is passed
    through; OpenAI models report their own.
    """
    emb = settings.embedding
    if emb.provider.lower() == "ollama":
        return get_embedding_provider("ollama", model=emb.model, dimension=emb.dimension)
    return get_embedding_provider(emb.provider, model=emb.model)


def available_providers() -> list[str]:
    return _PROVIDERS.keys()


def clear_cache() -> None:
    _PROVIDERS.clear()
