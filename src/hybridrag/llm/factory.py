"""LLM provider lookup.

The answering model (``settings.llm``) and the query-expansion model
(``settings.expansion``) are configured separately; both go through
``build_llm_provider``.
"""

from __future__ import annotations

import os

from hybridrag.components import ComponentRegistry
from hybridrag.llm.base import LLMProvider

_PROVIDERS: ComponentRegistry[LLMProvider] = ComponentRegistry(
    "LLM provider",
    [
        ("ollama", "hybridrag.llm.ollama_provider", "OllamaLLMProvider"),
        ("anthropic", "hybridrag.llm.anthropic_provider", "AnthropicLLMProvider"),
        ("openai", "hybridrag.llm.openai_provider", "OpenAILLMProvider"),
    ],
)

# Hosted providers read their key from the environment; Ollama needs none.
API_KEY_ENV = {"openai": "OPENAI_API_KEY", "anthropic": "ANTHROPIC_API_KEY"}


def has_credentials(provider: str) -> bool:
    env = API_KEY_ENV.get(provider.lower())
    return env is None or bool(os.environ.get(env))


def get_llm_provider(provider: str = "ollama", **kwargs) -> LLMProvider:
    """Get an LLM provider by name (``ollama``, ``anthropic``, ``openai``)."""
    return _PROVIDERS.create(provider, **kwargs)


def build_llm_provider(section) -> LLMProvider:
    """Provider for a settings section with provider/model/max_tokens/temperature."""
    return get_llm_provider(
        section.provider,
        model=section.model,
        max_tokens=section.max_tokens,
        temperature=section.temperature,
    )


def available_providers() -> list[str]:
    return _PROVIDERS.keys()


def clear_cache() -> None:
    _PROVIDERS.clear()
