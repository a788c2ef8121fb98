"""Text generation backends for answers and query expansion."""

from hybridrag.llm.base import LLMProvider
from hybridrag.llm.factory import available_providers, build_llm_provider, get_llm_provider

__all__ = ["LLMProvider", "available_providers", "build_llm_provider", "get_llm_provider"]
