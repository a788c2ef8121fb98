"""Named backend registries with lazy import and singleton caching.

Embedding providers, LLM providers, chunk stores and expansion caches are
registered as ``(key, module_path, class_name)`` and imported only when first
requested, so optional SDKs (faiss, qdrant-client, openai, anthropic) are
needed only by the backends that use them.
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ComponentRegistry(Generic[T]):
    """Backends of one kind, looked up by settings name.

    Args:
        kind: Label used in log and error messages, e.g. ``"vector store"``.
        entries: ``(key, module_path, class_name)`` triples, in display order.
    """

    def __init__(self, kind: str, entries: list[tuple[str, str, str]]):
        self.kind = kind
        self._entries = {key: (module_path, cls_name) for key, module_path, cls_name in entries}
        self._instances: dict[str, T] = {}

    def keys(self) -> list[str]:
        return list(self._entries)

    def create(self, name: str, **kwargs: Any) -> T:
        """Return the backend registered as ``name``.

        Instances built without kwargs are shared per key; instances built
        with kwargs are always new.

        Raises:
            ValueError: ``name`` is not registered.
        """
        key = name.lower()
        if not kwargs and key in self._instances:
            return self._instances[key]

        entry = self._entries.get(key)
        if entry is None:
            raise ValueError(f"Unknown {self.kind} '{name}'. Available: {self.keys()}")

        module_path, cls_name = entry
        instance = getattr(importlib.import_module(module_path), cls_name)(**kwargs)
        logger.debug("Created %s %s", self.kind, cls_name)
        if not kwargs:
            self._instances[key] = instance
        return instance

    def clear(self) -> None:
        """Drop shared instances (for testing)."""
        self._instances.clear()


def require_sdk(module: str, extra: str):
    """Import an optional client SDK, naming the extra that provides it.

    Raises:
        ImportError: The SDK is not installed.
    """
    try:
        return importlib.import_module(module)
    except ImportError as exc:
        raise ImportError(
            f"{module} package required: pip install hybrid-retrieval-rag[{extra}]"
        ) from exc
