"""Persistent cache for query expansions, keyed by normalized-query hash.

Entries never expire. Writes are idempotent: a later ``put`` for the same
hash replaces the earlier entry.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from hybridrag.components import ComponentRegistry
from hybridrag.retrieval.schemas import ExpansionSource

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class CacheEntry:
    query_hash: str
    original_query: str
    expanded_query: str
    source: ExpansionSource
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, str]:
        d = asdict(self)
        d["source"] = str(self.source)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, str]) -> CacheEntry:
        return cls(
            query_hash=data["query_hash"],
            original_query=data["original_query"],
            expanded_query=data["expanded_query"],
            source=ExpansionSource(data.get("source", ExpansionSource.DICTIONARY)),
            created_at=data.get("created_at") or _utc_now(),
        )


class ExpansionCache(ABC):
    """Key-value store for expansions."""

    @abstractmethod
    def get(self, query_hash: str) -> CacheEntry | None:
        """Return the entry for ``query_hash`` or ``None`` on a miss."""

    @abstractmethod
    def put(self, query_hash: str, entry: CacheEntry) -> None:
        """Insert or replace the entry for ``query_hash``."""


class InMemoryExpansionCache(ExpansionCache):
    """Process-local cache, mainly for tests and one-shot CLI runs."""

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, query_hash: str) -> CacheEntry | None:
        with self._lock:
            return self._entries.get(query_hash)

    def put(self, query_hash: str, entry: CacheEntry) -> None:
        with self._lock:
            self._entries[query_hash] = entry

    def size(self) -> int:
        return len(self._entries)


class JsonFileExpansionCache(ExpansionCache):
    """Cache persisted as a single JSON object ``{hash: entry}``.

    The file is read once on first access and rewritten through a temp file
    on every ``put``.
    """

    def __init__(self, path: str | Path = "local_data/expansion_cache.json"):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._entries: dict[str, CacheEntry] | None = None

    def get(self, query_hash: str) -> CacheEntry | None:
        with self._lock:
            return self._load().get(query_hash)

    def put(self, query_hash: str, entry: CacheEntry) -> None:
        with self._lock:
            entries = self._load()
            entries[query_hash] = entry
            self._write(entries)

    def size(self) -> int:
        with self._lock:
            return len(self._load())

    def _load(self) -> dict[str, CacheEntry]:
        if self._entries is None:
            if self.path.exists():
                with open(self.path, encoding="utf-8") as f:
                    raw = json.load(f)
                self._entries = {k: CacheEntry.from_dict(v) for k, v in raw.items()}
                logger.debug("Loaded %d cached expansions from %s", len(self._entries), self.path)
            else:
                self._entries = {}
        return self._entries

    def _write(self, entries: dict[str, CacheEntry]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({k: v.to_dict() for k, v in entries.items()}, f, indent=2)
        os.replace(tmp, self.path)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

_CACHES: ComponentRegistry[ExpansionCache] = ComponentRegistry(
    "expansion cache",
    [
        ("json", "hybridrag.retrieval.cache", "JsonFileExpansionCache"),
        ("memory", "hybridrag.retrieval.cache", "InMemoryExpansionCache"),
    ],
)


def get_expansion_cache(backend: str = "json", **kwargs) -> ExpansionCache:
    """Get an expansion cache by backend name (``json`` or ``memory``)."""
    return _CACHES.create(backend, **kwargs)


def clear_cache() -> None:
    """Clear shared instances (for testing)."""
    _CACHES.clear()
