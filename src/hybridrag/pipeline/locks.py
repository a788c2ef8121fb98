"""Per-document exclusive locks for (re)processing."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from hybridrag.exceptions import ReprocessInProgressError


class DocumentLockRegistry:
    """Non-blocking, per-document-id mutual exclusion.

    A second ``hold`` on an id that is already held raises
    ``ReprocessInProgressError`` instead of waiting.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._active: set[str] = set()

    @contextmanager
    def hold(self, document_id: str) -> Iterator[None]:
        with self._guard:
            if document_id in self._active:
                raise ReprocessInProgressError(document_id)
            self._active.add(document_id)
        try:
            yield
        finally:
            with self._guard:
                self._active.discard(document_id)

    def is_locked(self, document_id: str) -> bool:
        with self._guard:
            return document_id in self._active
