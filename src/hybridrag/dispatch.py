"""Background task dispatch for fire-and-forget work.

Used for expansion cache writes and batch ingestion. A failing task is
logged and never propagates to the submitter.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

logger = logging.getLogger(__name__)


class TaskDispatcher(ABC):
    """Runs callables outside the caller's control flow."""

    @abstractmethod
    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future | None:
        """Schedule ``fn(*args, **kwargs)``."""

    def shutdown(self, wait: bool = True) -> None:
        """Release worker resources."""


def _run_logged(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    try:
        return fn(*args, **kwargs)
    except Exception:
        logger.exception("Background task %s failed", getattr(fn, "__name__", fn))
        return None


class InlineDispatcher(TaskDispatcher):
    """Runs tasks synchronously; deterministic, used by tests and the CLI."""

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        future.set_result(_run_logged(fn, *args, **kwargs))
        return future


class ThreadPoolDispatcher(TaskDispatcher):
    """Runs tasks on a shared ``ThreadPoolExecutor``."""

    def __init__(self, max_workers: int = 4, thread_name_prefix: str = "hybridrag"):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=thread_name_prefix
        )

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        return self._executor.submit(_run_logged, fn, *args, **kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
