"""Local generation through an Ollama server's ``/api/generate``.

No API key is needed. Reasoning models such as DeepSeek-R1 prefix their
answer with a ``<think>`` block, which is stripped so callers (the
expansion tier in particular) only see the answer.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from hybridrag.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "llama3.1:8b"
DEFAULT_BASE_URL = "http://localhost:11434"

_THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL)


class OllamaLLMProvider(LLMProvider):
    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        timeout: float = 120.0,
        client: httpx.Client | None = None,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        timeout: float | None = None,
        *,
        model: str | None = None,
    ) -> str:
        """POST one non-streaming generation.

        Raises:
            httpx.HTTPError: Transport failure or non-2xx status.
        """
        payload: dict[str, Any] = {
            "model": model or self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature, "num_predict": self.max_tokens},
        }
        if system:
            payload["system"] = system

        extra = {} if timeout is None else {"timeout": timeout}
        resp = self._client.post("/api/generate", json=payload, **extra)
        resp.raise_for_status()
        return _THINK_BLOCK.sub("", resp.json().get("response", "")).strip()
