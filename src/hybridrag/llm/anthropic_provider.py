"""Claude models through the Anthropic Messages API (``ANTHROPIC_API_KEY``)."""

from __future__ import annotations

import logging
from typing import Any

from hybridrag.components import require_sdk
from hybridrag.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


class AnthropicLLMProvider(LLMProvider):
    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
        max_retries: int = 2,
    ):
        anthropic = require_sdk("anthropic", "anthropic")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = anthropic.Anthropic(api_key=api_key, max_retries=max_retries)

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        timeout: float | None = None,
        *,
        model: str | None = None,
    ) -> str:
        request: dict[str, Any] = {
            "model": model or self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            request["system"] = system
        if timeout is not None:
            request["timeout"] = timeout

        # Responses may interleave non-text blocks; keep the text ones.
        blocks = self._client.messages.create(**request).content
        return "".join(getattr(block, "text", "") for block in blocks)
