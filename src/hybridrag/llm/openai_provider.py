"""Chat completions through the OpenAI API or any OpenAI-compatible server.

This is the default backend for query expansion (``gpt-4o-mini``): short
prompts, one-line answers, and a per-request timeout so a slow call cannot
hold up retrieval.
"""

from __future__ import annotations

import logging
from typing import Any

from hybridrag.components import require_sdk
from hybridrag.llm.base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"


class OpenAILLMProvider(LLMProvider):
    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.2,
        max_retries: int = 2,
    ):
        openai = require_sdk("openai", "openai")
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        # api_key=None lets the SDK read OPENAI_API_KEY
        self._client: Any = openai.OpenAI(
            api_key=api_key, base_url=base_url, max_retries=max_retries
        )

    def generate(
        self,
        prompt: str,
        system: str | None = None,
        timeout: float | None = None,
        *,
        model: str | None = None,
    ) -> str:
        messages = [{"role": "user", "content": prompt}]
        if system:
            messages.insert(0, {"role": "system", "content": system})

        request: dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if timeout is not None:
            request["timeout"] = timeout

        choice = self._client.chat.completions.create(**request).choices[0]
        return choice.message.content or ""
