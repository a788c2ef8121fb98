"""Abstract base class for LLM providers."""

from __future__ import annotations

from abc import ABC, abstractmethod


class LLMProvider(ABC):
    """Interface for LLM response generation."""

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system: str | None = None,
        timeout: float | None = None,
        *,
        model: str | None = None,
    ) -> str:
        """Generate a response from the LLM.

        Args:
            prompt: The user prompt.
            system: Optional system prompt.
            timeout: Per-request timeout in seconds; provider default when None.
            model: Overrides the configured model for this call.

        Returns:
            Generated text response.
        """

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        timeout: float | None = None,
    ) -> str:
        """Single-turn completion without a system prompt."""
        return self.generate(prompt, timeout=timeout, model=model)

    @classmethod
    def provider_name(cls) -> str:
        """Return human-readable provider name."""
        return cls.__name__
