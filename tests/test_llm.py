"""Tests for LLM providers: mocked transports and SDK clients."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest

from hybridrag.llm.base import LLMProvider
from hybridrag.llm.factory import (
    available_providers,
    clear_cache,
    get_llm_provider,
    has_credentials,
)
from hybridrag.llm.ollama_provider import OllamaLLMProvider

from conftest import MockLLM


def _ollama(handler) -> OllamaLLMProvider:
    client = httpx.Client(transport=httpx.MockTransport(handler), base_url="http://ollama")
    return OllamaLLMProvider(model="llama3.1:8b", client=client)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


class TestLLMProviderABC:
    def test_cannot_instantiate_base(self):
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore[abstract]

    def test_complete_delegates_to_generate(self):
        llm = MagicMock(spec=LLMProvider)
        LLMProvider.complete(llm, "expand ppne", "small-model", 2.5)
        llm.generate.assert_called_once_with("expand ppne", timeout=2.5, model="small-model")

    def test_mock_llm_records_prompts(self):
        llm = MockLLM(answer="ok")
        assert llm.complete("hello") == "ok"
        assert llm.prompts == ["hello"]


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------


class TestOllamaLLMProvider:
    def test_generate_payload(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"response": "Net PP&E was $4.1B [1]."})

        answer = _ollama(handler).generate("question", system="be precise")
        assert answer == "Net PP&E was $4.1B [1]."
        assert seen["model"] == "llama3.1:8b"
        assert seen["system"] == "be precise"
        assert seen["stream"] is False

    def test_model_override(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(json.loads(request.content))
            return httpx.Response(200, json={"response": "expanded"})

        assert _ollama(handler).complete("q", model="qwen2.5:3b", timeout=1.0) == "expanded"
        assert seen["model"] == "qwen2.5:3b"
        assert "system" not in seen

    def test_reasoning_block_stripped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"response": "<think>ppne means\n...</think>\nnet PP&E"})

        assert _ollama(handler).complete("expand ppne") == "net PP&E"

    def test_http_error_propagates(self):
        provider = _ollama(lambda request: httpx.Response(503))
        with pytest.raises(httpx.HTTPStatusError):
            provider.generate("q")


# ---------------------------------------------------------------------------
# Hosted providers (SDK mocked)
# ---------------------------------------------------------------------------


class TestHostedProviders:
    def test_openai_messages_and_timeout(self):
        module = MagicMock()
        with patch.dict("sys.modules", {"openai": module}):
            from hybridrag.llm.openai_provider import OpenAILLMProvider

            client = module.OpenAI.return_value
            client.chat.completions.create.return_value = SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content="answer"))]
            )
            provider = OpenAILLMProvider(api_key="test")
            assert provider.generate("q", system="sys", timeout=3.0) == "answer"

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["timeout"] == 3.0
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    def test_anthropic_system_prompt(self):
        module = MagicMock()
        with patch.dict("sys.modules", {"anthropic": module}):
            from hybridrag.llm.anthropic_provider import AnthropicLLMProvider

            client = module.Anthropic.return_value
            client.messages.create.return_value = SimpleNamespace(
                content=[SimpleNamespace(text="answer")]
            )
            provider = AnthropicLLMProvider(api_key="test")
            assert provider.generate("q", system="sys", model="other") == "answer"

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["model"] == "other"
        assert "timeout" not in kwargs


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestLLMFactory:
    def setup_method(self):
        clear_cache()

    def test_available_providers(self):
        assert set(available_providers()) == {"ollama", "anthropic", "openai"}

    def test_unknown_provider_raises(self):
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            get_llm_provider("nonexistent")

    def test_kwargs_bypass_cache(self):
        default = get_llm_provider("ollama")
        assert get_llm_provider("ollama") is default
        custom = get_llm_provider("ollama", model="mistral")
        assert custom is not default
        assert custom.model == "mistral"

    def test_credentials_from_environment(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        assert has_credentials("ollama")
        assert has_credentials("OpenAI")
        assert not has_credentials("anthropic")
