"""Tests for the LiteLLM client with mocked completions."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from bisub.core.config import LLMConfig, ServiceConfig
from bisub.llm.client import LiteLLMClient, _extract_ollama_model, create_client


def _response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(**overrides) -> LiteLLMClient:
    service = ServiceConfig(model="openai/gpt-4o-mini", retry_delay_ms=0, **overrides)
    return LiteLLMClient(service, name="openai")


class TestExtractOllamaModel:
    def test_ollama_chat(self):
        assert _extract_ollama_model("ollama_chat/qwen3:8b") == "qwen3:8b"

    def test_ollama(self):
        assert _extract_ollama_model("ollama/llama3") == "llama3"

    def test_other_provider(self):
        assert _extract_ollama_model("deepseek/deepseek-chat") is None


class TestLiteLLMClient:
    def test_returns_content(self):
        mock = AsyncMock(return_value=_response("[]"))
        with patch("litellm.acompletion", mock):
            assert asyncio.run(_client().translate("prompt")) == "[]"

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4o-mini"
        assert kwargs["messages"] == [{"role": "user", "content": "prompt"}]

    def test_retries_then_succeeds(self):
        mock = AsyncMock(side_effect=[RuntimeError("rate limited"), _response(""), _response("ok")])
        with patch("litellm.acompletion", mock):
            assert asyncio.run(_client(max_retries=3).translate("p")) == "ok"
        assert mock.call_count == 3

    def test_gives_up_with_none(self):
        mock = AsyncMock(side_effect=RuntimeError("down"))
        with patch("litellm.acompletion", mock):
            assert asyncio.run(_client(max_retries=2).translate("p")) is None
        assert mock.call_count == 3

    def test_checks_ollama_model_once(self):
        service = ServiceConfig(model="ollama_chat/qwen3:8b", retry_delay_ms=0)
        client = LiteLLMClient(service)
        mock = AsyncMock(return_value=_response("ok"))
        with (
            patch("litellm.acompletion", mock),
            patch("bisub.llm.client.ensure_ollama_model") as ensure,
        ):
            asyncio.run(client.translate("a"))
            asyncio.run(client.translate("b"))
        ensure.assert_called_once_with("ollama_chat/qwen3:8b")

    def test_close_unloads_model(self):
        with patch("bisub.llm.client.unload_ollama_model") as unload:
            _client().close()
        unload.assert_called_once_with("openai/gpt-4o-mini")


def test_create_client_uses_profile():
    config = LLMConfig(
        service="deepseek",
        services={"deepseek": ServiceConfig(model="deepseek/deepseek-chat")},
    )
    client = create_client(config)
    assert client.name == "deepseek"
    assert client.service.model == "deepseek/deepseek-chat"


def test_create_client_unknown_service():
    with pytest.raises(ValueError):
        create_client(LLMConfig(), service="missing")
