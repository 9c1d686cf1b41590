"""Unit tests for the completion providers and factory.

HTTP is served by ``httpx.MockTransport``; no backend is contacted.
"""

from __future__ import annotations

import json

import httpx
import pytest

from ctxpilot.exceptions import CompletionError, ConfigurationError
from ctxpilot.llm.factory import create_llm_provider
from ctxpilot.llm.ollama_provider import OllamaProvider
from ctxpilot.llm.openai_provider import OpenAICompatProvider
from ctxpilot.settings.config import LLMSettings


def _openai_handler(content: str = "Thanks Jane!", status: int = 200, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.url.path.endswith("/models"):
            return httpx.Response(200, json={"data": []})
        return httpx.Response(
            status,
            json={
                "model": "gpt-4o-mini",
                "choices": [{"message": {"role": "assistant", "content": content}}],
                "usage": {"prompt_tokens": 12, "completion_tokens": 4},
            },
        )

    return handler


class TestOpenAICompatProvider:
    def test_chat_request_and_parse(self) -> None:
        seen: list[httpx.Request] = []
        provider = OpenAICompatProvider(
            api_key="sk-test",
            base_url="https://llm.example/v1/",
            transport=httpx.MockTransport(_openai_handler(seen=seen)),
        )

        result = provider.chat([{"role": "user", "content": "hi"}], max_tokens=50)

        assert result.content == "Thanks Jane!"
        assert result.input_tokens == 12
        assert result.output_tokens == 4
        request = seen[0]
        assert str(request.url) == "https://llm.example/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["max_tokens"] == 50
        assert body["temperature"] == 0.7

    def test_complete_strips_text(self) -> None:
        provider = OpenAICompatProvider(
            api_key="sk-test",
            transport=httpx.MockTransport(_openai_handler(content="  Glad it helped!\n")),
        )
        assert provider.complete("Reply to Jane", 200) == "Glad it helped!"

    def test_complete_http_error(self) -> None:
        provider = OpenAICompatProvider(
            api_key="sk-test",
            transport=httpx.MockTransport(_openai_handler(status=500)),
        )
        with pytest.raises(CompletionError, match="request failed"):
            provider.complete("Reply to Jane")

    def test_complete_connection_refused(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        provider = OpenAICompatProvider(api_key="sk-test", transport=httpx.MockTransport(refuse))
        with pytest.raises(CompletionError, match="Connection refused"):
            provider.complete("Reply to Jane")

    def test_complete_empty_text(self) -> None:
        provider = OpenAICompatProvider(
            api_key="sk-test",
            transport=httpx.MockTransport(_openai_handler(content="   ")),
        )
        with pytest.raises(CompletionError, match="empty"):
            provider.complete("Reply to Jane")

    def test_check_connectivity(self) -> None:
        provider = OpenAICompatProvider(api_key="sk-test", transport=httpx.MockTransport(_openai_handler()))
        assert provider.check_connectivity() is True


class TestOllamaProvider:
    def test_chat(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"message": {"content": "Cheers!"}, "prompt_eval_count": 9, "eval_count": 2},
            )

        provider = OllamaProvider(model="llama3.1", transport=httpx.MockTransport(handler))
        assert provider.complete("Reply to Jane", 80) == "Cheers!"

        body = json.loads(seen[0].content)
        assert seen[0].url.path == "/api/chat"
        assert body["options"]["num_predict"] == 80
        assert body["stream"] is False

    def test_server_down(self, caplog) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        provider = OllamaProvider(transport=httpx.MockTransport(refuse))
        with pytest.raises(CompletionError, match="Connection refused"):
            provider.complete("Reply to Jane")
        assert "Cannot reach Ollama at http://localhost:11434" in caplog.text

    def test_shares_http_plumbing_with_openai(self) -> None:
        from ctxpilot.llm.http_provider import HTTPChatProvider

        assert issubclass(OllamaProvider, HTTPChatProvider)
        assert issubclass(OpenAICompatProvider, HTTPChatProvider)

    def test_check_connectivity_model_present(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"models": [{"name": "llama3.1:latest"}]})

        provider = OllamaProvider(model="llama3.1", transport=httpx.MockTransport(handler))
        assert provider.check_connectivity() is True

    def test_check_connectivity_model_missing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"models": [{"name": "mistral:7b"}]})

        provider = OllamaProvider(model="llama3.1", transport=httpx.MockTransport(handler))
        assert provider.check_connectivity() is False


class TestFactory:
    def test_openai(self) -> None:
        provider = create_llm_provider(llm_settings=LLMSettings(provider="openai", api_key="sk-test"))
        assert isinstance(provider, OpenAICompatProvider)
        provider.close()

    def test_openai_without_key(self) -> None:
        with pytest.raises(ConfigurationError, match="API key"):
            create_llm_provider(llm_settings=LLMSettings(provider="openai", api_key=""))

    def test_ollama(self) -> None:
        provider = create_llm_provider("ollama", llm_settings=LLMSettings(base_url="http://localhost:11434"))
        assert isinstance(provider, OllamaProvider)
        assert provider.base_url == "http://localhost:11434"
        provider.close()

    def test_unknown_provider(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
            create_llm_provider("vertex", llm_settings=LLMSettings())

    def test_reads_global_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        provider = create_llm_provider()
        assert isinstance(provider, OpenAICompatProvider)
        provider.close()
