"""Ollama LLM provider: local/self-hosted models."""

from __future__ import annotations

from typing import Any

import httpx

from ctxpilot.llm.base import LLMResult
from ctxpilot.llm.http_provider import HTTPChatProvider


class OllamaProvider(HTTPChatProvider):
    """LLM provider backed by a local Ollama server's ``/api/chat`` endpoint.

    Token counts come from ``prompt_eval_count`` / ``eval_count``.
    """

    chat_path = "/api/chat"
    label = "Ollama"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1",
        temperature: float = 0.7,
        max_tokens: int = 200,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(base_url, model, temperature, max_tokens, timeout, transport)

    def _payload(self, messages: list[dict[str, str]], temperature: float, max_tokens: int) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {"temperature": temperature, "num_predict": max_tokens},
        }

    def _result(self, body: dict[str, Any], latency_ms: float) -> LLMResult:
        return LLMResult(
            content=body.get("message", {}).get("content", ""),
            input_tokens=body.get("prompt_eval_count", 0),
            output_tokens=body.get("eval_count", 0),
            latency_ms=latency_ms,
            model=self.model,
            raw_response=body,
        )

    def check_connectivity(self) -> bool:
        """Return ``True`` if Ollama answers and has the configured model pulled."""
        try:
            resp = self._client.get(f"{self.base_url}/api/tags")
        except httpx.HTTPError:
            return False
        if resp.status_code != 200:
            return False
        family = self.model.split(":")[0]
        return any(m.get("name", "").startswith(family) for m in resp.json().get("models", []))
