"""OpenAI-compatible chat completions provider.

Talks to any endpoint that implements ``POST /chat/completions`` with
bearer-token auth (OpenAI, Azure-style gateways, vLLM, LiteLLM proxies).
"""

from __future__ import annotations

from typing import Any

import httpx

from ctxpilot.llm.base import LLMResult
from ctxpilot.llm.http_provider import HTTPChatProvider


class OpenAICompatProvider(HTTPChatProvider):
    """LLM provider for OpenAI-style ``/chat/completions`` endpoints.

    Args:
        api_key: Bearer token.
        base_url: API root, including the version segment (``.../v1``).
    """

    chat_path = "/chat/completions"
    label = "Completion endpoint"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        temperature: float = 0.7,
        max_tokens: int = 200,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url,
            model,
            temperature,
            max_tokens,
            timeout,
            transport,
            headers={"Authorization": f"Bearer {api_key}"},
        )

    def _payload(self, messages: list[dict[str, str]], temperature: float, max_tokens: int) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    def _result(self, body: dict[str, Any], latency_ms: float) -> LLMResult:
        choices = body.get("choices") or [{}]
        usage = body.get("usage") or {}
        return LLMResult(
            content=(choices[0].get("message") or {}).get("content") or "",
            input_tokens=usage.get("prompt_tokens", 0),
            output_tokens=usage.get("completion_tokens", 0),
            latency_ms=latency_ms,
            model=body.get("model", self.model),
            raw_response=body,
        )

    def check_connectivity(self) -> bool:
        """Return ``True`` if the endpoint answers ``GET /models`` with 200."""
        try:
            return self._client.get(f"{self.base_url}/models").status_code == 200
        except httpx.HTTPError:
            return False
