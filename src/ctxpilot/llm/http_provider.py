"""Shared plumbing for completion providers that speak JSON over HTTP."""

from __future__ import annotations

import abc
import logging
import time
from typing import Any

import httpx

from ctxpilot.llm.base import LLMProvider, LLMResult

logger = logging.getLogger(__name__)


class HTTPChatProvider(LLMProvider):
    """A provider that POSTs one JSON chat request per call.

    Subclasses say where to send the request, how to shape the payload and
    how to read the reply; timing, error logging and the client live here.

    Args:
        base_url: API root; a trailing slash is dropped.
        model: Model name sent with every request.
        temperature: Default sampling temperature.
        max_tokens: Default max generation tokens.
        timeout: Request timeout in seconds.
        transport: Optional ``httpx`` transport (tests).
        headers: Extra headers for every request (auth).
    """

    chat_path: str = ""
    label: str = "Completion"

    def __init__(
        self,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 200,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = httpx.Client(timeout=timeout, transport=transport, headers=headers)

    @abc.abstractmethod
    def _payload(self, messages: list[dict[str, str]], temperature: float, max_tokens: int) -> dict[str, Any]:
        """Build the request body."""

    @abc.abstractmethod
    def _result(self, body: dict[str, Any], latency_ms: float) -> LLMResult:
        """Turn the decoded response body into an ``LLMResult``."""

    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResult:
        payload = self._payload(
            messages,
            temperature if temperature is not None else self.temperature,
            max_tokens if max_tokens is not None else self.max_tokens,
        )

        start = time.monotonic()
        try:
            resp = self._client.post(f"{self.base_url}{self.chat_path}", json=payload)
            resp.raise_for_status()
            body = resp.json()
        except httpx.HTTPStatusError as e:
            logger.error("%s HTTP error: %s %s", self.label, e.response.status_code, e.response.text[:500])
            raise
        except httpx.TransportError as e:
            logger.error("Cannot reach %s at %s: %s", self.label, self.base_url, e)
            raise

        return self._result(body, (time.monotonic() - start) * 1000)

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()
