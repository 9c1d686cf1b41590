"""Abstract completion provider interface for ctxpilot."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field

from ctxpilot.exceptions import CompletionError


@dataclass
class LLMResult:
    """Unified result from any LLM provider call."""

    content: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: float = 0.0
    model: str = ""
    raw_response: dict = field(default_factory=dict)


class LLMProvider(abc.ABC):
    """Abstract interface for chat completions."""

    @abc.abstractmethod
    def chat(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResult:
        """Send a chat completion request and return the result.

        Args:
            messages: Chat messages in ``[{"role": ..., "content": ...}]`` format.
            temperature: Override sampling temperature.
            max_tokens: Override max generation tokens.

        Returns:
            An ``LLMResult`` with the generated text and token metrics.
        """

    def complete(self, prompt: str, max_tokens: int | None = None) -> str:
        """Turn a single prompt into text.  One request, no streaming, no retry.

        Raises:
            CompletionError: If the request fails or the provider returns no text.
        """
        try:
            result = self.chat([{"role": "user", "content": prompt}], max_tokens=max_tokens)
        except Exception as e:
            raise CompletionError(f"{type(self).__name__} request failed: {e}") from e
        text = result.content.strip()
        if not text:
            raise CompletionError(f"{type(self).__name__} returned an empty completion")
        return text

    @abc.abstractmethod
    def check_connectivity(self) -> bool:
        """Return True if the provider is reachable and the model is available."""

    def close(self) -> None:
        """Clean up resources. Override if needed."""
