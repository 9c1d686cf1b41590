"""Completion service abstraction for ctxpilot.

Supports ``openai`` (any OpenAI-compatible endpoint) and ``ollama``
(local) backends through a unified interface.
"""

from ctxpilot.llm.base import LLMProvider, LLMResult
from ctxpilot.llm.factory import create_llm_provider

__all__ = ["LLMProvider", "LLMResult", "create_llm_provider"]
