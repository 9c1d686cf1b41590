"""Factory for creating completion providers from ctxpilot settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ctxpilot.exceptions import ConfigurationError
from ctxpilot.llm.base import LLMProvider

if TYPE_CHECKING:
    from ctxpilot.settings.config import LLMSettings

logger = logging.getLogger(__name__)


def create_llm_provider(
    provider: str | None = None,
    *,
    llm_settings: LLMSettings | None = None,
) -> LLMProvider:
    """Create an LLM provider from settings or an explicit provider name.

    No retry wrapper is applied: a failed completion degrades to skipping
    the drafted reply, so one attempt is all the workflow wants.

    Args:
        provider: Override provider name (``openai`` or ``ollama``).
            If None, reads from ``llm_settings.provider``.
        llm_settings: Settings section; defaults to ``get_settings().llm``.

    Raises:
        ConfigurationError: If the provider is unknown or lacks an API key.
    """
    if llm_settings is None:
        from ctxpilot.settings import get_settings

        llm_settings = get_settings().llm

    provider_name = (provider or llm_settings.provider).lower().strip()

    base: LLMProvider
    if provider_name == "ollama":
        from ctxpilot.llm.ollama_provider import OllamaProvider

        base = OllamaProvider(
            base_url=llm_settings.base_url,
            model=llm_settings.model,
            temperature=llm_settings.temperature,
            max_tokens=llm_settings.max_tokens,
            timeout=llm_settings.timeout_sec,
        )

    elif provider_name == "openai":
        if not llm_settings.api_key:
            raise ConfigurationError(
                "The openai completion provider needs an API key "
                "(CTXPILOT_LLM__API_KEY or OPENAI_API_KEY)."
            )
        from ctxpilot.llm.openai_provider import OpenAICompatProvider

        base = OpenAICompatProvider(
            api_key=llm_settings.api_key,
            model=llm_settings.model,
            base_url=llm_settings.base_url,
            temperature=llm_settings.temperature,
            max_tokens=llm_settings.max_tokens,
            timeout=llm_settings.timeout_sec,
        )

    else:
        raise ConfigurationError(
            f"Unknown LLM provider: {provider_name!r}. Supported: openai, ollama"
        )

    logger.info("Created LLM provider: provider=%s model=%s", provider_name, llm_settings.model)
    return base
