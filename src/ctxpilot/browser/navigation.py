"""Page navigation with automatic wait-strategy fallback.

Login and task pages on large sites rarely reach ``networkidle`` because
of long-polling and analytics traffic.  ``goto_with_fallback`` tries the
requested ``wait_until`` first and falls back to weaker strategies on
timeout.  Connection-level failures surface immediately as
``NavigationError``.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from ctxpilot.exceptions import NavigationError

logger = logging.getLogger(__name__)

# Playwright error substrings that indicate non-retryable navigation failures.
_NON_RETRYABLE_ERRORS: tuple[str, ...] = (
    "ERR_NAME_NOT_RESOLVED",
    "ERR_CONNECTION_REFUSED",
    "ERR_CONNECTION_RESET",
    "ERR_CONNECTION_CLOSED",
    "ERR_SSL_PROTOCOL_ERROR",
    "ERR_CERT_AUTHORITY_INVALID",
    "ERR_CERT_COMMON_NAME_INVALID",
    "ERR_ADDRESS_UNREACHABLE",
)

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

_FALLBACK_STRATEGY: list[WaitUntil] = ["networkidle", "load", "domcontentloaded"]


async def goto_with_fallback(
    page: Any,
    url: str,
    *,
    timeout_ms: int = 30_000,
    wait_until: WaitUntil = "domcontentloaded",
) -> Any:
    """Navigate *page* to *url*, weakening the wait strategy on each timeout.

    Args:
        page: A page exposing Playwright's ``goto(url, wait_until=, timeout=)``.
        url: Target URL.
        timeout_ms: Timeout per attempt in milliseconds.
        wait_until: Preferred initial wait strategy.

    Returns:
        Whatever ``page.goto`` returned for the successful attempt.

    Raises:
        NavigationError: On DNS/connection/TLS failures.
        PlaywrightTimeout: If every strategy in the chain times out.
    """
    last_error: PlaywrightTimeout | None = None
    for strategy in _build_fallback_chain(wait_until):
        try:
            logger.debug("goto %s (wait_until=%s, timeout=%dms)", url, strategy, timeout_ms)
            return await page.goto(url, wait_until=strategy, timeout=timeout_ms)
        except PlaywrightError as exc:
            error_msg = str(exc)
            for pattern in _NON_RETRYABLE_ERRORS:
                if pattern in error_msg:
                    reason = pattern.replace("ERR_", "").replace("_", " ").lower()
                    raise NavigationError(url, reason) from exc
            if isinstance(exc, PlaywrightTimeout):
                logger.warning("Navigation to %s timed out with wait_until=%s", url, strategy)
                last_error = exc
            else:
                raise

    raise last_error  # type: ignore[misc]


def _build_fallback_chain(preferred: WaitUntil) -> list[WaitUntil]:
    """Return the fallback chain starting from *preferred*.

    If *preferred* is in the default chain, returns from that point onward.
    Otherwise returns ``[preferred]`` followed by the full default chain.
    """
    if preferred in _FALLBACK_STRATEGY:
        idx = _FALLBACK_STRATEGY.index(preferred)
        return _FALLBACK_STRATEGY[idx:]
    return [preferred, *_FALLBACK_STRATEGY]
