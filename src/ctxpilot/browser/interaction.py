"""Interaction agent: high-level page operations over a remote session.

Attaches the Stagehand runtime to a session that the
``RemoteSessionClient`` already opened and exposes navigate / wait /
observe / act / extract.  Navigation and readiness timeouts are logged and
returned as ``False``; everything else propagates to the caller.

NOTE ON STAGEHAND API COMPATIBILITY:
This module relies on the runtime's documented page surface:
  - page.goto(url, wait_until=, timeout=)
  - page.observe(instruction, **options) → list of results
  - page.act(result_or_instruction) → result with ``success`` / ``message``
  - page.extract(instruction=, schema=) → schema instance
  - unknown attributes (``wait_for_selector``) forward to the Playwright page

If those signatures change, update this file; the orchestrator never
touches the runtime directly.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Sequence, TypeVar

from playwright.async_api import TimeoutError as PlaywrightTimeout
from pydantic import BaseModel, ValidationError

from ctxpilot.browser.navigation import WaitUntil, goto_with_fallback
from ctxpilot.exceptions import ActionError, ExtractionError
from ctxpilot.models.session import ActionCandidate, Session

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class InteractionAgent:
    """Drive one page of one remote session.

    Args:
        session: The open session to attach to.
        runtime_factory: Callable returning an un-initialized runtime
            (``Stagehand``) for a session.  Tests inject a fake here.
        navigation_timeout_ms: Default ``navigate`` timeout.
        wait_until: Default ``navigate`` readiness condition.
    """

    def __init__(
        self,
        session: Session,
        runtime_factory: Callable[[Session], Any],
        *,
        navigation_timeout_ms: int = 30_000,
        wait_until: WaitUntil = "domcontentloaded",
    ) -> None:
        self.session = session
        self._runtime_factory = runtime_factory
        self._runtime: Any = None
        self._page: Any = None
        self._navigation_timeout_ms = navigation_timeout_ms
        self._wait_until = wait_until
        self.warnings: list[str] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Attach the runtime to the session and grab its page."""
        self._runtime = self._runtime_factory(self.session)
        await self._runtime.init()
        self._page = self._runtime.page
        logger.info("Attached page runtime to session %s", self.session.id)

    async def close(self) -> None:
        """Detach the runtime.  Safe to call more than once."""
        if self._runtime is None:
            return
        try:
            await self._runtime.close()
        except Exception as e:
            logger.warning("Runtime close error for session %s (non-fatal): %s", self.session.id, e)
        finally:
            self._runtime = None
            self._page = None

    async def __aenter__(self) -> "InteractionAgent":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    @property
    def page(self) -> Any:
        if self._page is None:
            raise RuntimeError("Interaction agent not started. Call start() first.")
        return self._page

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def navigate(
        self,
        url: str,
        *,
        timeout_ms: int | None = None,
        wait_until: WaitUntil | None = None,
    ) -> bool:
        """Load *url*.  Returns ``False`` (with a warning) if every wait strategy timed out."""
        try:
            await goto_with_fallback(
                self.page,
                url,
                timeout_ms=timeout_ms or self._navigation_timeout_ms,
                wait_until=wait_until or self._wait_until,
            )
        except PlaywrightTimeout:
            self._warn(f"Navigation to {url} timed out; continuing")
            return False
        logger.info("Navigated to %s", url)
        return True

    async def wait_for_marker(self, selectors: Sequence[str], timeout_ms: int) -> bool:
        """Best-effort readiness probe: wait until any of *selectors* is on the page."""
        if not selectors:
            return True
        selector = ", ".join(selectors)
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeout:
            self._warn(f"No readiness marker ({selector}) within {timeout_ms}ms; continuing")
            return False
        return True

    # ------------------------------------------------------------------
    # Inference-backed operations
    # ------------------------------------------------------------------

    async def observe(self, instruction: str, *, only_visible: bool = True) -> list[ActionCandidate]:
        """Infer the UI actions that would satisfy *instruction* on the current page."""
        options: dict[str, Any] = {}
        if not only_visible:
            options["only_visible"] = False
        results = await self.page.observe(instruction, **options)
        candidates = [ActionCandidate(r) for r in results or []]
        logger.info("Observed %d candidate action(s)", len(candidates))
        return candidates

    async def act(self, action: ActionCandidate | str) -> None:
        """Execute one observed candidate or one natural-language instruction.

        Raises:
            ActionError: If the runtime raises or reports the action as unsuccessful.
        """
        if isinstance(action, ActionCandidate):
            payload, label = action._payload, repr(action)
        else:
            payload, label = action, action

        try:
            result = await self.page.act(payload)
        except Exception as e:
            raise ActionError(label, str(e)) from e

        if result is not None and getattr(result, "success", True) is False:
            raise ActionError(label, getattr(result, "message", "") or "runtime reported failure")
        logger.info("Acted: %s", label)

    async def extract(self, instruction: str, schema: type[T]) -> T:
        """Pull one record matching *schema* out of the current page.

        Raises:
            ExtractionError: If nothing matching the schema is found.
        """
        try:
            result = await self.page.extract(instruction=instruction, schema=schema)
        except Exception as e:
            raise ExtractionError(f"Extraction failed: {e}") from e

        if isinstance(result, schema):
            return result
        data = getattr(result, "data", result)
        if hasattr(data, "model_dump"):
            data = data.model_dump()
        if not data:
            raise ExtractionError(f"No content matching {schema.__name__} found")
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise ExtractionError(f"Extracted data does not match {schema.__name__}: {e}") from e

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def stagehand_runtime_factory(
    *,
    api_key: str,
    project_id: str,
    model_name: str,
    model_api_key: str,
    dom_settle_timeout_ms: int = 3_000,
    verbose: int = 0,
) -> Callable[[Session], Any]:
    """Return a factory that builds a Stagehand instance attached to a given session."""
    from stagehand import Stagehand, StagehandConfig

    def _build(session: Session) -> Any:
        config = StagehandConfig(
            env="BROWSERBASE",
            api_key=api_key,
            project_id=project_id,
            browserbase_session_id=session.id,
            model_name=model_name,
            model_api_key=model_api_key or None,
            dom_settle_timeout_ms=dom_settle_timeout_ms,
            verbose=verbose,
        )
        return Stagehand(config)

    return _build
