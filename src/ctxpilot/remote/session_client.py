"""Remote browser session client: wraps the Browserbase SDK.

Creates contexts, opens sessions bound to a context, resolves the live
debugger URL and releases sessions.  The SDK client is constructed by the
caller and passed in so that nothing here holds module-level state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from browserbase import APIError, APIStatusError

from ctxpilot.exceptions import PlatformError
from ctxpilot.models.session import Session

if TYPE_CHECKING:
    from browserbase import AsyncBrowserbase

logger = logging.getLogger(__name__)

DEFAULT_SESSION_URL_TEMPLATE = "https://browserbase.com/sessions/{session_id}"


class RemoteSessionClient:
    """Context and session lifecycle on the remote browser platform.

    Args:
        client: An ``AsyncBrowserbase`` SDK client.
        project_id: Platform project that owns contexts and sessions.
        session_url_template: Dashboard URL pattern for a session id.
    """

    def __init__(
        self,
        client: AsyncBrowserbase,
        project_id: str,
        *,
        session_url_template: str = DEFAULT_SESSION_URL_TEMPLATE,
    ) -> None:
        self._bb = client
        self._project_id = project_id
        self._session_url_template = session_url_template

    # ------------------------------------------------------------------
    # Contexts
    # ------------------------------------------------------------------

    async def create_context(self) -> str:
        """Create a new persistable context and return its id.

        Raises:
            PlatformError: If the platform rejects the request.
        """
        try:
            context = await self._bb.contexts.create(project_id=self._project_id)
        except APIError as e:
            raise PlatformError("create_context", str(e)) from e
        logger.info("Created context %s", context.id)
        return context.id

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def open_session(self, context_id: str, persist: bool) -> Session:
        """Open a session that loads *context_id*'s cookies.

        With ``persist=True`` the platform writes cookie changes back into
        the context when the session is released.
        """
        try:
            created = await self._bb.sessions.create(
                project_id=self._project_id,
                browser_settings={"context": {"id": context_id, "persist": persist}},
            )
        except APIError as e:
            raise PlatformError("open_session", str(e)) from e

        session = Session(
            id=created.id,
            context_id=context_id,
            persist=persist,
            connect_url=getattr(created, "connect_url", "") or "",
        )
        logger.info("Opened session %s (context=%s persist=%s)", session.id, context_id, persist)
        return session

    async def debug_url(self, session_id: str) -> str:
        """Return the fullscreen live-debugger URL for a running session."""
        live = await self._bb.sessions.debug(session_id)
        return live.debugger_fullscreen_url

    def session_url(self, session_id: str) -> str:
        """Return the dashboard URL for a session."""
        return self._session_url_template.format(session_id=session_id)

    async def close(self, session: Session) -> None:
        """Release *session*; for ``persist=True`` sessions this finalizes cookie capture."""
        try:
            await self._bb.sessions.update(
                session.id,
                project_id=self._project_id,
                status="REQUEST_RELEASE",
            )
        except APIStatusError as e:
            # The runtime may already have ended the session on detach.
            logger.warning("Release of session %s returned %s (already ended?)", session.id, e.status_code)
            return
        logger.info("Released session %s (persist=%s)", session.id, session.persist)
