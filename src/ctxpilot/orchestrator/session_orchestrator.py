"""Session orchestrator: state machine that captures a login once and reuses it.

States::

    NO_CONTEXT ─► CONTEXT_CREATED ─► LOGIN_CAPTURED ─► TASK_READY ─► DONE
                                                          ▲
    (context id already on disk) ─────────────────────────┘

* ``NO_CONTEXT``: create a context remotely and record its id locally
  before any session is opened.
* ``CONTEXT_CREATED``: open a ``persist=True`` session on the login page,
  wait for the human to log in, release the session (cookie capture),
  let persistence settle.
* ``LOGIN_CAPTURED``: settle once more, then reuse the same context id.
* ``TASK_READY``: open a ``persist=False`` session on the task page, run
  the task, wait for the final confirmation, release the session.

All collaborators are passed in; nothing here reaches for a global client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from rich.console import Console
from rich.panel import Panel

from ctxpilot.exceptions import ConfigurationError, StateTransitionError
from ctxpilot.human.gate import Checkpoint, open_in_viewer
from ctxpilot.models.session import RunReport, Session
from ctxpilot.models.states import INITIAL_STATES, STATE_TRANSITIONS, SessionState

if TYPE_CHECKING:
    from ctxpilot.browser.interaction import InteractionAgent
    from ctxpilot.human.gate import HumanGate
    from ctxpilot.llm.base import LLMProvider
    from ctxpilot.orchestrator.tasks import AutomationTask
    from ctxpilot.remote.session_client import RemoteSessionClient
    from ctxpilot.settings.config import PlatformSettings, Settings
    from ctxpilot.store.context_store import ContextStore

logger = logging.getLogger(__name__)


def check_platform_settings(platform: PlatformSettings) -> None:
    """Raise ``ConfigurationError`` unless the platform can persist a login.

    Called before any client is constructed or remote call is made.
    """
    if platform.env == "LOCAL":
        raise ConfigurationError(
            "Platform mode is LOCAL. Set CTXPILOT_PLATFORM__ENV=BROWSERBASE: "
            "capturing a login needs a remote, persistable session."
        )
    missing = [
        name
        for name, value in (("api key", platform.api_key), ("project id", platform.project_id))
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Browserbase {' and '.join(missing)} not set. "
            "Set BROWSERBASE_API_KEY and BROWSERBASE_PROJECT_ID (or CTXPILOT_PLATFORM__*)."
        )


class SessionOrchestrator:
    """Drive one capture-login / authenticated-task run.

    Args:
        store: Local context id record.
        client: Remote session client.
        agent_factory: Builds an (unstarted) ``InteractionAgent`` for a session.
        gate: Human checkpoint implementation.
        settings: Resolved settings.
        llm: Optional completion service for tasks that draft text.
        viewer: Opens a URL for the human (default: system browser).
        sleep: Awaitable delay used for settle waits.
        console: Rich console for announcements.
        checkpoint_timeout: Optional timeout for every human checkpoint.
    """

    def __init__(
        self,
        *,
        store: ContextStore,
        client: RemoteSessionClient,
        agent_factory: Callable[[Session], InteractionAgent],
        gate: HumanGate,
        settings: Settings,
        llm: LLMProvider | None = None,
        viewer: Callable[[str], Any] = open_in_viewer,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        console: Console | None = None,
        checkpoint_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._client = client
        self._agent_factory = agent_factory
        self._gate = gate
        self._settings = settings
        self._llm = llm
        self._viewer = viewer
        self._sleep = sleep
        self._console = console or Console()
        self._checkpoint_timeout = checkpoint_timeout
        self._cancel = asyncio.Event()
        self.state: SessionState | None = None

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    async def run(self, task: AutomationTask) -> RunReport:
        """Run *task* with a cached login, capturing the login first if needed.

        Raises:
            ConfigurationError: Before any remote call, if credentials are
                missing or the platform mode cannot persist contexts.
        """
        self.preflight()
        report = RunReport(task=task.name)

        context_id = self._store.load()
        if context_id:
            logger.info("Found existing context id %s", context_id)
            self._enter(SessionState.TASK_READY, report)
        else:
            self._enter(SessionState.NO_CONTEXT, report)
            context_id = await self._create_context(report)
            await self._capture_login(context_id, task, report)
            self._announce(
                f"Waiting {self._settle_delay:.0f} seconds before opening the persisted context session..."
            )
            await self._sleep(self._settle_delay)
            self._transition(SessionState.TASK_READY, report)

        report.context_id = context_id
        await self._run_task(context_id, task, report)
        self._transition(SessionState.DONE, report)
        logger.info(
            "Run %s finished: context=%s created=%s actions=%d warnings=%d",
            task.name,
            context_id,
            report.context_created,
            report.actions_taken,
            len(report.warnings),
        )
        return report

    def preflight(self) -> None:
        """Reject configurations that cannot persist a login."""
        check_platform_settings(self._settings.platform)

    def cancel(self) -> None:
        """Abort any pending human checkpoint with ``CheckpointCancelled``."""
        self._cancel.set()

    # ------------------------------------------------------------------
    # NO_CONTEXT / CONTEXT_CREATED
    # ------------------------------------------------------------------

    async def _create_context(self, report: RunReport) -> str:
        context_id = await self._client.create_context()
        self._console.print(f"Created new context: [bold]{context_id}[/bold]")
        self._store.save(context_id)
        report.context_created = True
        report.context_id = context_id
        self._transition(SessionState.CONTEXT_CREATED, report)
        return context_id

    async def _capture_login(self, context_id: str, task: AutomationTask, report: RunReport) -> None:
        session = await self._client.open_session(context_id, persist=True)
        report.sessions.append(session.id)
        self._announce(
            f"Session created with ID: {session.id}.\n\n"
            f"Session URL: {self._client.session_url(session.id)}"
        )

        agent = self._agent_factory(session)
        try:
            await agent.start()
            await agent.navigate(task.login_url)
            self._announce(
                "Opening the debugger URL in your default browser. When you log in, "
                "the following session will remember your authentication."
            )
            await self._show_live_view(session, report)
            await self._checkpoint(
                Checkpoint.LOGIN_COMPLETE,
                "Once you're logged in, press enter to continue...",
            )
        finally:
            report.warnings.extend(agent.warnings)
            await agent.close()
            await self._client.close(session)

        self._console.print(
            f"Waiting {self._settle_delay:.0f} seconds for the context to be persisted..."
        )
        await self._sleep(self._settle_delay)
        self._console.print("[green]Ready to open a new session with the persisted context![/green]")
        self._transition(SessionState.LOGIN_CAPTURED, report)

    # ------------------------------------------------------------------
    # TASK_READY
    # ------------------------------------------------------------------

    async def _run_task(self, context_id: str, task: AutomationTask, report: RunReport) -> None:
        session = await self._client.open_session(context_id, persist=False)
        report.sessions.append(session.id)

        nav = self._settings.navigation
        agent = self._agent_factory(session)
        try:
            await agent.start()
            self._announce(
                "Opening the debugger URL in your default browser. This session should "
                "take you to the logged in session if the context was persisted.\n"
                f"[red]If not, delete {self._store.path} and run again.[/red]"
            )
            await self._show_live_view(session, report)
            await agent.navigate(task.target_url)
            await agent.wait_for_marker(task.marker_selectors, nav.marker_timeout_ms)

            await task.run(agent, checkpoint=self._checkpoint, llm=self._llm, report=report)

            await self._checkpoint(
                Checkpoint.TASK_COMPLETE,
                "Check the result in the live view, then press enter to close the session...",
            )
        finally:
            report.warnings.extend(agent.warnings)
            await agent.close()
            await self._client.close(session)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def _settle_delay(self) -> float:
        return self._settings.context.settle_delay_sec

    def _enter(self, state: SessionState, report: RunReport) -> None:
        if state not in INITIAL_STATES:
            raise StateTransitionError("START", state.value)
        logger.info("State -> %s", state.value)
        self.state = state
        report.state = state

    def _transition(self, target: SessionState, report: RunReport) -> None:
        if self.state is None or target not in STATE_TRANSITIONS[self.state]:
            current = self.state.value if self.state else "START"
            raise StateTransitionError(current, target.value)
        logger.info("State %s -> %s", self.state.value, target.value)
        self.state = target
        report.state = target

    async def _checkpoint(self, checkpoint: str, prompt: str) -> None:
        await self._gate.wait(
            checkpoint,
            prompt,
            cancel=self._cancel,
            timeout=self._checkpoint_timeout,
        )

    async def _show_live_view(self, session: Session, report: RunReport) -> None:
        try:
            url = await self._client.debug_url(session.id)
        except Exception as e:
            message = f"Could not fetch the live view URL for session {session.id}: {e}"
            logger.warning(message)
            report.warnings.append(message)
            return
        self._console.print(f"Live view: {url}")
        self._viewer(url)

    def _announce(self, message: str) -> None:
        self._console.print(Panel(message, border_style="blue"))
