"""Human-in-the-loop checkpoints.

The orchestrator suspends at fixed checkpoints (login complete, reply
approved, task complete) until a person confirms.  ``HumanGate`` is the
seam: the console implementation reads a line from stdin, other
implementations can confirm from a web UI or a webhook.  Every wait
accepts an optional cancel event and timeout; with neither it blocks
until confirmation arrives.
"""

from __future__ import annotations

import asyncio
import logging
import sys
import threading
import webbrowser
from typing import Protocol, TextIO, runtime_checkable

from rich.console import Console

from ctxpilot.exceptions import CheckpointCancelled, CheckpointTimeout

logger = logging.getLogger(__name__)


class Checkpoint:
    """Names of the checkpoints the orchestrator waits on."""

    LOGIN_COMPLETE = "login-complete"
    REPLY_APPROVED = "reply-approved"
    TASK_COMPLETE = "task-complete"


@runtime_checkable
class HumanGate(Protocol):
    """Protocol for waiting on a human confirmation."""

    async def wait(
        self,
        checkpoint: str,
        prompt: str,
        *,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        """Return once the human confirms *checkpoint*.

        Raises:
            CheckpointCancelled: If *cancel* is set first.
            CheckpointTimeout: If *timeout* seconds pass first.
        """
        ...


class ConsoleGate:
    """Confirm checkpoints by pressing Enter on the terminal.

    The blocking read runs on a daemon thread so that a cancelled or
    timed-out wait never keeps the interpreter alive at exit.
    """

    def __init__(self, stream: TextIO | None = None, console: Console | None = None) -> None:
        self._stream = stream or sys.stdin
        self._console = console or Console()

    async def wait(
        self,
        checkpoint: str,
        prompt: str,
        *,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        self._console.print(f"\n[yellow]{prompt}[/yellow]\n")
        logger.info("Waiting on checkpoint %s", checkpoint)

        loop = asyncio.get_running_loop()
        line_read: asyncio.Future[str] = loop.create_future()

        def _read() -> None:
            line = self._stream.readline()
            if not loop.is_closed():
                loop.call_soon_threadsafe(_deliver, line)

        def _deliver(line: str) -> None:
            if not line_read.done():
                line_read.set_result(line)

        threading.Thread(target=_read, name=f"gate-{checkpoint}", daemon=True).start()

        waiters: set[asyncio.Future] = {line_read}
        cancel_task: asyncio.Task | None = None
        if cancel is not None:
            cancel_task = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if cancel_task is not None and not cancel_task.done():
                cancel_task.cancel()

        if line_read in done:
            if line_read.result() == "":
                # EOF: nobody is there to confirm.
                raise CheckpointCancelled(prompt)
            logger.info("Checkpoint %s confirmed", checkpoint)
            return
        line_read.cancel()
        if cancel_task is not None and cancel_task in done:
            raise CheckpointCancelled(prompt)
        raise CheckpointTimeout(prompt, timeout or 0.0)


class AutoApproveGate:
    """Confirm every checkpoint immediately.

    For dry runs and tests; records the checkpoints it passed.
    """

    def __init__(self) -> None:
        self.seen: list[str] = []

    async def wait(
        self,
        checkpoint: str,
        prompt: str,
        *,
        cancel: asyncio.Event | None = None,
        timeout: float | None = None,
    ) -> None:
        if cancel is not None and cancel.is_set():
            raise CheckpointCancelled(prompt)
        logger.warning("Auto-approving checkpoint %s", checkpoint)
        self.seen.append(checkpoint)


def open_in_viewer(url: str) -> bool:
    """Open *url* in the platform's default browser.  Returns ``False`` on failure."""
    try:
        opened = webbrowser.open(url)
    except webbrowser.Error as e:
        logger.warning("Could not open %s in a browser: %s", url, e)
        return False
    if not opened:
        logger.warning("No browser available to open %s", url)
    return opened
