"""Authenticated tasks run inside a context-bound session.

Each task knows where to log in, which page to open, which selectors mean
that page is ready, and how to drive it once it is.  Tasks only see the
``InteractionAgent`` surface and treat observed actions as opaque.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol

from ctxpilot.human.gate import Checkpoint
from ctxpilot.models.session import CommentRecord

if TYPE_CHECKING:
    from ctxpilot.browser.interaction import InteractionAgent
    from ctxpilot.llm.base import LLMProvider
    from ctxpilot.models.session import RunReport
    from ctxpilot.settings.config import IssueTaskSettings, ReplyTaskSettings

logger = logging.getLogger(__name__)

# Waits on a named human checkpoint with the run's cancel event and timeout applied.
CheckpointFn = Callable[[str, str], Awaitable[None]]


class AutomationTask(Protocol):
    """What the orchestrator needs from a task."""

    name: str
    login_url: str
    target_url: str
    marker_selectors: list[str]

    async def run(
        self,
        agent: InteractionAgent,
        *,
        checkpoint: CheckpointFn,
        llm: LLMProvider | None,
        report: RunReport,
    ) -> None:
        ...


# ---------------------------------------------------------------------------
# Issue creation
# ---------------------------------------------------------------------------


@dataclass
class IssueTask:
    """Fill in and submit a "new issue" form.

    The form actions are inferred in one observe call (hidden fields
    included) and executed in order.  A failed action ends the run.
    """

    target_url: str
    title: str
    body: str
    login_url: str = "https://github.com/login"
    marker_selectors: list[str] = field(default_factory=list)
    name: str = "issue"

    @classmethod
    def from_settings(cls, s: IssueTaskSettings, **overrides: str) -> "IssueTask":
        values = {
            "target_url": s.target_url,
            "title": s.title,
            "body": s.body,
            "login_url": s.login_url,
        }
        values.update({k: v for k, v in overrides.items() if v})
        return cls(marker_selectors=list(s.marker_selectors), **values)

    def instruction(self) -> str:
        return (
            "Fill in the form with the following values:\n"
            f'\tTitle: "{self.title}"\n'
            f'\tDescription: "{self.body}"\n'
            'Then click the "create" button'
        )

    async def run(
        self,
        agent: InteractionAgent,
        *,
        checkpoint: CheckpointFn,
        llm: LLMProvider | None,
        report: RunReport,
    ) -> None:
        candidates = await agent.observe(self.instruction(), only_visible=False)
        logger.info("Issue form: %d inferred action(s)", len(candidates))
        for candidate in candidates:
            await agent.act(candidate)
            report.actions_taken += 1


# ---------------------------------------------------------------------------
# Comment reply
# ---------------------------------------------------------------------------


@dataclass
class CommentReplyTask:
    """Read one unanswered comment, draft a reply with the LLM, post it after approval.

    Sorting and extraction failures end the run.  Drafting (the completion
    call and locating/filling the reply box) is best-effort: any failure
    there skips the reply and the run proceeds to its final checkpoint.
    """

    target_url: str
    login_url: str
    sort_instruction: str
    extract_instruction: str
    open_reply_instruction: str
    fill_reply_instruction: str
    submit_instruction: str
    prompt_template: str
    reply_max_tokens: int = 200
    marker_selectors: list[str] = field(default_factory=list)
    name: str = "reply"

    @classmethod
    def from_settings(
        cls,
        s: ReplyTaskSettings,
        *,
        reply_max_tokens: int = 200,
        **overrides: str,
    ) -> "CommentReplyTask":
        values = s.model_dump(exclude={"marker_selectors"})
        values.update({k: v for k, v in overrides.items() if v})
        return cls(
            marker_selectors=list(s.marker_selectors),
            reply_max_tokens=reply_max_tokens,
            **values,
        )

    async def run(
        self,
        agent: InteractionAgent,
        *,
        checkpoint: CheckpointFn,
        llm: LLMProvider | None,
        report: RunReport,
    ) -> None:
        await agent.act(self.sort_instruction)
        report.actions_taken += 1

        comment = await agent.extract(self.extract_instruction, CommentRecord)
        report.comment = comment
        logger.info("Selected comment by %s: %.80s", comment.author, comment.content)

        reply = await self._draft_reply(agent, comment, llm, report)
        if reply is None:
            return

        await checkpoint(
            Checkpoint.REPLY_APPROVED,
            f"Reply to {comment.author} is typed in but not posted:\n\n  {reply}\n\n"
            "Check it in the live view, then press enter to post it...",
        )
        await agent.act(self.submit_instruction)
        report.actions_taken += 1
        report.reply_submitted = True

    def build_prompt(self, comment: CommentRecord) -> str:
        return self.prompt_template.format(author=comment.author, content=comment.content)

    async def _draft_reply(
        self,
        agent: InteractionAgent,
        comment: CommentRecord,
        llm: LLMProvider | None,
        report: RunReport,
    ) -> str | None:
        """Generate the reply and type it into the reply box; ``None`` when skipped."""
        if llm is None:
            _skip(report, "No completion service configured; skipping automated reply")
            return None
        try:
            # The providers use a blocking HTTP client; keep the event loop free.
            loop = asyncio.get_running_loop()
            reply = await loop.run_in_executor(
                None, llm.complete, self.build_prompt(comment), self.reply_max_tokens
            )
            await agent.act(self.open_reply_instruction.format(author=comment.author))
            report.actions_taken += 1
            await agent.act(self.fill_reply_instruction.format(reply=reply))
            report.actions_taken += 1
        except Exception as e:
            _skip(report, f"Skipping automated reply: {e}")
            return None
        report.reply_draft = reply
        return reply


def _skip(report: RunReport, message: str) -> None:
    logger.warning(message)
    report.warnings.append(message)
