"""Data models shared by the session client, interaction agent and orchestrator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from ctxpilot.models.states import SessionState


@dataclass
class Session:
    """A live remote browser session, optionally bound to a persisted context."""

    id: str
    context_id: str | None = None
    persist: bool = False
    connect_url: str = ""


class CommentRecord(BaseModel):
    """A comment pulled off the page; also the schema handed to extraction."""

    author: str = Field(description="Display name of the person who wrote the comment")
    content: str = Field(description="Full text of the comment")


class ActionCandidate:
    """Opaque action inferred by the page runtime.

    Carried verbatim from ``observe`` to ``act``.  Only the interaction
    agent reads the wrapped payload.
    """

    __slots__ = ("_payload",)

    def __init__(self, payload: Any) -> None:
        self._payload = payload

    def __repr__(self) -> str:
        return f"ActionCandidate({self._payload!r})"


@dataclass
class RunReport:
    """Summary of what one orchestrator run did."""

    task: str
    state: SessionState = SessionState.NO_CONTEXT
    context_id: str | None = None
    context_created: bool = False
    sessions: list[str] = field(default_factory=list)
    comment: CommentRecord | None = None
    reply_draft: str = ""
    reply_submitted: bool = False
    actions_taken: int = 0
    warnings: list[str] = field(default_factory=list)
