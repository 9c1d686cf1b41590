"""Data models for ctxpilot."""

from ctxpilot.models.session import ActionCandidate, CommentRecord, RunReport, Session
from ctxpilot.models.states import STATE_TRANSITIONS, TERMINAL_STATES, SessionState

__all__ = [
    "ActionCandidate",
    "CommentRecord",
    "RunReport",
    "STATE_TRANSITIONS",
    "Session",
    "SessionState",
    "TERMINAL_STATES",
]
