"""Session orchestrator state machine definitions."""

from enum import Enum


class SessionState(str, Enum):
    """High-level states of one capture-login / authenticated-task run."""

    NO_CONTEXT = "NO_CONTEXT"
    CONTEXT_CREATED = "CONTEXT_CREATED"
    LOGIN_CAPTURED = "LOGIN_CAPTURED"
    TASK_READY = "TASK_READY"
    DONE = "DONE"


# Initial states: where a run starts depending on whether a context id is on disk
INITIAL_STATES = {SessionState.NO_CONTEXT, SessionState.TASK_READY}

TERMINAL_STATES = {SessionState.DONE}

STATE_TRANSITIONS: dict[SessionState, list[SessionState]] = {
    SessionState.NO_CONTEXT: [SessionState.CONTEXT_CREATED],
    SessionState.CONTEXT_CREATED: [SessionState.LOGIN_CAPTURED],
    SessionState.LOGIN_CAPTURED: [SessionState.TASK_READY],
    SessionState.TASK_READY: [SessionState.DONE],
    SessionState.DONE: [],
}
