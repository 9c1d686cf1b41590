"""ctxpilot exception hierarchy.

Fatal classes (``ConfigurationError``, ``PlatformError``,
``ContextStoreError``, ``ActionError``) stop a run.  ``CompletionError``
and ``ExtractionError`` are raised by collaborators and handled by the
orchestrator where the workflow allows it.
"""

from __future__ import annotations


class CtxPilotError(Exception):
    """Base exception for all ctxpilot-specific errors."""


class ConfigurationError(CtxPilotError):
    """Raised before any session is opened when required configuration is missing or unusable."""


class PlatformError(CtxPilotError):
    """Raised when the remote browser platform rejects a context or session request.

    Attributes:
        operation: The platform operation that failed (e.g. ``create_context``).
    """

    def __init__(self, operation: str, detail: str) -> None:
        self.operation = operation
        super().__init__(f"Browser platform call {operation!r} failed: {detail}")


class ContextStoreError(CtxPilotError):
    """Raised when the context id cannot be written to the local marker file."""

    def __init__(self, path: str, detail: str) -> None:
        self.path = path
        super().__init__(f"Cannot write context id to {path}: {detail}")


class ActionError(CtxPilotError):
    """Raised when a page action fails to execute."""

    def __init__(self, action: str, detail: str) -> None:
        self.action = action
        super().__init__(f"Action {action!r} failed: {detail}")


class ExtractionError(CtxPilotError):
    """Raised when structured extraction finds no matching content."""


class CompletionError(CtxPilotError):
    """Raised when the completion service cannot produce text for a prompt."""


class CheckpointCancelled(CtxPilotError):
    """Raised when a human checkpoint wait is cancelled."""

    def __init__(self, prompt: str) -> None:
        self.prompt = prompt
        super().__init__(f"Checkpoint cancelled: {prompt}")


class CheckpointTimeout(CtxPilotError):
    """Raised when a human checkpoint is not confirmed within its timeout."""

    def __init__(self, prompt: str, timeout: float) -> None:
        self.prompt = prompt
        self.timeout = timeout
        super().__init__(f"No confirmation within {timeout:.0f}s: {prompt}")


class StateTransitionError(CtxPilotError):
    """Raised when the orchestrator attempts a transition its state table does not allow."""

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Illegal session state transition {current} -> {target}")


class NavigationError(CtxPilotError):
    """Raised when a URL cannot be reached at all (DNS, refused connection, TLS)."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Cannot navigate to {url}: {reason}")
