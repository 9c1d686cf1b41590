"""Session orchestration: capture a login into a context, reuse it for tasks."""

from ctxpilot.orchestrator.session_orchestrator import SessionOrchestrator, check_platform_settings
from ctxpilot.orchestrator.tasks import AutomationTask, CommentReplyTask, IssueTask

__all__ = [
    "AutomationTask",
    "CommentReplyTask",
    "IssueTask",
    "SessionOrchestrator",
    "check_platform_settings",
]
