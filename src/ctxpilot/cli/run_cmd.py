"""CLI commands that run an authenticated task with a cached login."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.table import Table

from ctxpilot.exceptions import ConfigurationError, CtxPilotError

if TYPE_CHECKING:
    from ctxpilot.models.session import RunReport
    from ctxpilot.orchestrator.tasks import AutomationTask
    from ctxpilot.settings.config import Settings

run_app = typer.Typer(help="Run an authenticated task, capturing the login first if needed.")
console = Console()
logger = logging.getLogger(__name__)


@run_app.command("issue")
def run_issue(
    url: Optional[str] = typer.Option(None, "--url", help="New-issue page URL."),
    title: Optional[str] = typer.Option(None, "--title", help="Issue title."),
    body: Optional[str] = typer.Option(None, "--body", help="Issue description."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Auto-confirm every checkpoint (no human review)."),
) -> None:
    """Fill in and submit a new issue using the persisted login."""
    from ctxpilot.orchestrator.tasks import IssueTask
    from ctxpilot.settings import get_settings

    settings = get_settings()
    task = IssueTask.from_settings(settings.issue, target_url=url or "", title=title or "", body=body or "")
    _run(task, settings, yes=yes, with_llm=False)


@run_app.command("reply")
def run_reply(
    url: Optional[str] = typer.Option(None, "--url", help="Post whose comments to answer."),
    login_url: Optional[str] = typer.Option(None, "--login-url", help="Login page for the site."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Auto-confirm every checkpoint (no human review)."),
) -> None:
    """Answer one unanswered comment with an LLM-drafted reply."""
    from ctxpilot.orchestrator.tasks import CommentReplyTask
    from ctxpilot.settings import get_settings

    settings = get_settings()
    task = CommentReplyTask.from_settings(
        settings.reply,
        reply_max_tokens=settings.llm.max_tokens,
        target_url=url or "",
        login_url=login_url or "",
    )
    if not task.target_url:
        console.print("[red]No post URL given.[/red] Pass --url or set CTXPILOT_REPLY__TARGET_URL.")
        raise typer.Exit(code=1)
    _run(task, settings, yes=yes, with_llm=True)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(task: AutomationTask, settings: Settings, *, yes: bool, with_llm: bool) -> None:
    try:
        report = asyncio.run(execute_task(task, settings, yes=yes, with_llm=with_llm))
    except CtxPilotError as e:
        console.print(f"\n[red]✗[/red] {e}")
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        raise typer.Exit(code=130) from None
    _print_report(report)


async def execute_task(task: AutomationTask, settings: Settings, *, yes: bool, with_llm: bool) -> RunReport:
    """Wire real collaborators from *settings* and run *task*."""
    from browserbase import AsyncBrowserbase

    from ctxpilot.browser.interaction import InteractionAgent, stagehand_runtime_factory
    from ctxpilot.human.gate import AutoApproveGate, ConsoleGate
    from ctxpilot.orchestrator.session_orchestrator import SessionOrchestrator, check_platform_settings
    from ctxpilot.remote.session_client import RemoteSessionClient
    from ctxpilot.store import build_context_store

    check_platform_settings(settings.platform)

    bb = AsyncBrowserbase(api_key=settings.platform.api_key)
    runtime_factory = stagehand_runtime_factory(
        api_key=settings.platform.api_key,
        project_id=settings.platform.project_id,
        model_name=settings.runtime.model_name,
        model_api_key=settings.runtime.model_api_key,
        dom_settle_timeout_ms=settings.runtime.dom_settle_timeout_ms,
        verbose=settings.runtime.verbose,
    )

    def agent_factory(session):
        return InteractionAgent(
            session,
            runtime_factory,
            navigation_timeout_ms=settings.navigation.timeout_ms,
            wait_until=settings.navigation.wait_until,
        )

    llm = _build_llm(settings) if with_llm else None
    orchestrator = SessionOrchestrator(
        store=build_context_store(settings.context.marker_file),
        client=RemoteSessionClient(
            bb,
            settings.platform.project_id,
            session_url_template=settings.platform.session_url_template,
        ),
        agent_factory=agent_factory,
        gate=AutoApproveGate() if yes else ConsoleGate(console=console),
        settings=settings,
        llm=llm,
        console=console,
    )
    try:
        return await orchestrator.run(task)
    finally:
        if llm is not None:
            llm.close()
        await bb.close()


def _build_llm(settings: Settings):
    from ctxpilot.llm.factory import create_llm_provider

    try:
        return create_llm_provider(llm_settings=settings.llm)
    except ConfigurationError as e:
        logger.warning("Completion service unavailable, replies will not be drafted: %s", e)
        return None


def _print_report(report: RunReport) -> None:
    table = Table(title=f"Run summary: {report.task}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Final state", report.state.value)
    table.add_row("Context", f"{report.context_id} ({'new' if report.context_created else 'reused'})")
    table.add_row("Sessions", ", ".join(report.sessions))
    table.add_row("Actions", str(report.actions_taken))
    if report.comment is not None:
        table.add_row("Comment", f"{report.comment.author}: {report.comment.content}")
        table.add_row("Reply", report.reply_draft or "[dim](skipped)[/dim]")
        table.add_row("Posted", "yes" if report.reply_submitted else "no")
    console.print(table)
    for warning in report.warnings:
        console.print(f"[yellow]⚠[/yellow] {warning}")
