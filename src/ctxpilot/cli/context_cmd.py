"""CLI commands for the locally recorded browser context."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from ctxpilot.exceptions import CtxPilotError

context_app = typer.Typer(help="Inspect or reset the recorded browser context.")
console = Console()


@context_app.command("show")
def show_context() -> None:
    """Print the recorded context id, if any."""
    from ctxpilot.store import build_context_store

    store = build_context_store()
    context_id = store.load()
    if context_id is None:
        console.print(f"[dim]No context recorded ({store.path}).[/dim]")
        return
    console.print(f"{context_id}  [dim]({store.path})[/dim]")


@context_app.command("clear")
def clear_context() -> None:
    """Forget the recorded context so the next run captures a fresh login."""
    from ctxpilot.store import build_context_store

    store = build_context_store()
    if store.clear():
        console.print(f"[green]✓[/green] Removed {store.path}")
    else:
        console.print(f"[dim]Nothing to remove ({store.path}).[/dim]")


@context_app.command("create")
def create_context(
    force: bool = typer.Option(False, "--force", help="Replace an already recorded context."),
) -> None:
    """Create a new remote context and record its id without running a task."""
    from ctxpilot.settings import get_settings
    from ctxpilot.store import build_context_store

    settings = get_settings()
    store = build_context_store(settings.context.marker_file)
    existing = store.load()
    if existing and not force:
        console.print(f"[yellow]Context {existing} is already recorded.[/yellow] Use --force to replace it.")
        raise typer.Exit(code=1)

    try:
        context_id = asyncio.run(_create(settings))
        store.save(context_id)
    except CtxPilotError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1) from None
    console.print(f"[green]✓[/green] Created context {context_id} ({store.path})")


async def _create(settings) -> str:
    from browserbase import AsyncBrowserbase

    from ctxpilot.orchestrator.session_orchestrator import check_platform_settings
    from ctxpilot.remote.session_client import RemoteSessionClient

    check_platform_settings(settings.platform)
    bb = AsyncBrowserbase(api_key=settings.platform.api_key)
    try:
        return await RemoteSessionClient(bb, settings.platform.project_id).create_context()
    finally:
        await bb.close()
