"""CLI commands for inspecting and validating ctxpilot settings."""

from __future__ import annotations

import json

import typer
from rich.console import Console

settings_app = typer.Typer(help="Inspect and validate ctxpilot configuration.")
console = Console()

_SECRET_FIELDS = {"api_key", "model_api_key"}


def _redact(data: dict) -> dict:
    out = {}
    for key, value in data.items():
        if isinstance(value, dict):
            out[key] = _redact(value)
        elif key in _SECRET_FIELDS and value:
            out[key] = "***"
        else:
            out[key] = value
    return out


@settings_app.command("show")
def show_settings() -> None:
    """Display the currently resolved settings (secrets redacted)."""
    from ctxpilot.settings import get_settings

    settings = get_settings()
    console.print_json(json.dumps(_redact(settings.model_dump(mode="json")), indent=2, default=str))


@settings_app.command("validate")
def validate_settings() -> None:
    """Validate settings and report any issues."""
    from ctxpilot.settings import get_settings

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"[red]✗[/red] Settings validation failed: {e}")
        raise typer.Exit(code=1)

    problems = []
    if settings.platform.env == "LOCAL":
        problems.append("platform.env is LOCAL; contexts can only be persisted in BROWSERBASE mode")
    if not settings.platform.api_key:
        problems.append("platform.api_key is not set (BROWSERBASE_API_KEY)")
    if not settings.platform.project_id:
        problems.append("platform.project_id is not set (BROWSERBASE_PROJECT_ID)")

    if problems:
        for problem in problems:
            console.print(f"[red]✗[/red] {problem}")
        raise typer.Exit(code=1)

    console.print("[green]✓[/green] Settings are valid.")
    console.print(f"  Environment: {settings.env}")
    console.print(f"  Context marker: {settings.context.marker_file}")
    console.print(f"  LLM provider: {settings.llm.provider} ({settings.llm.model})")
