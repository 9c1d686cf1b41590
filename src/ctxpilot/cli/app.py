"""Unified CLI entry point for ctxpilot."""

from __future__ import annotations

import logging
import sys

import typer

from ctxpilot.cli.context_cmd import context_app
from ctxpilot.cli.run_cmd import run_app
from ctxpilot.cli.settings_cmd import settings_app

try:
    from importlib.metadata import version

    VERSION = version("ctxpilot")
except Exception:
    VERSION = "unknown"

# Lowest to highest; mirrors the loader in ctxpilot.settings.config.
CONFIG_PRECEDENCE = (
    "settings.default.toml -> settings.<env>.toml -> settings.local.toml -> .env -> "
    "BROWSERBASE_* / MODEL_API_KEY / OPENAI_API_KEY -> CTXPILOT_* env vars (__ for nesting) -> CLI flags"
)

APP_HELP = (
    "ctxpilot: capture a browser login once, reuse it for authenticated tasks. "
    f"Config precedence: {CONFIG_PRECEDENCE}."
)

app = typer.Typer(add_completion=True, help=APP_HELP)

app.add_typer(run_app, name="run")
app.add_typer(context_app, name="context")
app.add_typer(settings_app, name="settings")


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr; console output stays on stdout."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )

    # Quieten noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug-level logging."),
) -> None:
    """Show help when no subcommand is provided."""
    if version:
        typer.echo(f"ctxpilot {VERSION}")
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()
    configure_logging(verbose)


if __name__ == "__main__":
    app()
