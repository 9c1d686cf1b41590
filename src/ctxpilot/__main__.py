"""Allow ``python -m ctxpilot``."""

from ctxpilot.cli.app import app

app()
