"""ctxpilot: reuse a remote browser login across sessions to run authenticated tasks."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("ctxpilot")
except Exception:
    __version__ = "0.0.0"
