"""Local persistence for ctxpilot (the context id marker file)."""

from __future__ import annotations

from pathlib import Path

from ctxpilot.store.context_store import ContextStore


def build_context_store(path: str | Path | None = None) -> ContextStore:
    """Factory: return a ``ContextStore`` honouring ctxpilot settings.

    Args:
        path: Optional override for the marker file; defaults to
            ``get_settings().context.marker_file``.
    """
    if path is None:
        from ctxpilot.settings import get_settings

        path = get_settings().context.marker_file
    return ContextStore(path)


__all__ = ["ContextStore", "build_context_store"]
