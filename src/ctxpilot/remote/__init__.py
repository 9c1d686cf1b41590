"""Remote browser platform access."""

from ctxpilot.remote.session_client import RemoteSessionClient

__all__ = ["RemoteSessionClient"]
