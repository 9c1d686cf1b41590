"""Settings package for ctxpilot."""

from ctxpilot.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
