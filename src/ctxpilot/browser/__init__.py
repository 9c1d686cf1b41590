"""Page-level automation over a remote browser session."""

from ctxpilot.browser.interaction import InteractionAgent, stagehand_runtime_factory

__all__ = ["InteractionAgent", "stagehand_runtime_factory"]
