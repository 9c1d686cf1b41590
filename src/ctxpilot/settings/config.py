"""Configuration loader for ctxpilot using Pydantic settings.

Config precedence (highest wins):
  1. CLI flags (where applicable)
  2. Environment variables (CTXPILOT_* with __ for nesting, then the
     unprefixed BROWSERBASE_API_KEY / BROWSERBASE_PROJECT_ID /
     MODEL_API_KEY / OPENAI_API_KEY names)
  3. .env in the working directory
  4. settings.local.toml
  5. settings.<env>.toml
  6. settings.default.toml
"""

from __future__ import annotations

import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = Path(os.getenv("CTXPILOT_PROJECT_ROOT", _THIS_DIR.parents[2]))
CONFIG_DIR = PROJECT_ROOT / "config"

ENV_VAR_NAME = "CTXPILOT_ENV"
DEFAULT_ENV = "local"

# Unprefixed variable names accepted for (section, field), lowest priority
# after the CTXPILOT_* form.
LEGACY_ENV_ALIASES: dict[tuple[str, str], str] = {
    ("platform", "api_key"): "BROWSERBASE_API_KEY",
    ("platform", "project_id"): "BROWSERBASE_PROJECT_ID",
    ("runtime", "model_api_key"): "MODEL_API_KEY",
    ("llm", "api_key"): "OPENAI_API_KEY",
}


def _resolve_env() -> str:
    return (os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()


def _load_toml(path: Path) -> dict[str, Any]:
    if path.is_file():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _legacy_env_values() -> dict[str, dict[str, str]]:
    dotenv = dotenv_values(".env") if Path(".env").is_file() else {}
    found: dict[str, dict[str, str]] = {}
    for (section, field_name), var in LEGACY_ENV_ALIASES.items():
        value = os.getenv(var) or dotenv.get(var)
        if value:
            found.setdefault(section, {})[field_name] = value
    return found


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class PlatformSettings(BaseSettings):
    """Remote browser platform (Browserbase) credentials and mode."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_PLATFORM__")

    env: str = "BROWSERBASE"  # BROWSERBASE | LOCAL
    api_key: str = ""
    project_id: str = ""
    session_url_template: str = "https://browserbase.com/sessions/{session_id}"

    @field_validator("env")
    @classmethod
    def _upper_env(cls, v: str) -> str:
        return v.strip().upper()


class RuntimeSettings(BaseSettings):
    """Page inference runtime (Stagehand) settings."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_RUNTIME__")

    model_name: str = "gpt-4o"
    model_api_key: str = ""
    dom_settle_timeout_ms: int = 3_000
    verbose: int = 0


class ContextSettings(BaseSettings):
    """Local context record and persistence timing."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_CONTEXT__")

    marker_file: str = "context.txt"
    settle_delay_sec: float = 10.0


class NavigationSettings(BaseSettings):
    """Page load and readiness probe timeouts."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_NAVIGATION__")

    timeout_ms: int = 30_000
    wait_until: str = "domcontentloaded"  # commit | domcontentloaded | load | networkidle
    marker_timeout_ms: int = 15_000


class LLMSettings(BaseSettings):
    """Completion service configuration."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_LLM__")

    provider: str = "openai"  # openai | ollama
    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    temperature: float = 0.7
    max_tokens: int = 200
    timeout_sec: float = 60.0


class IssueTaskSettings(BaseSettings):
    """Defaults for the issue-creation task."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_ISSUE__")

    login_url: str = "https://github.com/login"
    target_url: str = "https://github.com/browserbase/stagehand/issues/new"
    title: str = "My computer is on fire"
    body: str = (
        "I accidentally navigated to your Instagram using Stagehand and caused "
        "my laptop to overheat. Please help."
    )
    marker_selectors: list[str] = Field(
        default_factory=lambda: ["#issue_title", "input[aria-label='Title']"]
    )


class ReplyTaskSettings(BaseSettings):
    """Defaults for the comment-reply task."""

    model_config = SettingsConfigDict(env_prefix="CTXPILOT_REPLY__")

    login_url: str = "https://www.linkedin.com/login"
    target_url: str = ""
    sort_instruction: str = "Open the comment sort menu and choose 'Most recent'"
    extract_instruction: str = (
        "Extract the author name and the text of the first comment in the list "
        "that does not have a reply yet"
    )
    open_reply_instruction: str = "Click the 'Reply' button under the comment written by {author}"
    fill_reply_instruction: str = "Type the following text into the open reply box: {reply}"
    submit_instruction: str = "Click the button that posts the reply"
    prompt_template: str = (
        "Write a short, friendly reply to this comment by {author}.\n"
        "Comment: {content}\n"
        "Reply with the text only, no quotes."
    )
    marker_selectors: list[str] = Field(
        default_factory=lambda: [".comments-comment-item", "[data-testid='comment']", "article"]
    )


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Root ctxpilot settings with nested sections."""

    model_config = SettingsConfigDict(
        env_prefix="CTXPILOT_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    env: str = Field(default_factory=_resolve_env)
    project_root: Path = Field(default=PROJECT_ROOT)
    debug: bool = False

    platform: PlatformSettings = Field(default_factory=PlatformSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    context: ContextSettings = Field(default_factory=ContextSettings)
    navigation: NavigationSettings = Field(default_factory=NavigationSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    issue: IssueTaskSettings = Field(default_factory=IssueTaskSettings)
    reply: ReplyTaskSettings = Field(default_factory=ReplyTaskSettings)

    @model_validator(mode="before")
    @classmethod
    def _merge_toml_files(cls, values: dict[str, Any]) -> dict[str, Any]:
        """Layer TOML config files and unprefixed env names before CTXPILOT_* overrides."""
        defaults = _load_toml(CONFIG_DIR / "settings.default.toml")
        env_name = (values.get("env") or os.getenv(ENV_VAR_NAME) or DEFAULT_ENV).strip()
        env_overrides = _load_toml(CONFIG_DIR / f"settings.{env_name}.toml")
        local_overrides = _load_toml(CONFIG_DIR / "settings.local.toml")
        legacy = _legacy_env_values()

        # Merge: defaults < env-specific < local < legacy env names < explicit values
        merged: dict[str, Any] = {}
        for layer in (defaults, env_overrides, local_overrides, legacy, values):
            for key, val in layer.items():
                if isinstance(val, dict) and isinstance(merged.get(key), dict):
                    merged[key] = {**merged[key], **val}
                else:
                    merged[key] = val
        return merged

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        """Anchor a relative marker file at the working directory the run starts from."""
        if not Path(self.context.marker_file).is_absolute():
            self.context.marker_file = str(Path.cwd() / self.context.marker_file)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton settings instance (cached)."""
    return Settings()
