"""ctxpilot test configuration: shared fixtures for unit tests."""

from __future__ import annotations

import itertools
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture()
def anyio_backend():
    """The code under test is built on asyncio; run anyio-marked tests on that backend."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from ctxpilot.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch):
    """Run every test from an empty directory with no platform credentials in the environment."""
    monkeypatch.chdir(tmp_path)
    for var in ("BROWSERBASE_API_KEY", "BROWSERBASE_PROJECT_ID", "MODEL_API_KEY", "OPENAI_API_KEY", "CTXPILOT_ENV"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture()
def settings():
    """Settings with platform credentials and the default 10 s settle delay."""
    from ctxpilot.settings.config import Settings

    return Settings(
        platform={"env": "BROWSERBASE", "api_key": "bb_test_key", "project_id": "proj_test"},
        context={"settle_delay_sec": 10.0},
        navigation={"marker_timeout_ms": 1_000},
    )


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture()
def marker_path(tmp_path: Path) -> Path:
    return tmp_path / "context.txt"


@pytest.fixture()
def context_store(marker_path: Path):
    from ctxpilot.store.context_store import ContextStore

    return ContextStore(marker_path)


@pytest.fixture()
def mock_session_client():
    """Return a ``MagicMock`` shaped like ``RemoteSessionClient``.

    ``create_context`` returns ``ctx_123``; every ``open_session`` returns a
    new ``Session`` numbered ``sess_1``, ``sess_2``, ...
    """
    from ctxpilot.models.session import Session

    counter = itertools.count(1)
    client = MagicMock()
    client.create_context = AsyncMock(return_value="ctx_123")
    client.open_session = AsyncMock(
        side_effect=lambda context_id, persist: Session(
            id=f"sess_{next(counter)}", context_id=context_id, persist=persist
        )
    )
    client.debug_url = AsyncMock(return_value="https://www.browserbase.com/devtools-fullscreen/inspector.html")
    client.session_url = MagicMock(side_effect=lambda sid: f"https://browserbase.com/sessions/{sid}")
    client.close = AsyncMock()
    return client


@pytest.fixture()
def mock_agent():
    """Return a ``MagicMock`` shaped like ``InteractionAgent`` with async operations."""
    from ctxpilot.models.session import ActionCandidate, CommentRecord

    agent = MagicMock()
    agent.warnings = []
    agent.start = AsyncMock()
    agent.close = AsyncMock()
    agent.navigate = AsyncMock(return_value=True)
    agent.wait_for_marker = AsyncMock(return_value=True)
    agent.observe = AsyncMock(return_value=[ActionCandidate({"step": 1}), ActionCandidate({"step": 2})])
    agent.act = AsyncMock()
    agent.extract = AsyncMock(return_value=CommentRecord(author="Jane", content="Great point!"))
    return agent


@pytest.fixture()
def gate():
    from ctxpilot.human.gate import AutoApproveGate

    return AutoApproveGate()


@pytest.fixture()
def mock_llm_provider():
    """Return a ``MagicMock`` conforming to the ``LLMProvider`` interface."""
    from ctxpilot.llm.base import LLMProvider

    mock = MagicMock(spec=LLMProvider)
    mock.check_connectivity.return_value = True
    mock.complete.return_value = "Thanks Jane, glad it resonated!"
    mock.close.return_value = None
    return mock


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require external services or real I/O")
