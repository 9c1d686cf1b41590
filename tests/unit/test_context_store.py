"""Unit tests for the context id marker file."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from ctxpilot.exceptions import ContextStoreError
from ctxpilot.store import build_context_store
from ctxpilot.store.context_store import ContextStore


class TestLoad:
    def test_missing_file_is_none(self, context_store: ContextStore) -> None:
        assert context_store.load() is None

    def test_reads_and_strips(self, context_store: ContextStore, marker_path: Path) -> None:
        marker_path.write_text("ctx_abc123\n")
        assert context_store.load() == "ctx_abc123"

    @pytest.mark.parametrize("content", ["", "   ", "\n\n"])
    def test_blank_file_is_none(self, context_store: ContextStore, marker_path: Path, content: str, caplog) -> None:
        marker_path.write_text(content)
        with caplog.at_level(logging.WARNING):
            assert context_store.load() is None
        assert "empty" in caplog.text

    def test_unreadable_is_none(self, tmp_path: Path, caplog) -> None:
        # A directory where the file should be raises IsADirectoryError (an OSError).
        (tmp_path / "marker").mkdir()
        store = ContextStore(tmp_path / "marker")
        with caplog.at_level(logging.WARNING):
            assert store.load() is None
        assert "treating as absent" in caplog.text


class TestSave:
    def test_writes_exact_id(self, context_store: ContextStore, marker_path: Path) -> None:
        context_store.save("ctx_123")
        assert marker_path.read_text() == "ctx_123"

    def test_overwrites(self, context_store: ContextStore, marker_path: Path) -> None:
        marker_path.write_text("ctx_old")
        context_store.save("ctx_new")
        assert marker_path.read_text() == "ctx_new"
        assert context_store.load() == "ctx_new"

    def test_creates_parent_dirs(self, tmp_path: Path) -> None:
        store = ContextStore(tmp_path / "nested" / "dir" / "context.txt")
        store.save("ctx_9")
        assert store.load() == "ctx_9"

    def test_unwritable_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("x")
        store = ContextStore(blocker / "context.txt")
        with pytest.raises(ContextStoreError) as exc_info:
            store.save("ctx_1")
        assert exc_info.value.path == str(blocker / "context.txt")


class TestClear:
    def test_removes_marker(self, context_store: ContextStore, marker_path: Path) -> None:
        marker_path.write_text("ctx_1")
        assert context_store.clear() is True
        assert not marker_path.exists()

    def test_nothing_to_remove(self, context_store: ContextStore) -> None:
        assert context_store.clear() is False


class TestFactory:
    def test_defaults_to_settings_path(self, tmp_path: Path) -> None:
        store = build_context_store()
        assert store.path == tmp_path / "context.txt"

    def test_explicit_path(self, tmp_path: Path) -> None:
        store = build_context_store(tmp_path / "other.txt")
        assert store.path == tmp_path / "other.txt"
