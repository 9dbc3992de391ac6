"""Tests for ReminderStore - JSON document persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from remindme import const
from remindme.store import ReminderStore


class TestReminderStore:
    """Load/save behaviour of the local document."""

    def test_missing_file_starts_empty(self, store_path: Path) -> None:
        """Test that a fresh install gets the default structure."""
        store = ReminderStore(store_path)
        store.load()
        assert store.reminders == []
        assert store.history == []
        assert store.settings == {}
        assert store.data["meta"]["schemaVersion"] == const.SCHEMA_VERSION

    def test_save_and_reload(self, store_path: Path) -> None:
        """Test that a saved document loads back unchanged."""
        store = ReminderStore(store_path)
        store.load()
        store.reminders.append({"id": "1", "title": "Multivitamin"})
        store.settings["sleepStart"] = "21:30"
        store.save()

        reloaded = ReminderStore(store_path)
        reloaded.load()
        assert reloaded.reminders == [{"id": "1", "title": "Multivitamin"}]
        assert reloaded.settings == {"sleepStart": "21:30"}
        assert reloaded.data["meta"]["lastSaved"] is not None

    def test_save_leaves_no_temp_files(self, store_path: Path) -> None:
        """Test that the atomic write cleans up after itself."""
        store = ReminderStore(store_path)
        store.save()
        assert [p.name for p in store_path.parent.iterdir()] == [store_path.name]

    def test_corrupt_file_falls_back(
        self, store_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that unreadable JSON is logged and replaced by defaults."""
        store_path.write_text("{not json", encoding="utf-8")
        store = ReminderStore(store_path)
        with caplog.at_level(logging.ERROR):
            store.load()
        assert store.reminders == []
        assert "Failed to load storage" in caplog.text

    def test_partial_document_gets_missing_buckets(self, store_path: Path) -> None:
        """Test that older documents without some buckets still load."""
        store_path.write_text(
            json.dumps({"reminders": [{"id": "1"}], "settings": None}),
            encoding="utf-8",
        )
        store = ReminderStore(store_path)
        store.load()
        assert store.reminders == [{"id": "1"}]
        assert store.history == []
        assert store.settings == {}

    def test_in_memory_store(self) -> None:
        """Test that a store without a path never touches disk."""
        store = ReminderStore()
        store.load()
        store.reminders.append({"id": "x"})
        store.save()
        assert store.path is None
        assert store.reminders == [{"id": "x"}]

    def test_for_user_paths(self, tmp_path: Path) -> None:
        """Test per-user and guest document names."""
        assert ReminderStore.for_user(tmp_path, "abc123").path == (
            tmp_path / "remindme_buddy_db_abc123.json"
        )
        assert ReminderStore.for_user(tmp_path).path == (
            tmp_path / "remindme_buddy_db_guest.json"
        )
