"""Tests for the History Ledger (HistoryEngine + HistoryManager)."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from remindme import const
from remindme.coordinator import RemindMeCoordinator
from remindme.engines.history_engine import HistoryEngine

KEY = "2024-01-01_12:00"


class TestHistoryEngine:
    """Pure ledger helpers."""

    def test_entry_copies_reminder_fields(self, multivitamin: dict[str, Any]) -> None:
        """Test that category wins over type and the date is local."""
        entry = HistoryEngine.create_history_entry(
            multivitamin, datetime(2024, 1, 1, 8, 3, 27)
        )
        assert entry["reminderId"] == "1"
        assert entry["title"] == "Multivitamin"
        assert entry["type"] == "medication"
        assert entry["status"] == const.STATUS_TAKEN
        assert entry["date"] == "2024-01-01"
        assert entry["timestamp"] == "2024-01-01T08:03:27"
        assert entry["id"]

    def test_filter_by_range_and_reminder(self) -> None:
        """Test inclusive date bounds and reminder filtering."""
        history = [
            {"id": "a", "reminderId": "1", "date": "2024-01-01"},
            {"id": "b", "reminderId": "2", "date": "2024-01-02"},
            {"id": "c", "reminderId": 1, "date": "2024-01-03"},
            {"id": "d", "reminderId": "1", "date": None},
        ]
        in_range = HistoryEngine.filter_entries(
            history, date(2024, 1, 2), date(2024, 1, 3)
        )
        assert [e["id"] for e in in_range] == ["b", "c"]
        by_reminder = HistoryEngine.filter_entries(history, reminder_id="1")
        assert [e["id"] for e in by_reminder] == ["a", "c", "d"]


class TestHistoryManager:
    """Ledger writes driven by status logging."""

    def test_taken_appends_one_entry(
        self, coordinator: RemindMeCoordinator, daily_pill: dict[str, Any]
    ) -> None:
        """Test one entry per taken action, none for missed or snoozed."""
        rid = coordinator.reminder_manager.add_reminder(daily_pill)["id"]
        manager = coordinator.reminder_manager
        now = datetime(2024, 1, 1, 12, 5)

        manager.log_reminder_status(rid, KEY, "missed", now)
        manager.snooze_reminder(rid, KEY, 10, now)
        assert coordinator.get_history() == []

        manager.log_reminder_status(rid, KEY, "taken", now)
        [entry] = coordinator.get_history()
        assert entry["reminderId"] == rid
        assert entry["timestamp"] == "2024-01-01T12:05:00"
        assert entry["type"] == "medication"

    def test_back_dated_entry_uses_taken_time(
        self, coordinator: RemindMeCoordinator, daily_pill: dict[str, Any]
    ) -> None:
        """Test that the ledger date follows the explicit takenAt."""
        rid = coordinator.reminder_manager.add_reminder(daily_pill)["id"]
        coordinator.reminder_manager.log_reminder_status_with_time(
            rid, "2023-12-31_12:00", "taken", "2023-12-31T23:30:00"
        )
        [entry] = coordinator.get_history()
        assert entry["date"] == "2023-12-31"

    def test_complete_with_key_writes_ledger(
        self, coordinator: RemindMeCoordinator, multivitamin: dict[str, Any]
    ) -> None:
        """Test that complete_reminder with a key behaves like taken."""
        rid = coordinator.reminder_manager.add_reminder(multivitamin)["id"]
        coordinator.reminder_manager.complete_reminder(
            rid, "2024-01-01_breakfast", datetime(2024, 1, 1, 8, 2)
        )
        assert len(coordinator.get_history(reminder_id=rid)) == 1

    def test_history_survives_delete(
        self, coordinator: RemindMeCoordinator, daily_pill: dict[str, Any]
    ) -> None:
        """Test that deleting the reminder keeps its entries."""
        rid = coordinator.reminder_manager.add_reminder(daily_pill)["id"]
        coordinator.reminder_manager.log_reminder_status(
            rid, KEY, "taken", datetime(2024, 1, 1, 12, 5)
        )
        coordinator.reminder_manager.delete_reminder(rid)
        assert len(coordinator.get_history(reminder_id=rid)) == 1

    def test_returned_entries_are_copies(
        self, coordinator: RemindMeCoordinator, daily_pill: dict[str, Any]
    ) -> None:
        """Test that callers cannot edit the stored ledger."""
        rid = coordinator.reminder_manager.add_reminder(daily_pill)["id"]
        coordinator.reminder_manager.log_reminder_status(
            rid, KEY, "taken", datetime(2024, 1, 1, 12, 5)
        )
        [entry] = coordinator.get_history()
        entry["status"] = "missed"
        assert coordinator.get_history()[0]["status"] == const.STATUS_TAKEN
