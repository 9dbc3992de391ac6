"""Tests for StatisticsEngine - monthly adherence reports.

The reports re-expand each day, so the fixtures below are ordinary reminder
definitions with their logs inline.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pytest

from remindme import const
from remindme.engines.instance_engine import InstanceEngine
from remindme.engines.statistics_engine import StatisticsEngine

SETTINGS = {"sleepStart": "22:00", "sleepEnd": "08:00"}

# Wednesday 13:00, one hour after the daily pill
NOW = datetime(2024, 1, 3, 13, 0)


@pytest.fixture
def pill_with_first_dose(daily_pill: dict[str, Any]) -> dict[str, Any]:
    """Daily pill whose 2024-01-01 dose was taken."""
    daily_pill["logs"] = {
        "2024-01-01_12:00": {"status": "taken", "takenAt": "2024-01-01T12:03:00"}
    }
    return daily_pill


# =============================================================================
# Day classification
# =============================================================================


class TestClassifyDay:
    """Tests for the month grid cell state."""

    @pytest.mark.parametrize(
        ("taken", "missed", "total", "future", "expected"),
        [
            (2, 0, 2, False, const.DAY_STATE_PERFECT),
            (0, 2, 2, False, const.DAY_STATE_MISSED),
            (1, 1, 2, False, const.DAY_STATE_PARTIAL),
            (1, 0, 2, False, const.DAY_STATE_PARTIAL),
            (0, 0, 0, False, const.DAY_STATE_NONE),
            (0, 0, 3, True, const.DAY_STATE_NONE),
        ],
    )
    def test_classify_day(
        self, taken: int, missed: int, total: int, future: bool, expected: str
    ) -> None:
        """Test each grid state."""
        assert StatisticsEngine.classify_day(taken, missed, total, future) == expected


class TestClassifyInstance:
    """Tests for report-side instance classification."""

    def test_past_upcoming_counts_as_missed(self, daily_pill: dict[str, Any]) -> None:
        """Test the report view of a dose inside its grace window."""
        [instance] = InstanceEngine.expand("2024-01-03", [daily_pill], SETTINGS, NOW)
        assert instance["status"] == const.STATUS_UPCOMING
        assert StatisticsEngine.classify_instance(instance, NOW) == const.STATUS_MISSED

    def test_snoozed_counts_as_upcoming(self) -> None:
        """Test that a snoozed instance is not counted against the user."""
        instance = {"date": "2024-01-03", "displayTime": "12:30", "status": "snoozed"}
        assert StatisticsEngine.classify_instance(instance, NOW) == const.STATUS_UPCOMING

    def test_untimed_today_is_not_past(self) -> None:
        """Test that untimed instances wait for the end of the day."""
        instance = {"date": "2024-01-03", "displayTime": None, "status": "upcoming"}
        assert not StatisticsEngine.is_past(instance, NOW)


# =============================================================================
# Month report
# =============================================================================


class TestMonthStats:
    """Tests for calculate_month_stats."""

    def test_month_totals_and_score(
        self, pill_with_first_dose: dict[str, Any]
    ) -> None:
        """Test counts for a daily pill taken once in three due days."""
        stats = StatisticsEngine.calculate_month_stats(
            2024, 1, [pill_with_first_dose], SETTINGS, NOW
        )
        assert stats["taken"] == 1
        assert stats["missed"] == 2
        assert stats["upcoming"] == 28
        assert stats["total"] == 31
        assert stats["score"] == 33
        assert stats["days"][1] == const.DAY_STATE_PERFECT
        assert stats["days"][2] == const.DAY_STATE_MISSED
        assert stats["days"][3] == const.DAY_STATE_MISSED
        assert stats["days"][4] == const.DAY_STATE_NONE
        assert len(stats["days"]) == 31

    def test_day_in_progress_is_partial(self, multivitamin: dict[str, Any]) -> None:
        """Test a day with one dose taken and one still ahead."""
        multivitamin["logs"] = {"2024-01-01_breakfast": {"status": "taken"}}
        stats = StatisticsEngine.calculate_month_stats(
            2024, 1, [multivitamin], SETTINGS, datetime(2024, 1, 1, 12, 0)
        )
        assert stats["days"][1] == const.DAY_STATE_PARTIAL
        assert stats["score"] == 100

    def test_empty_month_scores_full(self) -> None:
        """Test the default score when nothing was due."""
        stats = StatisticsEngine.calculate_month_stats(2024, 2, [], SETTINGS, NOW)
        assert stats["score"] == const.DEFAULT_ADHERENCE_SCORE
        assert stats["total"] == 0
        assert len(stats["days"]) == 29
        assert set(stats["days"].values()) == {const.DAY_STATE_NONE}


class TestDayEvents:
    """Tests for get_day_events."""

    def test_past_upcoming_reported_missed(
        self, pill_with_first_dose: dict[str, Any]
    ) -> None:
        """Test that the report list marks overdue doses missed."""
        [today] = StatisticsEngine.get_day_events(
            "2024-01-03", [pill_with_first_dose], SETTINGS, NOW
        )
        assert today["status"] == const.STATUS_MISSED
        [first] = StatisticsEngine.get_day_events(
            "2024-01-01", [pill_with_first_dose], SETTINGS, NOW
        )
        assert first["status"] == const.STATUS_TAKEN
        assert first["takenAt"] == "2024-01-01T12:03:00"
