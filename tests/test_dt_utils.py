"""Unit tests for utils/dt_utils.py and utils/math_utils.py.

Pure functions - no store or coordinator needed.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from remindme.utils import dt_utils
from remindme.utils.math_utils import adherence_score
from remindme.utils.search_utils import expand_query, matches_any

# =============================================================================
# Clock parsing
# =============================================================================


class TestParseClock:
    """Tests for parse_clock / format_clock."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("00:00", 0),
            ("08:30", 510),
            ("8:05", 485),
            ("23:59", 1439),
        ],
    )
    def test_valid_clocks(self, value: str, expected: int) -> None:
        """Test that valid HH:MM strings convert to minutes since midnight."""
        assert dt_utils.parse_clock(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "", None, "12", 720])
    def test_invalid_clocks_return_none(self, value: object) -> None:
        """Test that malformed clocks are treated as no time."""
        assert dt_utils.parse_clock(value) is None  # type: ignore[arg-type]

    def test_format_clock_pads(self) -> None:
        """Test that format_clock zero-pads hours and minutes."""
        assert dt_utils.format_clock(485) == "08:05"
        assert dt_utils.format_clock(0) == "00:00"

    def test_combine_clock(self) -> None:
        """Test combining a date and a clock."""
        assert dt_utils.combine_clock(date(2024, 1, 1), "20:15") == datetime(
            2024, 1, 1, 20, 15
        )
        assert dt_utils.combine_clock(date(2024, 1, 1), "bad") is None


# =============================================================================
# Calendar arithmetic
# =============================================================================


class TestDaysBetween:
    """Tests for days_between."""

    def test_same_day_is_zero(self) -> None:
        """Test that the start date itself is day 0."""
        assert dt_utils.days_between("2024-01-01", "2024-01-01") == 0

    def test_counts_calendar_days(self) -> None:
        """Test forward and backward differences."""
        assert dt_utils.days_between("2024-01-01", "2024-01-04") == 3
        assert dt_utils.days_between("2024-01-04", "2024-01-01") == -3

    def test_crosses_month_and_leap_day(self) -> None:
        """Test that month ends and Feb 29 are counted correctly."""
        assert dt_utils.days_between("2024-02-28", "2024-03-01") == 2

    def test_invalid_dates_return_none(self) -> None:
        """Test that unparseable dates return None instead of raising."""
        assert dt_utils.days_between("yesterday", "2024-01-01") is None


class TestParsing:
    """Tests for date and timestamp parsing."""

    def test_parse_date_formats(self) -> None:
        """Test ISO and slash-separated dates."""
        assert dt_utils.dt_parse_date("2024-01-05") == date(2024, 1, 5)
        assert dt_utils.dt_parse_date("2024/01/05") == date(2024, 1, 5)
        assert dt_utils.dt_parse_date("05.01.2024") is None

    def test_parse_naive_timestamp_is_local(self) -> None:
        """Test that naive ISO timestamps are taken as local time."""
        assert dt_utils.dt_parse_timestamp("2024-01-01T08:15:00") == datetime(
            2024, 1, 1, 8, 15
        )

    def test_parse_aware_timestamp_uses_default_zone(self) -> None:
        """Test that aware timestamps are converted to the configured zone."""
        dt_utils.set_default_timezone(timezone(timedelta(hours=2)))
        assert dt_utils.dt_parse_timestamp("2024-01-01T08:00:00Z") == datetime(
            2024, 1, 1, 10, 0
        )

    def test_parse_invalid_timestamp(self) -> None:
        """Test that garbage timestamps return None."""
        assert dt_utils.dt_parse_timestamp("not a time") is None

    @pytest.mark.parametrize(
        ("label", "expected"),
        [
            ("Every 4 Hours", 4),
            ("every 1 hour", 1),
            ("Every 0 Hours", None),
            ("Daily", None),
        ],
    )
    def test_parse_interval_hours(self, label: str, expected: int | None) -> None:
        """Test extraction of N from "Every N Hours"."""
        assert dt_utils.parse_interval_hours(label) == expected


# =============================================================================
# Math and search helpers
# =============================================================================


class TestAdherenceScore:
    """Tests for adherence_score."""

    def test_no_due_doses_scores_full(self) -> None:
        """Test that an empty window scores 100."""
        assert adherence_score(0, 0) == 100

    def test_rounds_half_up(self) -> None:
        """Test rounding of fractional percentages."""
        assert adherence_score(2, 1) == 67
        assert adherence_score(1, 1) == 50
        assert adherence_score(1, 7) == 13  # 12.5 rounds up


class TestSearchHelpers:
    """Tests for synonym expansion and matching."""

    def test_expand_query_adds_synonyms(self) -> None:
        """Test that abbreviations expand to their long forms."""
        terms = expand_query("Dr visit", {"dr": ["doctor"], "visit": ["appointment"]})
        assert terms == ["dr visit", "doctor visit", "dr appointment"]

    def test_matches_any_ignores_non_strings(self) -> None:
        """Test that missing fields never match."""
        assert matches_any(["pill"], None, 3, "Morning Pill")
        assert not matches_any(["pill"], None, "Walk")
