"""Statistics Engine - monthly adherence reporting.

Design Principles:
    - Stateless: operates on the definitions and settings passed in
    - Derived: counts come from re-expanding each day, so they always agree
      with what the day views show
    - Past-aware: an instance whose time has passed without a log reads as
      missed in reports even inside the 2h grace window
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import as_local_naive, dt_parse_date, parse_clock
from ..utils.math_utils import adherence_score
from .instance_engine import InstanceEngine

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import Instance, MonthStats, ReminderData, Settings


class StatisticsEngine:
    """Stateless report calculations.

    Example:
        stats = StatisticsEngine.calculate_month_stats(
            2024, 1, reminders, settings, now=datetime(2024, 1, 15, 9, 0)
        )
        stats["score"]  # taken / (taken + missed) as a percentage
        stats["days"][3]  # "perfect" | "missed" | "partial" | "none"
    """

    @staticmethod
    def is_past(instance: Instance | dict[str, Any], now: datetime) -> bool:
        """Return True if an instance's display time lies before `now`.

        Untimed instances on today's date are not past until the day ends.
        """
        now = as_local_naive(now)
        day = dt_parse_date(instance.get(const.INSTANCE_DATE))
        if day is None:
            return False
        today = now.date()
        if day != today:
            return day < today
        minutes = parse_clock(instance.get(const.INSTANCE_DISPLAY_TIME))
        if minutes is None:
            return False
        return minutes < now.hour * const.MINUTES_PER_HOUR + now.minute

    @staticmethod
    def classify_instance(instance: Instance | dict[str, Any], now: datetime) -> str:
        """Map an instance onto taken / missed / upcoming for reporting.

        Snoozed counts as upcoming; a past instance still marked upcoming
        counts as missed.
        """
        status = instance.get(const.INSTANCE_STATUS)
        if status == const.STATUS_TAKEN:
            return const.STATUS_TAKEN
        if status == const.STATUS_MISSED:
            return const.STATUS_MISSED
        if status == const.STATUS_UPCOMING and StatisticsEngine.is_past(instance, now):
            return const.STATUS_MISSED
        return const.STATUS_UPCOMING

    @staticmethod
    def classify_day(taken: int, missed: int, total: int, is_future: bool) -> str:
        """Classify one calendar day for the month grid."""
        if is_future or total == 0:
            return const.DAY_STATE_NONE
        if taken == total:
            return const.DAY_STATE_PERFECT
        if missed == total:
            return const.DAY_STATE_MISSED
        # Mixed results or a day still in progress
        return const.DAY_STATE_PARTIAL

    @staticmethod
    def calculate_month_stats(
        year: int,
        month: int,
        reminders: Iterable[ReminderData | dict[str, Any]],
        settings: Settings | dict[str, Any] | None,
        now: datetime,
    ) -> MonthStats:
        """Calculate the adherence report of one calendar month.

        Args:
            year: Calendar year
            month: Calendar month (1-12)
            reminders: Stored reminder definitions
            settings: User settings
            now: Caller's current time

        Returns:
            MonthStats with totals, the adherence score and a per-day state
        """
        now = as_local_naive(now)
        today = now.date()
        definitions = list(reminders)
        _, days_in_month = calendar.monthrange(year, month)

        totals = {
            const.STATUS_TAKEN: 0,
            const.STATUS_MISSED: 0,
            const.STATUS_UPCOMING: 0,
        }
        day_states: dict[int, str] = {}

        for day_number in range(1, days_in_month + 1):
            day = date(year, month, day_number)
            instances = InstanceEngine.expand(day, definitions, settings, now)
            day_counts = dict.fromkeys(totals, 0)
            for instance in instances:
                day_counts[StatisticsEngine.classify_instance(instance, now)] += 1
            for key, value in day_counts.items():
                totals[key] += value
            day_states[day_number] = StatisticsEngine.classify_day(
                day_counts[const.STATUS_TAKEN],
                day_counts[const.STATUS_MISSED],
                len(instances),
                day > today,
            )

        taken = totals[const.STATUS_TAKEN]
        missed = totals[const.STATUS_MISSED]
        stats: MonthStats = {
            const.STATS_TOTAL: sum(totals.values()),
            const.STATS_TAKEN: taken,
            const.STATS_MISSED: missed,
            const.STATS_UPCOMING: totals[const.STATUS_UPCOMING],
            const.STATS_SCORE: adherence_score(
                taken, missed, const.DEFAULT_ADHERENCE_SCORE
            ),
            const.STATS_DAYS: day_states,
        }  # type: ignore[misc]
        const.LOGGER.debug(
            "StatisticsEngine: %04d-%02d taken=%d missed=%d score=%d",
            year,
            month,
            taken,
            missed,
            stats[const.STATS_SCORE],
        )
        return stats

    @staticmethod
    def get_day_events(
        date_str: str | date,
        reminders: Iterable[ReminderData | dict[str, Any]],
        settings: Settings | dict[str, Any] | None,
        now: datetime,
    ) -> list[Instance]:
        """Expand one day for the report list.

        Past instances still marked upcoming are reported as missed.
        """
        events = InstanceEngine.expand(date_str, reminders, settings, now)
        for event in events:
            if event[const.INSTANCE_STATUS] == const.STATUS_UPCOMING and (
                StatisticsEngine.is_past(event, now)
            ):
                event[const.INSTANCE_STATUS] = const.STATUS_MISSED
        return events
