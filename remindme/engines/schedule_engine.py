"""Schedule Engine for RemindMe.

Turns a stored reminder definition into one of two schedule shapes and
answers the per-date questions the expansion engine asks:

- Is the reminder active at all on this date (start date / duration gate)?
- Does a basic schedule's frequency put an occurrence on this date?
- Which (time, slot) candidates does the date carry?

Weekday patterns use `dateutil.rrule`; fixed-interval doses are generated
with minutes-since-midnight arithmetic bounded by the user's sleep window.

IMPORTANT: This module must NOT import from coordinator.py or managers.
Only import from const.py, type_defs.py, and utils.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from dateutil.rrule import DAILY, FR, MO, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..utils.dt_utils import (
    days_between,
    dt_parse_date,
    format_clock,
    parse_clock,
    parse_interval_hours,
)

if TYPE_CHECKING:
    from ..type_defs import ReminderData, Settings


# =============================================================================
# SCHEDULE SHAPES
# =============================================================================


@dataclass(frozen=True)
class Frequency:
    """Parsed frequency of a basic schedule.

    Attributes:
        kind: One of const.FREQUENCY_KIND_*
        weekdays: Weekday numbers (Monday = 0) for FREQUENCY_KIND_WEEKDAYS
        interval_hours: Hour step for FREQUENCY_KIND_INTERVAL
        label: The stored label, kept for logging
    """

    kind: str
    weekdays: tuple[int, ...] = ()
    interval_hours: int | None = None
    label: str | None = None


@dataclass(frozen=True)
class BasicSchedule:
    """Single time per occurrence, selected by a day pattern.

    Attributes:
        start: First eligible date
        duration_days: Number of eligible days from start, or None (open-ended)
        explicit_start: True when start came from the definition, not the fallback
        anchor_date: Legacy single-occurrence date (`date`, else `startDate`)
        time: Anchor clock ("HH:MM") as stored, may be malformed
        frequency: Parsed day pattern
        series_done: Legacy whole-series completion flag
    """

    start: date
    duration_days: int | None
    explicit_start: bool
    anchor_date: date | None
    time: str | None
    frequency: Frequency
    series_done: bool = False


@dataclass(frozen=True)
class RecurringSchedule:
    """Course of named daily slots (e.g. breakfast and dinner doses).

    Attributes:
        start: First eligible date
        duration_days: Number of eligible days from start, or None (open-ended)
        slots: Ordered (slot name, clock) pairs; clocks may be malformed
    """

    start: date
    duration_days: int | None
    slots: tuple[tuple[str, str | None], ...]

    def slot_time(self, slot: str) -> str | None:
        """Return the configured clock of a slot, or None."""
        for name, clock in self.slots:
            if name == slot:
                return clock
        return None


Schedule = BasicSchedule | RecurringSchedule


# =============================================================================
# SCHEDULE ENGINE
# =============================================================================


class ScheduleEngine:
    """Pure logic for schedule parsing and date qualification.

    All methods are static - no instance state.
    """

    # date.weekday() -> rrule weekday constant
    RRULE_WEEKDAYS: ClassVar[tuple[Any, ...]] = (MO, TU, WE, TH, FR, SA, SU)

    # =========================================================================
    # Parsing
    # =========================================================================

    @staticmethod
    def parse_frequency(label: str | None) -> Frequency:
        """Parse a stored frequency label.

        Unknown or missing labels behave like "Once": the reminder only shows
        on its anchor date.

        Examples:
            "Daily" → Frequency(kind="daily")
            "Mon, Wed, Fri" → Frequency(kind="weekdays", weekdays=(0, 2, 4))
            "Every 4 Hours" → Frequency(kind="interval", interval_hours=4)
        """
        if not label or not isinstance(label, str):
            return Frequency(kind=const.FREQUENCY_KIND_ONCE, label=None)

        cleaned = label.strip()
        lowered = cleaned.lower()

        if lowered.startswith(const.FREQUENCY_INTERVAL_PREFIX.lower()):
            hours = parse_interval_hours(cleaned)
            if hours is None:
                const.LOGGER.warning(
                    "ScheduleEngine: Unparseable interval frequency %r", label
                )
                return Frequency(kind=const.FREQUENCY_KIND_ONCE, label=label)
            return Frequency(
                kind=const.FREQUENCY_KIND_INTERVAL, interval_hours=hours, label=label
            )
        if lowered == const.FREQUENCY_DAILY.lower():
            return Frequency(kind=const.FREQUENCY_KIND_DAILY, label=label)
        if lowered == const.FREQUENCY_WEEKLY.lower():
            return Frequency(kind=const.FREQUENCY_KIND_WEEKLY, label=label)
        if lowered == const.FREQUENCY_TODAY.lower():
            return Frequency(kind=const.FREQUENCY_KIND_TODAY, label=label)
        if lowered == const.FREQUENCY_ONCE.lower():
            return Frequency(kind=const.FREQUENCY_KIND_ONCE, label=label)

        weekdays = ScheduleEngine._parse_weekday_list(cleaned)
        if weekdays:
            return Frequency(
                kind=const.FREQUENCY_KIND_WEEKDAYS, weekdays=weekdays, label=label
            )

        const.LOGGER.warning(
            "ScheduleEngine: Unknown frequency %r, treating as one-off", label
        )
        return Frequency(kind=const.FREQUENCY_KIND_ONCE, label=label)

    @staticmethod
    def _parse_weekday_list(label: str) -> tuple[int, ...]:
        """Parse "Mon, Wed, Fri" into sorted weekday numbers.

        Returns an empty tuple if any part is not a weekday name.
        """
        days: set[int] = set()
        for part in label.split(","):
            name = part.strip().lower()
            if not name:
                continue
            day = const.WEEKDAY_LOOKUP.get(name)
            if day is None:
                return ()
            days.add(day)
        return tuple(sorted(days))

    @staticmethod
    def _parse_duration(raw: Any) -> int | None:
        """Return a positive day count, or None when unset or malformed."""
        if raw in (None, "", 0):
            return None
        try:
            value = int(raw)
        except (TypeError, ValueError):
            const.LOGGER.warning("ScheduleEngine: Ignoring invalid durationDays %r", raw)
            return None
        return value if value > 0 else None

    @staticmethod
    def parse(reminder: ReminderData | dict[str, Any]) -> Schedule | None:
        """Build the schedule shape of a reminder definition.

        Args:
            reminder: Stored reminder definition

        Returns:
            BasicSchedule or RecurringSchedule, or None when the definition's
            start date cannot be parsed.
        """
        schedule = reminder.get(const.DATA_REMINDER_SCHEDULE)
        if not isinstance(schedule, dict):
            schedule = {}

        raw_start = schedule.get(const.DATA_SCHEDULE_START_DATE) or reminder.get(
            const.DATA_REMINDER_DATE
        )
        start = dt_parse_date(raw_start or const.DEFAULT_START_DATE)
        if start is None:
            const.LOGGER.warning(
                "ScheduleEngine: Reminder %s has invalid start date %r",
                reminder.get(const.DATA_REMINDER_ID),
                raw_start,
            )
            return None

        duration = ScheduleEngine._parse_duration(
            schedule.get(const.DATA_SCHEDULE_DURATION_DAYS)
        )

        if schedule.get(const.DATA_SCHEDULE_TYPE) == const.SCHEDULE_TYPE_RECURRING:
            return RecurringSchedule(
                start=start,
                duration_days=duration,
                slots=ScheduleEngine._parse_slots(reminder, schedule),
            )

        label = schedule.get(const.DATA_SCHEDULE_FREQUENCY)
        if not isinstance(label, str):
            label = reminder.get(const.DATA_REMINDER_FREQUENCY)

        anchor = dt_parse_date(
            reminder.get(const.DATA_REMINDER_DATE)
            or schedule.get(const.DATA_SCHEDULE_START_DATE)
        )

        return BasicSchedule(
            start=start,
            duration_days=duration,
            explicit_start=bool(raw_start),
            anchor_date=anchor,
            time=reminder.get(const.DATA_REMINDER_TIME)
            or schedule.get(const.DATA_SCHEDULE_TIME),
            frequency=ScheduleEngine.parse_frequency(label),
            series_done=(
                reminder.get(const.DATA_REMINDER_STATUS) == const.SERIES_STATUS_DONE
            ),
        )

    @staticmethod
    def _parse_slots(
        reminder: ReminderData | dict[str, Any], schedule: dict[str, Any]
    ) -> tuple[tuple[str, str | None], ...]:
        """Resolve active slot names to their configured clocks.

        Slots listed in `frequency` but missing from `times` are dropped so a
        half-edited course still shows its valid doses.
        """
        names = schedule.get(const.DATA_SCHEDULE_FREQUENCY) or []
        if isinstance(names, str):
            names = [names]
        times = schedule.get(const.DATA_SCHEDULE_TIMES)
        if not isinstance(times, dict):
            times = {}

        slots: list[tuple[str, str | None]] = []
        for name in names:
            if not isinstance(name, str):
                continue
            if name not in times:
                const.LOGGER.warning(
                    "ScheduleEngine: Reminder %s slot %r has no time, skipping",
                    reminder.get(const.DATA_REMINDER_ID),
                    name,
                )
                continue
            if any(existing == name for existing, _ in slots):
                continue
            slots.append((name, times[name]))
        return tuple(slots)

    # =========================================================================
    # Date qualification
    # =========================================================================

    @staticmethod
    def is_active_on(schedule: Schedule, target: date) -> bool:
        """Apply the global start date and duration gate.

        Examples:
            start=2024-01-01, duration_days=3: 2024-01-02 → True, 2024-01-04 → False
        """
        if target < schedule.start:
            return False
        if schedule.duration_days is not None:
            diff = days_between(schedule.start, target)
            if diff is None or diff < 0 or diff >= schedule.duration_days:
                return False
        return True

    @staticmethod
    def occurs_on(schedule: BasicSchedule, target: date, today: date) -> bool:
        """Decide whether a basic schedule puts an occurrence on `target`.

        Args:
            schedule: Parsed basic schedule (already past the global gate)
            target: Date being expanded
            today: The caller's current date (for legacy "Today" reminders)
        """
        if schedule.anchor_date is not None and schedule.anchor_date == target:
            return True

        kind = schedule.frequency.kind
        if kind in (const.FREQUENCY_KIND_DAILY, const.FREQUENCY_KIND_INTERVAL):
            return ScheduleEngine._matches_rule(schedule.start, DAILY, (), target)
        if kind == const.FREQUENCY_KIND_WEEKLY:
            return ScheduleEngine._matches_rule(
                schedule.start, WEEKLY, (schedule.start.weekday(),), target
            )
        if kind == const.FREQUENCY_KIND_WEEKDAYS:
            return ScheduleEngine._matches_rule(
                schedule.start, WEEKLY, schedule.frequency.weekdays, target
            )
        if kind == const.FREQUENCY_KIND_TODAY:
            return schedule.anchor_date is None and target == today
        return False

    @staticmethod
    def _matches_rule(
        start: date, freq: int, weekdays: tuple[int, ...], target: date
    ) -> bool:
        """Check rrule membership of a date.

        The rule starts at most a week before `target`; daily and weekday
        patterns only depend on the weekday once the start gate has passed,
        so old series do not iterate from their original start.
        """
        window_start = max(start, target - timedelta(days=6))
        byweekday = [ScheduleEngine.RRULE_WEEKDAYS[d] for d in weekdays] or None
        # Type stubs expect Literal[0-6], but rrule accepts int at runtime
        rule = rrule(
            freq,  # type: ignore[arg-type]
            dtstart=datetime.combine(window_start, time()),
            byweekday=byweekday,
            until=datetime.combine(target, time()),
        )
        return datetime.combine(target, time()) in rule

    # =========================================================================
    # Candidate slots
    # =========================================================================

    @staticmethod
    def interval_slots(
        schedule: BasicSchedule, target: date, settings: Settings | dict[str, Any]
    ) -> list[str]:
        """Generate the day's fixed-interval dose clocks.

        The first dose is the reminder's own anchor time on its start date,
        otherwise the configured wake time (`sleepEnd`). Doses repeat every N
        hours until `sleepStart` (exclusive) and never roll past midnight.

        Examples:
            "Every 4 Hours" from 08:00, sleepStart 22:00 → 08:00, 12:00, 16:00, 20:00
        """
        hours = schedule.frequency.interval_hours
        if not hours:
            return []

        first: int
        if schedule.explicit_start and schedule.start == target and schedule.time:
            # A malformed anchor time counts as midnight
            first = parse_clock(schedule.time) or 0
        else:
            first = ScheduleEngine._settings_clock(
                settings, const.DATA_SETTINGS_SLEEP_END, const.DEFAULT_SLEEP_END
            )
        limit = ScheduleEngine._settings_clock(
            settings, const.DATA_SETTINGS_SLEEP_START, const.DEFAULT_SLEEP_START
        )

        step = hours * const.MINUTES_PER_HOUR
        clocks: list[str] = []
        current = first
        while current < limit:
            clocks.append(format_clock(current))
            current += step
        return clocks

    @staticmethod
    def _settings_clock(
        settings: Settings | dict[str, Any], key: str, default: str
    ) -> int:
        """Read a settings clock, falling back to the default when malformed."""
        minutes = parse_clock(settings.get(key))
        if minutes is None:
            const.LOGGER.warning(
                "ScheduleEngine: Invalid %s setting %r, using %s",
                key,
                settings.get(key),
                default,
            )
            minutes = parse_clock(default)
        return minutes or 0

    @staticmethod
    def candidate_slots(
        schedule: Schedule,
        target: date,
        settings: Settings | dict[str, Any],
        today: date,
    ) -> list[tuple[str | None, str | None]]:
        """List the (clock, slot name) candidates of a date.

        Recurring courses yield one candidate per slot. Basic schedules yield
        nothing when the date does not qualify, the interval clocks for
        "Every N Hours", and the single anchor time otherwise.
        """
        if isinstance(schedule, RecurringSchedule):
            return [(clock, name) for name, clock in schedule.slots]

        if not ScheduleEngine.occurs_on(schedule, target, today):
            return []
        if schedule.frequency.kind == const.FREQUENCY_KIND_INTERVAL:
            return [
                (clock, None)
                for clock in ScheduleEngine.interval_slots(schedule, target, settings)
            ]
        return [(schedule.time, None)]
