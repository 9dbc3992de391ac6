"""Instance Engine - expand reminder definitions into a day's occurrences.

Pure functions: the caller supplies the definitions, the settings and `now`.
The same inputs always produce the same instances in the same order.

Status Derivation (evaluated per instance):
    1. A log of "taken" wins, then a log of "missed".
    2. A snoozed log keeps the instance "snoozed" until it is 2h overdue.
    3. Anything else is "missed" once more than 2h past its effective time,
       otherwise "upcoming".
    A computed "missed" never applies to a date after today.

Malformed data never raises: a reminder that cannot be scheduled contributes
nothing and the rest of the day still expands.
"""

from __future__ import annotations

import copy
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import (
    as_local_naive,
    combine_clock,
    dt_clock_of,
    dt_parse_date,
    dt_parse_timestamp,
    dt_to_iso,
    parse_clock,
)
from .schedule_engine import (
    BasicSchedule,
    RecurringSchedule,
    Schedule,
    ScheduleEngine,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ..type_defs import Instance, InstanceKey, LogEntry, ReminderData, Settings


def merge_settings(settings: Settings | dict[str, Any] | None) -> dict[str, Any]:
    """Overlay user settings on the defaults, ignoring empty values."""
    merged: dict[str, Any] = {
        const.DATA_SETTINGS_SLEEP_START: const.DEFAULT_SLEEP_START,
        const.DATA_SETTINGS_SLEEP_END: const.DEFAULT_SLEEP_END,
        const.DATA_SETTINGS_THEME: const.DEFAULT_THEME,
    }
    if isinstance(settings, dict):
        merged.update({k: v for k, v in settings.items() if v not in (None, "")})
    return merged


def build_instance_key(day: date | str, slot: str | None) -> str:
    """Build the synthetic instance key "<date>_<slot|time|default>"."""
    day_str = day.isoformat() if isinstance(day, date) else day
    return f"{day_str}_{slot or const.INSTANCE_KEY_DEFAULT_SLOT}"


def split_instance_key(instance_key: str) -> tuple[str, str]:
    """Split an instance key into (date, slot). Slot names may contain '_'."""
    day_str, _, slot = instance_key.partition("_")
    return day_str, slot


class InstanceEngine:
    """Stateless reminder expansion and status logic.

    All methods are static - no instance state.
    """

    # =========================================================================
    # Status
    # =========================================================================

    @staticmethod
    def derive_status(
        now: datetime,
        effective_at: datetime,
        log: LogEntry | dict[str, Any] | None = None,
        instance_date: date | None = None,
    ) -> str:
        """Derive the display status of one instance.

        Args:
            now: Caller's current local time
            effective_at: Scheduled time after exception and snooze overrides
            log: Stored log entry of the instance, if any
            instance_date: Calendar date of the instance

        Returns:
            One of const.STATUS_UPCOMING/SNOOZED/TAKEN/MISSED

        Examples:
            Scheduled 11:00, now 13:00 → "upcoming" (exactly 2h is not missed)
            Scheduled 11:00, now 14:01 → "missed"
        """
        log_status = log.get(const.DATA_LOG_STATUS) if isinstance(log, dict) else None
        if log_status == const.STATUS_TAKEN:
            return const.STATUS_TAKEN
        if log_status == const.STATUS_MISSED:
            return const.STATUS_MISSED

        now = as_local_naive(now)
        elapsed = now - effective_at
        if log_status == const.STATUS_SNOOZED and elapsed < const.MISSED_THRESHOLD:
            return const.STATUS_SNOOZED
        if elapsed > const.MISSED_THRESHOLD:
            if instance_date is not None and instance_date > now.date():
                return const.STATUS_UPCOMING
            return const.STATUS_MISSED
        return const.STATUS_UPCOMING

    @staticmethod
    def resolve_snooze(value: Any, instance_date: date) -> datetime | None:
        """Resolve a stored `snoozedUntil` to a naive local datetime.

        Full ISO timestamps are absolute. Bare "HH:MM" values written by older
        clients are taken as a clock on the instance's own date.
        """
        if not value or not isinstance(value, str):
            return None
        if "T" in value:
            return dt_parse_timestamp(value)
        return combine_clock(instance_date, value)

    # =========================================================================
    # Expansion
    # =========================================================================

    @staticmethod
    def expand(
        date_str: str | date,
        reminders: Iterable[ReminderData | dict[str, Any]],
        settings: Settings | dict[str, Any] | None,
        now: datetime,
    ) -> list[Instance]:
        """Expand all reminder definitions into the occurrences of one date.

        Args:
            date_str: Target calendar date ("YYYY-MM-DD")
            reminders: Stored reminder definitions
            settings: User settings (merged over defaults)
            now: Caller's current time; never read from the clock here

        Returns:
            Instances sorted by display time, untimed instances last.
        """
        target = dt_parse_date(date_str)
        if target is None:
            const.LOGGER.warning("InstanceEngine: Invalid target date %r", date_str)
            return []

        now = as_local_naive(now)
        merged = merge_settings(settings)

        instances: list[Instance] = []
        for reminder in reminders:
            if not isinstance(reminder, dict):
                const.LOGGER.warning(
                    "InstanceEngine: Skipping non-mapping reminder %r", reminder
                )
                continue
            instances.extend(
                InstanceEngine._expand_reminder(reminder, target, merged, now)
            )

        instances.sort(key=InstanceEngine.sort_key)
        const.LOGGER.debug(
            "InstanceEngine: Expanded %s into %d instance(s)",
            target.isoformat(),
            len(instances),
        )
        return instances

    @staticmethod
    def sort_key(instance: Instance | dict[str, Any]) -> tuple[bool, str]:
        """Order by display time with untimed instances last."""
        display = instance.get(const.INSTANCE_DISPLAY_TIME)
        return (display is None, display or "")

    @staticmethod
    def _expand_reminder(
        reminder: ReminderData | dict[str, Any],
        target: date,
        settings: dict[str, Any],
        now: datetime,
    ) -> list[Instance]:
        """Expand one definition: natural occurrences, then moved-in ones.

        An occurrence is moved in when an exception re-dates it to `target`,
        or when its snooze runs past midnight into `target`. It is then
        left out of the date its key names. The start/duration gate only
        limits natural occurrences, so a moved occurrence still shows on a
        date outside the course.
        """
        schedule = ScheduleEngine.parse(reminder)
        if schedule is None:
            return []

        exceptions = reminder.get(const.DATA_REMINDER_EXCEPTIONS)
        if not isinstance(exceptions, dict):
            exceptions = {}
        logs = reminder.get(const.DATA_REMINDER_LOGS)
        if not isinstance(logs, dict):
            logs = {}
        target_iso = target.isoformat()

        instances: list[Instance] = []
        seen: set[str] = set()

        def add(key: str, clock: str | None, slot: str | None, moved_in: bool) -> None:
            exception = exceptions.get(key)
            exception_clock = (
                exception.get(const.DATA_EXCEPTION_TIME)
                if isinstance(exception, dict)
                else None
            )
            seen.add(key)
            instances.append(
                InstanceEngine._build_instance(
                    reminder,
                    schedule,
                    key=key,
                    target=target,
                    scheduled_clock=clock,
                    effective_clock=exception_clock or clock,
                    period=slot,
                    now=now,
                    moved_in=moved_in,
                )
            )

        natural = (
            ScheduleEngine.candidate_slots(schedule, target, settings, now.date())
            if ScheduleEngine.is_active_on(schedule, target)
            else []
        )
        for clock, slot in natural:
            key = build_instance_key(target, slot or clock)
            if key in seen or InstanceEngine._is_cancelled(exceptions.get(key)):
                continue
            exception = exceptions.get(key)
            moved_to = (
                exception.get(const.DATA_EXCEPTION_DATE)
                if isinstance(exception, dict)
                else None
            )
            if moved_to and moved_to != target_iso:
                continue
            if InstanceEngine._snoozed_elsewhere(logs.get(key), target):
                continue
            add(key, clock, slot, moved_in=False)

        # Occurrences re-dated here by an exception
        for key, exception in exceptions.items():
            if key in seen or not isinstance(exception, dict):
                continue
            if exception.get(const.DATA_EXCEPTION_DATE) != target_iso:
                continue
            if InstanceEngine._is_cancelled(exception):
                continue
            if InstanceEngine._snoozed_elsewhere(logs.get(key), target):
                continue
            add(
                key,
                InstanceEngine._natural_clock(schedule, key),
                InstanceEngine._key_slot(schedule, key),
                moved_in=True,
            )

        # Occurrences snoozed into this date, including ones an exception had
        # moved away from their own date
        for key, log in logs.items():
            if key in seen or not isinstance(log, dict):
                continue
            if log.get(const.DATA_LOG_STATUS) != const.STATUS_SNOOZED:
                continue
            key_date = dt_parse_date(split_instance_key(key)[0])
            if key_date is None:
                continue
            until = InstanceEngine.resolve_snooze(
                log.get(const.DATA_LOG_SNOOZED_UNTIL), key_date
            )
            if until is None or until.date() != target:
                continue
            if InstanceEngine._is_cancelled(exceptions.get(key)):
                continue
            add(
                key,
                InstanceEngine._natural_clock(schedule, key),
                InstanceEngine._key_slot(schedule, key),
                moved_in=True,
            )

        return instances

    @staticmethod
    def _is_cancelled(exception: Any) -> bool:
        return (
            isinstance(exception, dict)
            and exception.get(const.DATA_EXCEPTION_STATUS)
            == const.EXCEPTION_STATUS_CANCELLED
        )

    @staticmethod
    def _snoozed_elsewhere(log: Any, target: date) -> bool:
        """Return True if a snoozed log points at another calendar date."""
        if not isinstance(log, dict):
            return False
        if log.get(const.DATA_LOG_STATUS) != const.STATUS_SNOOZED:
            return False
        until = InstanceEngine.resolve_snooze(
            log.get(const.DATA_LOG_SNOOZED_UNTIL), target
        )
        return until is not None and until.date() != target

    @staticmethod
    def _key_slot(schedule: Schedule, key: InstanceKey) -> str | None:
        """Slot name of a recurring course key, None for basic schedules."""
        if isinstance(schedule, RecurringSchedule):
            return split_instance_key(key)[1]
        return None

    @staticmethod
    def _natural_clock(schedule: Schedule, key: InstanceKey) -> str | None:
        """Recover the scheduled clock an instance key was generated with."""
        _, slot = split_instance_key(key)
        if isinstance(schedule, RecurringSchedule):
            return schedule.slot_time(slot)
        if parse_clock(slot) is not None:
            return slot
        return schedule.time

    @staticmethod
    def _build_instance(
        reminder: ReminderData | dict[str, Any],
        schedule: Schedule,
        *,
        key: InstanceKey,
        target: date,
        scheduled_clock: str | None,
        effective_clock: str | None,
        period: str | None,
        now: datetime,
        moved_in: bool,
    ) -> Instance:
        """Assemble one instance and derive its status."""
        logs = reminder.get(const.DATA_REMINDER_LOGS)
        log = logs.get(key) if isinstance(logs, dict) else None
        if not isinstance(log, dict):
            log = None

        effective_at = combine_clock(target, effective_clock)
        display_time = effective_clock if effective_at is not None else None

        if log and log.get(const.DATA_LOG_STATUS) == const.STATUS_SNOOZED:
            snoozed_until = InstanceEngine.resolve_snooze(
                log.get(const.DATA_LOG_SNOOZED_UNTIL), target
            )
            if snoozed_until is not None:
                effective_at = snoozed_until
                display_time = dt_clock_of(snoozed_until)

        if effective_at is None:
            # Untimed: only becomes overdue after the day is over
            effective_at = datetime.combine(target, const.UNTIMED_EVALUATION_TIME)

        status = InstanceEngine.derive_status(now, effective_at, log, target)
        if (
            log is None
            and isinstance(schedule, BasicSchedule)
            and schedule.series_done
            and schedule.frequency.kind == const.FREQUENCY_KIND_ONCE
        ):
            status = const.STATUS_TAKEN

        reminder_id = reminder.get(const.DATA_REMINDER_ID)
        return {
            const.INSTANCE_UNIQUE_ID: f"{reminder_id}_{key}",
            const.INSTANCE_KEY: key,
            const.INSTANCE_REMINDER_ID: reminder_id,
            const.INSTANCE_TITLE: reminder.get(const.DATA_REMINDER_TITLE),
            const.INSTANCE_DATE: target.isoformat(),
            const.INSTANCE_TIME: (
                scheduled_clock if parse_clock(scheduled_clock) is not None else None
            ),
            const.INSTANCE_DISPLAY_TIME: display_time,
            const.INSTANCE_PERIOD: period,
            const.INSTANCE_STATUS: status,
            const.INSTANCE_TAKEN_AT: log.get(const.DATA_LOG_TAKEN_AT) if log else None,
            const.INSTANCE_EFFECTIVE_AT: dt_to_iso(effective_at),
            const.INSTANCE_IS_MOVED_IN: moved_in,
            const.INSTANCE_ORIGINAL_STATUS: (
                log.get(const.DATA_LOG_STATUS) if log else None
            )
            or const.STATUS_UPCOMING,
            const.INSTANCE_SOURCE_REMINDER: copy.deepcopy(dict(reminder)),
        }  # type: ignore[typeddict-item]

    # =========================================================================
    # Completion and alarms
    # =========================================================================

    @staticmethod
    def is_instance_done(
        reminder: ReminderData | dict[str, Any] | None,
        instance_key: InstanceKey | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Return True if an instance should no longer ring.

        Taken and missed logs count as done, and so does a snooze that has not
        expired yet. A reminder that no longer exists is done. Without a key,
        the legacy series-level status decides.
        """
        if not reminder:
            return True
        if not instance_key:
            return reminder.get(const.DATA_REMINDER_STATUS) == const.SERIES_STATUS_DONE

        logs = reminder.get(const.DATA_REMINDER_LOGS)
        log = logs.get(instance_key) if isinstance(logs, dict) else None
        if not isinstance(log, dict):
            return False

        status = log.get(const.DATA_LOG_STATUS)
        if status in (const.STATUS_TAKEN, const.STATUS_MISSED):
            return True
        if status == const.STATUS_SNOOZED and now is not None:
            day = dt_parse_date(split_instance_key(instance_key)[0])
            until = InstanceEngine.resolve_snooze(
                log.get(const.DATA_LOG_SNOOZED_UNTIL), day or now.date()
            )
            return until is not None and as_local_naive(now) < until
        return False

    @staticmethod
    def select_due_alarm(
        instances: Iterable[Instance | dict[str, Any]],
        now: datetime,
        is_done: Callable[[str, str], bool] | None = None,
        window_minutes: int = const.ALARM_WINDOW_MINUTES,
    ) -> Instance | None:
        """Pick the first instance that should ring now.

        An instance is due when it is upcoming or snoozed, its effective time
        lies between `window_minutes` ago and now, and `is_done` (re-checking
        the live store) does not report it handled.
        """
        now = as_local_naive(now)
        window = timedelta(minutes=window_minutes)
        for instance in instances:
            if instance.get(const.INSTANCE_STATUS) not in (
                const.STATUS_UPCOMING,
                const.STATUS_SNOOZED,
            ):
                continue
            if instance.get(const.INSTANCE_DISPLAY_TIME) is None:
                continue
            effective_at = dt_parse_timestamp(instance.get(const.INSTANCE_EFFECTIVE_AT))
            if effective_at is None:
                continue
            delta = now - effective_at
            if not timedelta(0) <= delta <= window:
                continue
            if is_done and is_done(
                instance[const.INSTANCE_REMINDER_ID], instance[const.INSTANCE_KEY]
            ):
                continue
            return instance  # type: ignore[return-value]
        return None
