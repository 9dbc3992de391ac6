# File: coordinator.py
"""Coordinator for RemindMe.

Owns the store and the event emitter, sets up the managers, and exposes the
read API the views poll: day expansions, the upcoming slice used for
notification scheduling, the foreground alarm decision, reports and search.

Writes go through the managers:
    coordinator.reminder_manager.add_reminder({...})
    coordinator.reminder_manager.log_reminder_status(rid, key, "taken")
    coordinator.settings_manager.update_settings({"sleepStart": "21:00"})

Every write persists the store and re-broadcasts; `add_listener` subscribes
a callback to all re-broadcast signals.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from pyee import EventEmitter

from . import const
from .data_builders import ReminderValidationError
from .engines.instance_engine import InstanceEngine
from .engines.statistics_engine import StatisticsEngine
from .managers import HistoryManager, ReminderManager, SettingsManager
from .store import ReminderStore
from .utils.dt_utils import add_days, as_local_naive, dt_now_local, dt_parse_timestamp
from .utils.search_utils import expand_query, matches_any

if TYPE_CHECKING:
    from collections.abc import Callable

    from .type_defs import HistoryEntry, Instance, MonthStats, ReminderData


# Signals re-broadcast to external listeners
LISTENER_SIGNALS = (
    const.SIGNAL_REMINDERS_UPDATED,
    const.SIGNAL_HISTORY_UPDATED,
    const.SIGNAL_SETTINGS_UPDATED,
)


class RemindMeCoordinator:
    """Coordinator for RemindMe.

    Reads never mutate the store. Every read that depends on the time of day
    takes an optional `now`, defaulting to the device clock.
    """

    def __init__(
        self, store: ReminderStore | None = None, emitter: EventEmitter | None = None
    ) -> None:
        """Initialize the coordinator and its managers.

        Args:
            store: Loaded store (default: an in-memory store)
            emitter: Event emitter shared with the host (default: a new one)
        """
        self.store = store if store is not None else ReminderStore()
        self.emitter = emitter if emitter is not None else EventEmitter()
        self._shutdown_callbacks: list[Callable[[], Any]] = []

        self.reminder_manager = ReminderManager(self)
        self.history_manager = HistoryManager(self)
        self.settings_manager = SettingsManager(self)
        for manager in (
            self.reminder_manager,
            self.history_manager,
            self.settings_manager,
        ):
            manager.setup()

    @classmethod
    def from_path(cls, path: str | None) -> RemindMeCoordinator:
        """Create a coordinator over a JSON file, loading it first."""
        store = ReminderStore(path)
        store.load()
        return cls(store)

    # =========================================================================
    # Persistence and listeners
    # =========================================================================

    def persist(self) -> None:
        """Save to persistent storage."""
        self.store.save()

    def on_shutdown(self, callback: Callable[[], Any]) -> None:
        """Register a cleanup callback run by shutdown()."""
        self._shutdown_callbacks.append(callback)

    def shutdown(self) -> None:
        """Remove manager subscriptions and external listeners."""
        while self._shutdown_callbacks:
            self._shutdown_callbacks.pop()()

    def add_listener(self, callback: Callable[[dict[str, Any]], Any]) -> Callable[[], None]:
        """Subscribe to every re-broadcast signal.

        Returns:
            Callable that removes the subscription.
        """
        for signal in LISTENER_SIGNALS:
            self.emitter.on(signal, callback)

        def remove_listener() -> None:
            for signal in LISTENER_SIGNALS:
                if callback in self.emitter.listeners(signal):
                    self.emitter.remove_listener(signal, callback)

        self.on_shutdown(remove_listener)
        return remove_listener

    # =========================================================================
    # Reads
    # =========================================================================

    @property
    def reminders(self) -> list[ReminderData]:
        """Stored definitions (live list; use the managers to change it)."""
        return self.store.reminders  # type: ignore[return-value]

    @staticmethod
    def _now(now: datetime | None) -> datetime:
        return as_local_naive(now) if now is not None else dt_now_local()

    def get_settings(self) -> dict[str, Any]:
        """Return user settings merged over the defaults."""
        return self.settings_manager.get_settings()

    def update_settings(self, updates: dict[str, Any]) -> dict[str, Any]:
        """Validate and store a settings patch."""
        return self.settings_manager.update_settings(updates)

    def get_reminders_for_date(
        self, date_str: str | date, now: datetime | None = None
    ) -> list[Instance]:
        """Expand the stored definitions into the occurrences of one date."""
        return InstanceEngine.expand(
            date_str, self.reminders, self.get_settings(), self._now(now)
        )

    def get_upcoming_instances(
        self, days: int = const.DEFAULT_UPCOMING_DAYS, now: datetime | None = None
    ) -> list[Instance]:
        """Return the still-actionable occurrences of today and the next days.

        Covers today plus `days - 1` following dates; only upcoming or snoozed
        instances whose effective time is not in the past are returned.
        """
        moment = self._now(now)
        settings = self.get_settings()
        upcoming: list[Instance] = []
        for offset in range(max(days, 0)):
            day = add_days(moment.date(), offset)
            for instance in InstanceEngine.expand(day, self.reminders, settings, moment):
                if instance[const.INSTANCE_STATUS] not in (
                    const.STATUS_UPCOMING,
                    const.STATUS_SNOOZED,
                ):
                    continue
                effective_at = dt_parse_timestamp(instance[const.INSTANCE_EFFECTIVE_AT])
                if effective_at is not None and effective_at < moment:
                    continue
                upcoming.append(instance)
        return upcoming

    def is_reminder_done(
        self,
        reminder_id: str | int,
        instance_key: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """Check the live store before ringing an alarm.

        Unknown reminders count as done so a deleted reminder never rings.
        """
        reminder = self.reminder_manager.get_reminder(reminder_id)
        return InstanceEngine.is_instance_done(reminder, instance_key, self._now(now))

    def find_due_alarm(self, now: datetime | None = None) -> Instance | None:
        """Return the first of today's occurrences that should ring now."""
        moment = self._now(now)
        instances = self.get_reminders_for_date(moment.date(), moment)
        return InstanceEngine.select_due_alarm(
            instances,
            moment,
            is_done=lambda rid, key: self.is_reminder_done(rid, key, moment),
        )

    def calculate_month_stats(
        self, year: int, month: int, now: datetime | None = None
    ) -> MonthStats:
        """Monthly adherence report."""
        return StatisticsEngine.calculate_month_stats(
            year, month, self.reminders, self.get_settings(), self._now(now)
        )

    def get_day_events(
        self, date_str: str | date, now: datetime | None = None
    ) -> list[Instance]:
        """One day's report list; past upcoming entries read as missed."""
        return StatisticsEngine.get_day_events(
            date_str, self.reminders, self.get_settings(), self._now(now)
        )

    def get_history(
        self,
        start: date | None = None,
        end: date | None = None,
        reminder_id: str | None = None,
    ) -> list[HistoryEntry]:
        """Return History Ledger entries, optionally filtered."""
        return self.history_manager.get_history(start, end, reminder_id)

    def search_reminders(self, query: str) -> list[ReminderData]:
        """Case-insensitive search of title, instructions and type.

        Common abbreviations match their long form ("dr" finds "Doctor").
        """
        if not query or not query.strip():
            return []
        terms = expand_query(query.strip(), const.SEARCH_SYNONYMS)
        return [
            self.reminder_manager.get_reminder(r[const.DATA_REMINDER_ID])  # type: ignore[misc]
            for r in self.reminders
            if matches_any(
                terms,
                r.get(const.DATA_REMINDER_TITLE),
                r.get(const.DATA_REMINDER_INSTRUCTIONS),
                r.get(const.DATA_REMINDER_TYPE),
            )
        ]

    # =========================================================================
    # Sync
    # =========================================================================

    def apply_remote_snapshot(self, kind: str, data: Any) -> None:
        """Apply a snapshot pushed by the remote sync collaborator.

        Reminders and history replace the local bucket; settings are merged.

        Raises:
            ReminderValidationError: unknown kind or wrongly shaped data
        """
        if kind in (const.SYNC_KIND_REMINDERS, const.SYNC_KIND_HISTORY):
            if not isinstance(data, list):
                raise ReminderValidationError(
                    field="data", value=type(data).__name__, message="expected a list"
                )
            if kind == const.SYNC_KIND_REMINDERS:
                self.reminder_manager.replace_reminders(data)
            else:
                self.history_manager.replace_history(data)
        elif kind == const.SYNC_KIND_SETTINGS:
            if not isinstance(data, dict):
                raise ReminderValidationError(
                    field="data", value=type(data).__name__, message="expected a mapping"
                )
            self.settings_manager.apply_remote(data)
        else:
            raise ReminderValidationError(field="kind", value=kind, message="unknown kind")

        const.LOGGER.debug("Coordinator: Applied remote %s snapshot", kind)
