"""Reminder Manager - Mutation API for reminder definitions.

This manager handles every write to the reminders bucket:
- Creating, updating and deleting definitions
- Per-occurrence exceptions (move, re-time, cancel)
- Status logging (taken / missed / snoozed) and snoozing
- Replacing the whole bucket from a remote snapshot

ARCHITECTURE:
- ReminderManager = STATEFUL writes against the coordinator's store
- InstanceEngine = Pure expansion of what the writes mean for a day
- HistoryManager listens to REMINDER_TAKEN and writes the ledger

Every mutation persists the store and then emits REMINDERS_UPDATED so
views can re-run the expansion. Mutations never edit a stored definition in
place; the bucket entry is replaced by a rebuilt copy.
"""

from __future__ import annotations

import copy
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const, data_builders as db
from ..data_builders import ReminderValidationError
from ..utils.dt_utils import as_local_naive, dt_clock_of, dt_now_local, dt_to_iso
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..coordinator import RemindMeCoordinator
    from ..type_defs import InstanceKey, ReminderData, ReminderId


__all__ = ["ReminderManager", "ReminderValidationError"]


class ReminderManager(BaseManager):
    """Manager for reminder definitions and their per-instance state.

    Responsibilities:
    - Apply series-level and instance-level edits
    - Record instance logs
    - Emit SIGNAL_REMINDERS_UPDATED and SIGNAL_REMINDER_TAKEN

    NOT responsible for:
    - Writing the history ledger (HistoryManager)
    - Deciding instance status (InstanceEngine)

    Unknown reminder ids are no-ops: the method logs and returns None.
    """

    def __init__(self, coordinator: RemindMeCoordinator) -> None:
        """Initialize the ReminderManager.

        Args:
            coordinator: The main RemindMe coordinator
        """
        super().__init__(coordinator)
        self._coordinator = coordinator

    def setup(self) -> None:
        """Set up the ReminderManager.

        Nothing to subscribe to: reminders only change through this API.
        """

    # =========================================================================
    # Lookup
    # =========================================================================

    @property
    def _reminders(self) -> list[dict[str, Any]]:
        return self._coordinator.store.reminders

    def _find_index(self, reminder_id: ReminderId | int) -> int | None:
        """Find a definition by id; legacy numeric ids compare as strings."""
        wanted = str(reminder_id)
        for index, reminder in enumerate(self._reminders):
            if str(reminder.get(const.DATA_REMINDER_ID)) == wanted:
                return index
        return None

    def get_reminder(self, reminder_id: ReminderId | int) -> ReminderData | None:
        """Return a deep copy of a stored definition, or None."""
        index = self._find_index(reminder_id)
        if index is None:
            return None
        return copy.deepcopy(self._reminders[index])  # type: ignore[return-value]

    def _commit(
        self,
        index: int,
        reminder: ReminderData | dict[str, Any],
        action: str,
        instance_key: InstanceKey | None = None,
    ) -> ReminderData:
        """Replace a definition, persist, and notify listeners."""
        self._reminders[index] = dict(reminder)
        self._coordinator.persist()
        reminder_id = str(reminder.get(const.DATA_REMINDER_ID))
        self.emit(
            const.SIGNAL_REMINDERS_UPDATED,
            reminder_id=reminder_id,
            action=action,
            instance_key=instance_key,
        )
        return copy.deepcopy(reminder)  # type: ignore[return-value]

    def _missing(self, operation: str, reminder_id: ReminderId | int) -> None:
        const.LOGGER.debug(
            "ReminderManager: %s ignored, reminder %s not found", operation, reminder_id
        )

    @staticmethod
    def _require_key(instance_key: InstanceKey | None) -> InstanceKey:
        if not instance_key or not isinstance(instance_key, str):
            raise ReminderValidationError(
                field="instance_key",
                value=instance_key,
                message="an instance key is required",
            )
        return instance_key

    # =========================================================================
    # Series operations
    # =========================================================================

    def add_reminder(self, data: dict[str, Any]) -> ReminderData:
        """Store a new definition verbatim under a freshly generated id.

        Args:
            data: Definition fields (camelCase keys); any `id` is replaced

        Returns:
            Copy of the stored definition including its new id

        Emits:
            SIGNAL_REMINDERS_UPDATED with reminder_id and action "add".
        """
        reminder = db.build_reminder(data)
        self._reminders.append(dict(reminder))
        self._coordinator.persist()
        reminder_id = reminder[const.DATA_REMINDER_ID]
        self.emit(
            const.SIGNAL_REMINDERS_UPDATED,
            reminder_id=reminder_id,
            action=const.ACTION_ADD,
            instance_key=None,
        )
        const.LOGGER.info(
            "Created reminder '%s' (ID: %s)",
            reminder.get(const.DATA_REMINDER_TITLE),
            reminder_id,
        )
        return copy.deepcopy(reminder)

    def update_reminder(
        self,
        reminder_id: ReminderId | int,
        updates: dict[str, Any],
        instance_key: InstanceKey | None = None,
    ) -> ReminderData | None:
        """Update a whole series, or a single occurrence when a key is given.

        Without `instance_key` the updates are shallow-merged into the
        definition. With it, they are merged into `exceptions[instance_key]`,
        which is flagged `isException`.

        Examples:
            # Move one dose to the next day at 09:00
            update_reminder(rid, {"date": "2024-01-02", "time": "09:00"}, "2024-01-01_08:00")
        """
        index = self._find_index(reminder_id)
        if index is None:
            self._missing("update_reminder", reminder_id)
            return None

        existing = self._reminders[index]
        if instance_key:
            reminder = db.build_reminder({}, existing=existing)  # type: ignore[arg-type]
            exceptions = existing.get(const.DATA_REMINDER_EXCEPTIONS)
            previous = (
                exceptions.get(instance_key) if isinstance(exceptions, dict) else None
            )
            db.set_instance_entry(
                reminder,
                const.DATA_REMINDER_EXCEPTIONS,
                instance_key,
                dict(db.build_exception_entry(updates, previous)),
            )
            const.LOGGER.debug(
                "ReminderManager: Exception %s set on reminder %s: %s",
                instance_key,
                reminder_id,
                list(updates.keys()),
            )
            return self._commit(
                index, reminder, const.ACTION_UPDATE_INSTANCE, instance_key
            )

        reminder = db.build_reminder(updates, existing=existing)  # type: ignore[arg-type]
        const.LOGGER.debug(
            "ReminderManager: Updated reminder %s fields %s",
            reminder_id,
            list(updates.keys()),
        )
        return self._commit(index, reminder, const.ACTION_UPDATE)

    def delete_reminder(self, reminder_id: ReminderId | int) -> bool:
        """Remove a definition. Its history entries are kept.

        Returns:
            True if a definition was removed, False for an unknown id.
        """
        index = self._find_index(reminder_id)
        if index is None:
            self._missing("delete_reminder", reminder_id)
            return False

        removed = self._reminders.pop(index)
        self._coordinator.persist()
        self.emit(
            const.SIGNAL_REMINDERS_UPDATED,
            reminder_id=str(reminder_id),
            action=const.ACTION_DELETE,
            instance_key=None,
        )
        const.LOGGER.info(
            "Deleted reminder '%s' (ID: %s)",
            removed.get(const.DATA_REMINDER_TITLE),
            reminder_id,
        )
        return True

    def replace_reminders(self, reminders: list[dict[str, Any]]) -> None:
        """Replace the whole bucket with a remote snapshot."""
        self._reminders[:] = [
            copy.deepcopy(r) for r in reminders if isinstance(r, dict)
        ]
        self._coordinator.persist()
        self.emit(
            const.SIGNAL_REMINDERS_UPDATED,
            reminder_id=None,
            action=const.ACTION_SYNC,
            instance_key=None,
        )

    # =========================================================================
    # Instance operations
    # =========================================================================

    def cancel_instance(
        self, reminder_id: ReminderId | int, instance_key: InstanceKey
    ) -> ReminderData | None:
        """Cancel a single occurrence; it disappears from its day."""
        return self.update_reminder(
            reminder_id,
            {const.DATA_EXCEPTION_STATUS: const.EXCEPTION_STATUS_CANCELLED},
            self._require_key(instance_key),
        )

    def reschedule_instance(
        self,
        reminder_id: ReminderId | int,
        instance_key: InstanceKey,
        *,
        new_date: str | None = None,
        new_time: str | None = None,
    ) -> ReminderData | None:
        """Move a single occurrence to another date and/or time."""
        updates: dict[str, Any] = {}
        if new_date is not None:
            updates[const.DATA_EXCEPTION_DATE] = new_date
        if new_time is not None:
            updates[const.DATA_EXCEPTION_TIME] = db.validate_clock(new_time, "new_time")
        if not updates:
            raise ReminderValidationError(
                field="new_date", value=None, message="nothing to reschedule"
            )
        return self.update_reminder(
            reminder_id, updates, self._require_key(instance_key)
        )

    def log_reminder_status(
        self,
        reminder_id: ReminderId | int,
        instance_key: InstanceKey,
        status: str,
        now: datetime | None = None,
    ) -> ReminderData | None:
        """Record taken / missed / snoozed against one occurrence.

        The new log replaces any previous one for the key. "taken" stamps
        `takenAt` with `now` and appends a History Ledger entry.

        Raises:
            ReminderValidationError: status is not taken, missed or snoozed
        """
        status = db.validate_log_status(status)
        instance_key = self._require_key(instance_key)
        moment = as_local_naive(now) if now is not None else dt_now_local()
        return self._log(reminder_id, instance_key, status, moment)

    def log_reminder_status_with_time(
        self,
        reminder_id: ReminderId | int,
        instance_key: InstanceKey,
        status: str,
        taken_at: datetime | str,
    ) -> ReminderData | None:
        """Same as log_reminder_status but with an explicit `takenAt`.

        The History Ledger entry is dated by `taken_at`, not the action time.
        """
        status = db.validate_log_status(status)
        instance_key = self._require_key(instance_key)
        moment = db.validate_timestamp(taken_at)
        return self._log(reminder_id, instance_key, status, moment)

    def _log(
        self,
        reminder_id: ReminderId | int,
        instance_key: InstanceKey,
        status: str,
        moment: datetime,
    ) -> ReminderData | None:
        index = self._find_index(reminder_id)
        if index is None:
            self._missing("log_reminder_status", reminder_id)
            return None

        reminder = db.build_reminder({}, existing=self._reminders[index])  # type: ignore[arg-type]
        db.set_instance_entry(
            reminder,
            const.DATA_REMINDER_LOGS,
            instance_key,
            dict(db.build_log_entry(status, taken_at=moment)),
        )
        self._reminders[index] = dict(reminder)

        if status == const.STATUS_TAKEN:
            # Ledger first so listeners of REMINDERS_UPDATED see the new entry
            self.emit(
                const.SIGNAL_REMINDER_TAKEN,
                reminder_id=str(reminder[const.DATA_REMINDER_ID]),
                instance_key=instance_key,
                timestamp=dt_to_iso(moment),
            )

        const.LOGGER.debug(
            "ReminderManager: Logged %s for %s on reminder %s",
            status,
            instance_key,
            reminder_id,
        )
        return self._commit(index, reminder, const.ACTION_LOG_STATUS, instance_key)

    def complete_reminder(
        self,
        reminder_id: ReminderId | int,
        instance_key: InstanceKey | None = None,
        now: datetime | None = None,
    ) -> ReminderData | None:
        """Mark an occurrence taken, or a legacy one-off series done.

        With a key this is log_reminder_status(..., "taken"). Without one the
        series gets `status="done"` and a `completedDate`.
        """
        if instance_key:
            return self.log_reminder_status(
                reminder_id, instance_key, const.STATUS_TAKEN, now
            )

        moment = as_local_naive(now) if now is not None else dt_now_local()
        index = self._find_index(reminder_id)
        if index is None:
            self._missing("complete_reminder", reminder_id)
            return None

        reminder = db.build_reminder(
            {
                const.DATA_REMINDER_STATUS: const.SERIES_STATUS_DONE,
                const.DATA_REMINDER_COMPLETED_DATE: moment.date().isoformat(),
            },
            existing=self._reminders[index],  # type: ignore[arg-type]
        )
        return self._commit(index, reminder, const.ACTION_COMPLETE)

    def snooze_reminder(
        self,
        reminder_id: ReminderId | int,
        instance_key: InstanceKey | None = None,
        minutes: int = const.DEFAULT_SNOOZE_MINUTES,
        now: datetime | None = None,
    ) -> ReminderData | None:
        """Postpone an occurrence by `minutes`.

        With a key the occurrence gets a snoozed log whose `snoozedUntil` is
        an absolute local timestamp. Without one the series anchor `time` is
        moved to the new clock and the series status reset to upcoming.

        Raises:
            ReminderValidationError: minutes is not a positive integer
        """
        minutes = db.validate_snooze_minutes(minutes)
        moment = as_local_naive(now) if now is not None else dt_now_local()
        until = moment + timedelta(minutes=minutes)

        index = self._find_index(reminder_id)
        if index is None:
            self._missing("snooze_reminder", reminder_id)
            return None

        if instance_key:
            reminder = db.build_reminder({}, existing=self._reminders[index])  # type: ignore[arg-type]
            db.set_instance_entry(
                reminder,
                const.DATA_REMINDER_LOGS,
                instance_key,
                dict(
                    db.build_log_entry(
                        const.STATUS_SNOOZED, snoozed_until=until, timestamp=moment
                    )
                ),
            )
        else:
            reminder = db.build_reminder(
                {
                    const.DATA_REMINDER_TIME: dt_clock_of(until),
                    const.DATA_REMINDER_STATUS: const.STATUS_UPCOMING,
                },
                existing=self._reminders[index],  # type: ignore[arg-type]
            )

        const.LOGGER.debug(
            "ReminderManager: Snoozed reminder %s (%s) until %s",
            reminder_id,
            instance_key or "series",
            dt_to_iso(until),
        )
        return self._commit(index, reminder, const.ACTION_SNOOZE, instance_key)
