"""History Manager - writer and reader of the History Ledger.

Listens to REMINDER_TAKEN and appends one immutable entry per taken dose.
Entries are never edited or removed, including when their reminder is
deleted.
"""

from __future__ import annotations

import copy
from datetime import date
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.history_engine import HistoryEngine
from ..utils.dt_utils import dt_now_local, dt_parse_timestamp
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..type_defs import HistoryEntry


class HistoryManager(BaseManager):
    """Manager for the append-only completion ledger."""

    def setup(self) -> None:
        """Subscribe to taken events from the ReminderManager."""
        self.listen(const.SIGNAL_REMINDER_TAKEN, self._on_reminder_taken)

    @property
    def _history(self) -> list[dict[str, Any]]:
        return self.coordinator.store.history

    def _on_reminder_taken(self, payload: dict[str, Any]) -> None:
        """Append a ledger entry for a dose logged as taken.

        Payload:
            reminder_id: Definition the dose belongs to
            instance_key: Occurrence that was logged
            timestamp: ISO time the dose was taken
        """
        reminder_id = payload.get("reminder_id")
        reminder = self.coordinator.reminder_manager.get_reminder(reminder_id)
        if reminder is None:
            const.LOGGER.warning(
                "HistoryManager: Taken event for unknown reminder %s", reminder_id
            )
            return

        timestamp = dt_parse_timestamp(payload.get("timestamp")) or dt_now_local()
        entry = HistoryEngine.create_history_entry(reminder, timestamp)
        self._history.append(dict(entry))
        self.coordinator.persist()

        const.LOGGER.debug(
            "HistoryManager: Recorded %s taken on %s (%s)",
            reminder_id,
            entry[const.DATA_HISTORY_DATE],
            payload.get("instance_key"),
        )
        self.emit(
            const.SIGNAL_HISTORY_UPDATED,
            reminder_id=reminder_id,
            entry_id=entry[const.DATA_HISTORY_ID],
        )

    def get_history(
        self,
        start: date | None = None,
        end: date | None = None,
        reminder_id: str | None = None,
    ) -> list[HistoryEntry]:
        """Return copies of ledger entries, optionally filtered."""
        entries = HistoryEngine.filter_entries(self._history, start, end, reminder_id)
        return copy.deepcopy(entries)

    def replace_history(self, history: list[dict[str, Any]]) -> None:
        """Replace the ledger with a remote snapshot."""
        self._history[:] = [copy.deepcopy(e) for e in history if isinstance(e, dict)]
        self.coordinator.persist()
        self.emit(const.SIGNAL_HISTORY_UPDATED, reminder_id=None, entry_id=None)
