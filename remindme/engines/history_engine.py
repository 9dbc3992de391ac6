"""History Engine - Pure logic for the append-only completion ledger.

Every "taken" action produces one HistoryEntry. Entries are never edited or
removed, so the ledger survives deletion of the reminder it refers to.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, Any
import uuid

from .. import const
from ..utils.dt_utils import as_local_naive, dt_parse_date, dt_to_iso

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import HistoryEntry, ReminderData


class HistoryEngine:
    """Stateless ledger entry creation and queries."""

    @staticmethod
    def create_history_entry(
        reminder: ReminderData | dict[str, Any],
        timestamp: datetime,
    ) -> HistoryEntry:
        """Create an immutable ledger entry for a "taken" action.

        Args:
            reminder: Definition the action was logged on (title/category copied)
            timestamp: When the dose was taken (explicit or action time)

        Returns:
            HistoryEntry whose `date` is the local calendar date of `timestamp`
        """
        local = as_local_naive(timestamp)
        return {
            const.DATA_HISTORY_ID: str(uuid.uuid4()),
            const.DATA_HISTORY_REMINDER_ID: reminder.get(const.DATA_REMINDER_ID),
            const.DATA_HISTORY_TITLE: reminder.get(const.DATA_REMINDER_TITLE),
            const.DATA_HISTORY_TYPE: reminder.get(const.DATA_REMINDER_CATEGORY)
            or reminder.get(const.DATA_REMINDER_TYPE),
            const.DATA_HISTORY_STATUS: const.STATUS_TAKEN,
            const.DATA_HISTORY_DATE: local.date().isoformat(),
            const.DATA_HISTORY_TIMESTAMP: dt_to_iso(local),
        }  # type: ignore[return-value]

    @staticmethod
    def filter_entries(
        history: Iterable[HistoryEntry | dict[str, Any]],
        start: date | None = None,
        end: date | None = None,
        reminder_id: str | None = None,
    ) -> list[HistoryEntry]:
        """Select ledger entries by inclusive date range and/or reminder."""
        selected: list[HistoryEntry] = []
        for entry in history:
            if reminder_id is not None and str(
                entry.get(const.DATA_HISTORY_REMINDER_ID)
            ) != str(reminder_id):
                continue
            entry_date = dt_parse_date(entry.get(const.DATA_HISTORY_DATE))
            if entry_date is None:
                if start is not None or end is not None:
                    continue
            else:
                if start is not None and entry_date < start:
                    continue
                if end is not None and entry_date > end:
                    continue
            selected.append(entry)  # type: ignore[arg-type]
        return selected

