"""Managers for RemindMe.

Managers own the stateful writes to the store and talk to each other through
events on the coordinator's pyee EventEmitter:
- reminder_manager: Mutation API for definitions, exceptions and logs
- history_manager: Append-only History Ledger (listens to REMINDER_TAKEN)
- settings_manager: Validated user settings
"""

from .base_manager import BaseManager
from .history_manager import HistoryManager
from .reminder_manager import ReminderManager
from .settings_manager import SettingsManager

__all__ = [
    "BaseManager",
    "HistoryManager",
    "ReminderManager",
    "SettingsManager",
]
