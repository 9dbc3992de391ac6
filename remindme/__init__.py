"""RemindMe - local-first reminder expansion and status engine.

Reminder definitions (one-off, daily, weekday, hourly-interval and
multi-slot medication courses) are expanded on demand into the concrete
occurrences of a calendar date, each with a derived status.

Usage:
    from remindme import RemindMeCoordinator

    coordinator = RemindMeCoordinator.from_path("remindme.json")
    coordinator.reminder_manager.add_reminder(
        {"title": "Vitamin D", "time": "08:00", "frequency": "Daily"}
    )
    coordinator.get_reminders_for_date("2024-01-01")
"""

from .coordinator import RemindMeCoordinator
from .data_builders import ReminderValidationError
from .engines import InstanceEngine, ScheduleEngine, StatisticsEngine
from .store import ReminderStore

__all__ = [
    "InstanceEngine",
    "RemindMeCoordinator",
    "ReminderStore",
    "ReminderValidationError",
    "ScheduleEngine",
    "StatisticsEngine",
]
