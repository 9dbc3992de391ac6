"""Engine modules for RemindMe.

Contains pure computation engines:
- schedule_engine: Schedule shapes, date qualification, interval slots
- instance_engine: Day expansion and status derivation
- history_engine: Completion ledger entries
- statistics_engine: Monthly adherence reports
"""

# Use relative imports within package to avoid mypy module resolution issues
from .history_engine import HistoryEngine
from .instance_engine import (
    InstanceEngine,
    build_instance_key,
    merge_settings,
    split_instance_key,
)
from .schedule_engine import (
    BasicSchedule,
    Frequency,
    RecurringSchedule,
    Schedule,
    ScheduleEngine,
)
from .statistics_engine import StatisticsEngine

__all__ = [
    "BasicSchedule",
    "Frequency",
    "HistoryEngine",
    "InstanceEngine",
    "RecurringSchedule",
    "Schedule",
    "ScheduleEngine",
    "StatisticsEngine",
    "build_instance_key",
    "merge_settings",
    "split_instance_key",
]
