"""Type definitions for RemindMe data structures.

ARCHITECTURE DECISION: HYBRID APPROACH (TypedDict + dict[str, Any])
===================================================================

1. **TypedDict for STATIC structures** (fixed keys known at design time):
   - Persisted documents: ReminderData, ScheduleData, HistoryEntry, Settings
   - Derived output: Instance, MonthStats

2. **dict[str, Any] for DYNAMIC structures** (keys determined at runtime):
   - `logs` and `exceptions` are keyed by synthetic instance keys
     ("<date>_<slotOrTime>"), so they are plain mappings of TypedDict values.

Keys use the camelCase spelling of the stored JSON documents, which is why
some fields below are not snake_case.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Stored documents come from users and
remote sync and may be missing any field; engines read them with `.get()`.
"""

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

ReminderId = str  # UUID string (legacy numeric ids are compared as str)
InstanceKey = str  # "<YYYY-MM-DD>_<slotName|HH:MM|default>"
ISODatetime = str  # ISO 8601 datetime string "2024-01-01T08:15:00"
ISODate = str  # ISO 8601 date string (no time) "2024-01-01"
ClockStr = str  # 24-hour "HH:MM"


# =============================================================================
# Persisted: reminder definitions
# =============================================================================


class ScheduleData(TypedDict, total=False):
    """Structured schedule, preferred over the legacy top-level fields.

    `frequency` is a list of slot names for recurring courses and a
    frequency label string for basic schedules.
    """

    type: str  # "basic" | "recurring"
    startDate: ISODate
    durationDays: int
    frequency: list[str] | str
    times: dict[str, ClockStr]
    time: ClockStr


class LogEntry(TypedDict, total=False):
    """Record of a user action on one instance."""

    status: str  # taken | missed | snoozed
    takenAt: ISODatetime | None
    snoozedUntil: ISODatetime | ClockStr
    timestamp: ISODatetime


class ExceptionEntry(TypedDict, total=False):
    """One-off edit to a single occurrence of a series."""

    time: ClockStr
    date: ISODate
    status: str  # "cancelled"
    isException: bool


class ReminderData(TypedDict):
    """Type definition for a stored reminder definition."""

    id: ReminderId
    title: str
    type: NotRequired[str]
    category: NotRequired[str]
    instructions: NotRequired[str]
    isImportant: NotRequired[bool]
    date: NotRequired[ISODate | None]
    time: NotRequired[ClockStr | None]
    frequency: NotRequired[str | None]
    schedule: NotRequired[ScheduleData | None]
    status: NotRequired[str]  # legacy series status ("upcoming" | "done")
    completedDate: NotRequired[ISODate]
    logs: NotRequired[dict[InstanceKey, LogEntry]]
    exceptions: NotRequired[dict[InstanceKey, ExceptionEntry]]


class Settings(TypedDict, total=False):
    """User settings consumed by the expansion engine."""

    sleepStart: ClockStr
    sleepEnd: ClockStr
    theme: str


class HistoryEntry(TypedDict):
    """Immutable completion record in the History Ledger."""

    id: str
    reminderId: ReminderId
    title: str | None
    type: str | None
    status: str  # always "taken"
    date: ISODate
    timestamp: ISODatetime


# =============================================================================
# Derived: expansion output
# =============================================================================


class Instance(TypedDict):
    """One concrete occurrence of a reminder on a calendar date."""

    uniqueId: str
    instanceKey: InstanceKey
    reminderId: ReminderId
    title: str | None
    date: ISODate
    time: ClockStr | None  # scheduled time before exception/snooze overrides
    displayTime: ClockStr | None
    period: str | None  # recurring slot name
    status: str
    takenAt: ISODatetime | None
    effectiveAt: ISODatetime
    isMovedIn: bool
    originalStatus: str
    sourceReminder: dict[str, Any]


class MonthStats(TypedDict):
    """Monthly adherence report."""

    total: int
    taken: int
    missed: int
    upcoming: int
    score: int
    days: dict[int, str]  # day of month -> perfect | missed | partial | none
