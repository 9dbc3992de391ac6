"""Building and validation helpers for persisted RemindMe documents.

This module is the SINGLE SOURCE OF TRUTH for:
- Reminder, log and exception dict shapes
- Argument validation of the mutation API (voluptuous schemas)
- The validation error type raised to callers

### Build Functions
Each document type has a `build_<document>()` function that:
- Takes caller input (camelCase JSON keys)
- Generates the id (UUID) for new reminders
- Merges over an existing document for updates
- Returns a new dict ready for storage; inputs are never mutated

### Validation Functions
`validate_*()` functions run a voluptuous schema and translate `vol.Invalid`
into `ReminderValidationError`, which carries the offending field.

Consumers:
- managers/reminder_manager.py (mutation API)
- managers/settings_manager.py (settings updates)
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any
import uuid

import voluptuous as vol

from . import const
from .type_defs import ExceptionEntry, LogEntry, ReminderData
from .utils.dt_utils import dt_parse_timestamp, dt_to_iso, parse_clock

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_dict_field(value: Any) -> dict[str, Any]:
    """Normalize a field that should be a dict.

    Handles cases where the value might be:
    - Already a dict → return a shallow copy
    - None or anything else → return empty dict
    """
    if isinstance(value, dict):
        return dict(value)
    return {}


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class ReminderValidationError(ValueError):
    """Invalid argument passed to the mutation or settings API.

    Malformed *stored* data never raises; this is only for caller mistakes
    such as an unknown log status or a non-positive snooze duration.

    Attributes:
        field: Name of the argument or settings key that failed
        value: The rejected value

    Example:
        raise ReminderValidationError(
            field="status", value="done", message="not a valid log status"
        )
    """

    def __init__(self, field: str, value: Any, message: str | None = None) -> None:
        """Initialize ReminderValidationError."""
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} {value!r}: {message or 'rejected'}")


# ==============================================================================
# SCHEMAS
# ==============================================================================


def clock_string(value: Any) -> str:
    """Validate a 24-hour "HH:MM" clock and return it zero-padded."""
    minutes = parse_clock(value)
    if minutes is None:
        raise vol.Invalid(f"expected HH:MM clock, got {value!r}")
    hour, minute = divmod(minutes, const.MINUTES_PER_HOUR)
    return f"{hour:02d}:{minute:02d}"


LOG_STATUS_SCHEMA = vol.Schema(vol.In(const.LOG_STATUS_OPTIONS))

SNOOZE_MINUTES_SCHEMA = vol.Schema(vol.All(vol.Coerce(int), vol.Range(min=1)))

SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_SETTINGS_SLEEP_START): clock_string,
        vol.Optional(const.DATA_SETTINGS_SLEEP_END): clock_string,
        vol.Optional(const.DATA_SETTINGS_THEME): vol.In(const.THEME_OPTIONS),
    },
    extra=vol.ALLOW_EXTRA,
)


def _validate(schema: vol.Schema, value: Any, field: str) -> Any:
    """Run a schema, translating voluptuous errors."""
    try:
        return schema(value)
    except vol.Invalid as err:
        error_field = field
        if err.path:
            error_field = str(err.path[0])
        raise ReminderValidationError(
            field=error_field, value=value, message=err.msg
        ) from err


def validate_log_status(status: Any) -> str:
    """Validate a status logged against an instance (taken/missed/snoozed)."""
    return _validate(LOG_STATUS_SCHEMA, status, "status")


def validate_snooze_minutes(minutes: Any) -> int:
    """Validate a snooze duration; must be a positive number of minutes."""
    return _validate(SNOOZE_MINUTES_SCHEMA, minutes, "minutes")


def validate_settings(data: Any) -> dict[str, Any]:
    """Validate a settings patch, normalising clock values."""
    if not isinstance(data, dict):
        raise ReminderValidationError(
            field=const.DATA_SETTINGS, value=data, message="expected a mapping"
        )
    return _validate(SETTINGS_SCHEMA, data, const.DATA_SETTINGS)


def validate_clock(value: Any, field: str = const.DATA_REMINDER_TIME) -> str:
    """Validate a caller-supplied "HH:MM" clock."""
    return _validate(vol.Schema(clock_string), value, field)


def validate_timestamp(value: Any, field: str = const.DATA_LOG_TAKEN_AT) -> datetime:
    """Parse a caller-supplied ISO timestamp or raise."""
    parsed = dt_parse_timestamp(value)
    if parsed is None:
        raise ReminderValidationError(
            field=field, value=value, message="expected an ISO 8601 timestamp"
        )
    return parsed


# ==============================================================================
# REMINDERS
# ==============================================================================


def build_reminder(
    user_input: dict[str, Any],
    existing: ReminderData | None = None,
) -> ReminderData:
    """Build a reminder definition for create or update operations.

    Args:
        user_input: Fields to store (camelCase keys, stored verbatim)
        existing: None for create, existing definition for update

    Returns:
        New definition dict. Create assigns a fresh UUID; update keeps the
        existing id even if `user_input` carries another one.

    Examples:
        reminder = build_reminder({"title": "Vitamin D", "time": "08:00"})
        reminder = build_reminder({"time": "09:00"}, existing=reminder)
    """
    patch = copy.deepcopy(dict(user_input))
    patch.pop(const.DATA_REMINDER_ID, None)

    if existing is None:
        reminder: dict[str, Any] = {const.DATA_REMINDER_ID: str(uuid.uuid4())}
        reminder.update(patch)
        return reminder  # type: ignore[return-value]

    reminder = copy.deepcopy(dict(existing))
    reminder.update(patch)
    return reminder  # type: ignore[return-value]


def build_log_entry(
    status: str,
    *,
    taken_at: datetime | str | None = None,
    snoozed_until: datetime | None = None,
    timestamp: datetime | None = None,
) -> LogEntry:
    """Build the log entry stored under an instance key.

    A new log replaces the previous one for the same key.
    """
    entry: LogEntry = {const.DATA_LOG_STATUS: status}  # type: ignore[misc]
    if status == const.STATUS_TAKEN:
        entry[const.DATA_LOG_TAKEN_AT] = (  # type: ignore[literal-required]
            dt_to_iso(taken_at) if isinstance(taken_at, datetime) else taken_at
        )
    else:
        entry[const.DATA_LOG_TAKEN_AT] = None  # type: ignore[literal-required]
    if snoozed_until is not None:
        entry[const.DATA_LOG_SNOOZED_UNTIL] = dt_to_iso(snoozed_until)  # type: ignore[literal-required]
    if timestamp is not None:
        entry[const.DATA_LOG_TIMESTAMP] = dt_to_iso(timestamp)  # type: ignore[literal-required]
    return entry


def build_exception_entry(
    patch: dict[str, Any],
    existing: ExceptionEntry | dict[str, Any] | None = None,
) -> ExceptionEntry:
    """Merge a per-instance patch over the existing exception of that key."""
    entry = _normalize_dict_field(existing)
    entry.update(copy.deepcopy(dict(patch)))
    entry[const.DATA_EXCEPTION_IS_EXCEPTION] = True
    return entry  # type: ignore[return-value]


def set_instance_entry(
    reminder: ReminderData | dict[str, Any],
    bucket: str,
    instance_key: str,
    entry: dict[str, Any],
) -> None:
    """Store `entry` under `instance_key` in the `logs` or `exceptions` map."""
    entries = _normalize_dict_field(reminder.get(bucket))
    entries[instance_key] = entry
    reminder[bucket] = entries  # type: ignore[literal-required]

