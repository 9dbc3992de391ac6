# File: utils/dt_utils.py
"""Date and time utilities for RemindMe.

Pure Python date/time functions with no engine or store dependencies.
All functions here can be unit tested in isolation.

Conventions:
    - Date strings are "YYYY-MM-DD" in the device's local calendar.
    - Clock strings are 24-hour "HH:MM" in local time.
    - Datetimes handed around the engine are NAIVE local datetimes. Aware
      timestamps (e.g. a "Z"-suffixed snooze written by another device) are
      converted to the default timezone and then made naive.

Functions:
    - set_default_timezone / get_default_timezone: Zone used to localise aware input
    - dt_now_local: Current naive local datetime
    - as_local_naive: Normalise any datetime to naive local time
    - parse_clock / format_clock: "HH:MM" <-> minutes since midnight
    - combine_clock: Date + "HH:MM" -> naive datetime
    - dt_parse_date: Safely parse a date string
    - dt_parse_timestamp: Safely parse an ISO timestamp
    - dt_to_iso / dt_clock_of: Datetime -> ISO string / "HH:MM"
    - days_between: Calendar-day difference
    - parse_interval_hours: "Every N Hour(s)" -> N
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging
import re
from typing import TYPE_CHECKING

# Third-party date utilities
from dateutil.parser import isoparse

if TYPE_CHECKING:
    from datetime import tzinfo

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# None means "the device's zone" (datetime.astimezone() with no argument)
DEFAULT_TIME_ZONE: tzinfo | None = None

MINUTES_PER_HOUR = 60

_CLOCK_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
_INTERVAL_PATTERN = re.compile(r"^\s*every\s+(\d+)\s+hours?\b", re.IGNORECASE)


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: tzinfo | None) -> None:
    """Set the zone used to localise timezone-aware input.

    Args:
        tz: tzinfo to use, or None to follow the device zone
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> tzinfo | None:
    """Get the zone used to localise timezone-aware input."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_local() -> datetime:
    """Return the current device-local datetime (naive).

    Only mutation entry points fall back to this; the expansion engine always
    receives `now` from its caller.
    """
    return datetime.now().replace(microsecond=0)


def as_local_naive(dt_obj: datetime) -> datetime:
    """Normalise a datetime to naive local time.

    Naive input is assumed to already be local and is returned unchanged.
    """
    if dt_obj.tzinfo is None:
        return dt_obj
    return dt_obj.astimezone(DEFAULT_TIME_ZONE).replace(tzinfo=None)


# ==============================================================================
# Clock Parsing
# ==============================================================================


def parse_clock(clock_str: str | None) -> int | None:
    """Parse "HH:MM" into minutes since midnight.

    Args:
        clock_str: 24-hour clock string

    Returns:
        Minutes since midnight, or None when missing or malformed.

    Examples:
        parse_clock("08:30") → 510
        parse_clock("24:00") → None
        parse_clock("soon") → None
    """
    if not clock_str or not isinstance(clock_str, str):
        return None

    match = _CLOCK_PATTERN.match(clock_str)
    if not match:
        return None

    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return hour * MINUTES_PER_HOUR + minute


def format_clock(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM"."""
    hour, minute = divmod(int(minutes), MINUTES_PER_HOUR)
    return f"{hour:02d}:{minute:02d}"


def combine_clock(day: date, clock_str: str | None) -> datetime | None:
    """Combine a calendar date with an "HH:MM" clock.

    Returns:
        Naive local datetime, or None if the clock cannot be parsed.
    """
    minutes = parse_clock(clock_str)
    if minutes is None:
        return None
    hour, minute = divmod(minutes, MINUTES_PER_HOUR)
    return datetime.combine(day, time(hour, minute))


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | date | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts "YYYY-MM-DD" first, then "YYYY/MM/DD". A `date` passes through;
    a `datetime` yields its date.

    Returns:
        datetime.date or None if parsing fails.
    """
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if not date_str or not isinstance(date_str, str):
        return None

    try:
        return date.fromisoformat(date_str.strip())
    except ValueError:
        pass

    try:
        return datetime.strptime(date_str.strip(), "%Y/%m/%d").date()
    except ValueError:
        return None


def dt_parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into a naive local datetime.

    Accepts "Z"/offset-suffixed values (converted to local time) and naive
    values (taken as local already).

    Returns:
        Naive local datetime, or None if parsing fails.
    """
    if isinstance(value, datetime):
        return as_local_naive(value)
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = isoparse(value.strip())
    except (ValueError, OverflowError) as exc:
        _LOGGER.warning("Invalid timestamp %r: %s", value, exc)
        return None
    return as_local_naive(parsed)


def dt_to_iso(dt_obj: datetime) -> str:
    """Format a datetime as an ISO string with seconds precision."""
    return dt_obj.replace(microsecond=0).isoformat()


def dt_clock_of(dt_obj: datetime) -> str:
    """Return the "HH:MM" clock of a datetime."""
    return f"{dt_obj.hour:02d}:{dt_obj.minute:02d}"


# ==============================================================================
# Calendar Arithmetic
# ==============================================================================


def days_between(start: str | date | None, end: str | date | None) -> int | None:
    """Return the number of calendar days from `start` to `end`.

    Uses local calendar dates rather than elapsed time, so "day 0" is the
    start date itself and DST shifts never produce fractional days.

    Returns:
        Signed day count, or None if either date cannot be parsed.

    Examples:
        days_between("2024-01-01", "2024-01-01") → 0
        days_between("2024-01-01", "2024-01-04") → 3
        days_between("2024-01-04", "2024-01-01") → -3
    """
    start_date = dt_parse_date(start)
    end_date = dt_parse_date(end)
    if start_date is None or end_date is None:
        return None
    return (end_date - start_date).days


def add_days(day: date, days: int) -> date:
    """Shift a calendar date by a whole number of days."""
    return day + timedelta(days=days)


def parse_interval_hours(frequency: str | None) -> int | None:
    """Extract N from an "Every N Hour(s)" frequency label.

    Returns:
        Positive hour count, or None when the label is not an hourly interval.
    """
    if not frequency or not isinstance(frequency, str):
        return None
    match = _INTERVAL_PATTERN.match(frequency)
    if not match:
        return None
    hours = int(match.group(1))
    return hours if hours > 0 else None
