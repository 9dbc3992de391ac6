# File: const.py
"""Constants for the RemindMe reminder engine.

This file centralizes persisted JSON keys, lifecycle statuses, defaults,
frequency labels, and signal names so that engines, managers, and the store
agree on a single spelling. Persisted keys keep the camelCase spelling used by
the stored reminder documents.
"""

from datetime import time, timedelta
import logging

# ------------------------------------------------------------------------------------------------
# General / Package Information
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Storage and Versioning
STORAGE_KEY = "remindme_buddy_db"
STORAGE_KEY_GUEST_SUFFIX = "guest"
SCHEMA_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Store Buckets
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schemaVersion"
DATA_META_LAST_SAVED = "lastSaved"
DATA_REMINDERS = "reminders"
DATA_HISTORY = "history"
DATA_SETTINGS = "settings"

# ------------------------------------------------------------------------------------------------
# Reminder Definition Keys
# ------------------------------------------------------------------------------------------------
DATA_REMINDER_ID = "id"
DATA_REMINDER_TITLE = "title"
DATA_REMINDER_TYPE = "type"
DATA_REMINDER_CATEGORY = "category"
DATA_REMINDER_INSTRUCTIONS = "instructions"
DATA_REMINDER_DATE = "date"
DATA_REMINDER_TIME = "time"
DATA_REMINDER_FREQUENCY = "frequency"
DATA_REMINDER_SCHEDULE = "schedule"
DATA_REMINDER_LOGS = "logs"
DATA_REMINDER_EXCEPTIONS = "exceptions"
DATA_REMINDER_STATUS = "status"
DATA_REMINDER_COMPLETED_DATE = "completedDate"

# Structured schedule
DATA_SCHEDULE_TYPE = "type"
DATA_SCHEDULE_START_DATE = "startDate"
DATA_SCHEDULE_DURATION_DAYS = "durationDays"
DATA_SCHEDULE_FREQUENCY = "frequency"
DATA_SCHEDULE_TIMES = "times"
DATA_SCHEDULE_TIME = "time"

SCHEDULE_TYPE_BASIC = "basic"
SCHEDULE_TYPE_RECURRING = "recurring"

# Per-instance log entry
DATA_LOG_STATUS = "status"
DATA_LOG_TAKEN_AT = "takenAt"
DATA_LOG_SNOOZED_UNTIL = "snoozedUntil"
DATA_LOG_TIMESTAMP = "timestamp"

# Per-instance exception entry
DATA_EXCEPTION_TIME = "time"
DATA_EXCEPTION_DATE = "date"
DATA_EXCEPTION_STATUS = "status"
DATA_EXCEPTION_IS_EXCEPTION = "isException"

# ------------------------------------------------------------------------------------------------
# Instance Keys (derived output, never persisted)
# ------------------------------------------------------------------------------------------------
INSTANCE_UNIQUE_ID = "uniqueId"
INSTANCE_KEY = "instanceKey"
INSTANCE_REMINDER_ID = "reminderId"
INSTANCE_TITLE = "title"
INSTANCE_DATE = "date"
INSTANCE_TIME = "time"
INSTANCE_DISPLAY_TIME = "displayTime"
INSTANCE_PERIOD = "period"
INSTANCE_STATUS = "status"
INSTANCE_TAKEN_AT = "takenAt"
INSTANCE_EFFECTIVE_AT = "effectiveAt"
INSTANCE_IS_MOVED_IN = "isMovedIn"
INSTANCE_ORIGINAL_STATUS = "originalStatus"
INSTANCE_SOURCE_REMINDER = "sourceReminder"

# Fallback slot label for legacy reminders without a time
INSTANCE_KEY_DEFAULT_SLOT = "default"

# ------------------------------------------------------------------------------------------------
# History Ledger Keys
# ------------------------------------------------------------------------------------------------
DATA_HISTORY_ID = "id"
DATA_HISTORY_REMINDER_ID = "reminderId"
DATA_HISTORY_TITLE = "title"
DATA_HISTORY_TYPE = "type"
DATA_HISTORY_STATUS = "status"
DATA_HISTORY_DATE = "date"
DATA_HISTORY_TIMESTAMP = "timestamp"

# ------------------------------------------------------------------------------------------------
# Settings
# ------------------------------------------------------------------------------------------------
DATA_SETTINGS_SLEEP_START = "sleepStart"
DATA_SETTINGS_SLEEP_END = "sleepEnd"
DATA_SETTINGS_THEME = "theme"

DEFAULT_SLEEP_START = "22:00"
DEFAULT_SLEEP_END = "08:00"
DEFAULT_THEME = "system"
THEME_OPTIONS = ["system", "light", "dark"]

# ------------------------------------------------------------------------------------------------
# Statuses
# ------------------------------------------------------------------------------------------------

# Instance lifecycle (derived)
STATUS_UPCOMING = "upcoming"
STATUS_SNOOZED = "snoozed"
STATUS_TAKEN = "taken"
STATUS_MISSED = "missed"

# Values a caller may write into logs
LOG_STATUS_OPTIONS = [STATUS_TAKEN, STATUS_MISSED, STATUS_SNOOZED]

# Exception status for a single suppressed occurrence
EXCEPTION_STATUS_CANCELLED = "cancelled"

# Legacy whole-series status written by complete_reminder() without a key
SERIES_STATUS_DONE = "done"

# ------------------------------------------------------------------------------------------------
# Frequencies
# ------------------------------------------------------------------------------------------------
FREQUENCY_ONCE = "Once"
FREQUENCY_TODAY = "Today"
FREQUENCY_DAILY = "Daily"
FREQUENCY_WEEKLY = "Weekly"
FREQUENCY_INTERVAL_PREFIX = "Every"

# Parsed frequency kinds
FREQUENCY_KIND_ONCE = "once"
FREQUENCY_KIND_TODAY = "today"
FREQUENCY_KIND_DAILY = "daily"
FREQUENCY_KIND_WEEKLY = "weekly"
FREQUENCY_KIND_WEEKDAYS = "weekdays"
FREQUENCY_KIND_INTERVAL = "interval"

# Weekday name lookup (Monday = 0, matching date.weekday())
WEEKDAY_LOOKUP = {
    "mon": 0,
    "monday": 0,
    "tue": 1,
    "tues": 1,
    "tuesday": 1,
    "wed": 2,
    "wednesday": 2,
    "thu": 3,
    "thur": 3,
    "thurs": 3,
    "thursday": 3,
    "fri": 4,
    "friday": 4,
    "sat": 5,
    "saturday": 5,
    "sun": 6,
    "sunday": 6,
}

# ------------------------------------------------------------------------------------------------
# Timing
# ------------------------------------------------------------------------------------------------

# Instances stay actionable for this long after their effective time
MISSED_THRESHOLD = timedelta(hours=2)

# Foreground alarm poll matches instances this many minutes late at most
ALARM_WINDOW_MINUTES = 2

DEFAULT_SNOOZE_MINUTES = 15
DEFAULT_UPCOMING_DAYS = 7

# Untimed instances are evaluated against the end of their day
UNTIMED_EVALUATION_TIME = time(23, 59)

# Fallback anchor when a reminder has neither startDate nor date
DEFAULT_START_DATE = "2000-01-01"

MINUTES_PER_HOUR = 60

# ------------------------------------------------------------------------------------------------
# Reports
# ------------------------------------------------------------------------------------------------
STATS_TOTAL = "total"
STATS_TAKEN = "taken"
STATS_MISSED = "missed"
STATS_UPCOMING = "upcoming"
STATS_SCORE = "score"
STATS_DAYS = "days"

DAY_STATE_PERFECT = "perfect"
DAY_STATE_MISSED = "missed"
DAY_STATE_PARTIAL = "partial"
DAY_STATE_NONE = "none"

# Adherence score reported when nothing is due yet
DEFAULT_ADHERENCE_SCORE = 100

# Search synonyms (query fragment -> alternatives)
SEARCH_SYNONYMS = {
    "doctor": ["dr", "dr."],
    "dr": ["doctor", "dr."],
    "meds": ["medication", "pill"],
    "medication": ["meds", "pill"],
    "appointment": ["visit"],
    "visit": ["appointment"],
}

# ------------------------------------------------------------------------------------------------
# Signals (re-broadcast events)
# ------------------------------------------------------------------------------------------------
SIGNAL_REMINDERS_UPDATED = "reminders_updated"
SIGNAL_REMINDER_TAKEN = "reminder_taken"
SIGNAL_SETTINGS_UPDATED = "settings_updated"
SIGNAL_HISTORY_UPDATED = "history_updated"

# Mutation actions carried in SIGNAL_REMINDERS_UPDATED payloads
ACTION_ADD = "add"
ACTION_UPDATE = "update"
ACTION_UPDATE_INSTANCE = "update_instance"
ACTION_LOG_STATUS = "log_status"
ACTION_COMPLETE = "complete"
ACTION_SNOOZE = "snooze"
ACTION_DELETE = "delete"
ACTION_SYNC = "sync"

# Remote snapshot kinds accepted by apply_remote_snapshot()
SYNC_KIND_REMINDERS = "reminders"
SYNC_KIND_SETTINGS = "settings"
SYNC_KIND_HISTORY = "history"
