# File: const.py
"""Constants for the remindkit reminder engine.

This file centralizes data keys, enum values, defaults, limits, notification
texts and option names for consistency across engines and managers.
"""

from datetime import timedelta
import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
# Logger
LOGGER = logging.getLogger(__package__)

# Storage and Versioning
STORAGE_KEY = "remindkit_data"
SCHEMA_VERSION_LEGACY = 0
SCHEMA_VERSION_CURRENT = 2

# ------------------------------------------------------------------------------------------------
# Storage document keys
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_SCHEMA_VERSION = "schema_version"
DATA_META_LAST_MIGRATION_DATE = "last_migration_date"
DATA_REMINDERS = "reminders"

# Digest guard key (stored in meta, scoped per user/device)
META_LAST_DIGEST_DAY_PREFIX = "last_digest_day"

# ------------------------------------------------------------------------------------------------
# Reminder data keys (shared)
# ------------------------------------------------------------------------------------------------
DATA_REMINDER_ID = "id"
DATA_REMINDER_KIND = "kind"
DATA_REMINDER_TITLE = "title"
DATA_REMINDER_LEVEL = "level"
DATA_REMINDER_CONFLICT_MODE = "conflict_mode"
DATA_REMINDER_CREATED_AT = "created_at"
DATA_REMINDER_UPDATED_AT = "updated_at"

# One-off
DATA_REMINDER_DUE_AT = "due_at"
DATA_REMINDER_DONE = "done"
DATA_REMINDER_DONE_AT = "done_at"

# Recurring
DATA_REMINDER_SCHEDULE_TYPE = "schedule_type"
DATA_REMINDER_TIME_OF_DAY = "time_of_day"
DATA_REMINDER_NEXT_DUE_AT = "next_due_at"
DATA_REMINDER_ENABLED = "enabled"
DATA_REMINDER_LAST_NOTIFIED_DATE = "last_notified_date"
DATA_REMINDER_PAID_AT = "paid_at"
DATA_REMINDER_EVERY = "every"
DATA_REMINDER_UNIT = "unit"
DATA_REMINDER_WEEKDAYS = "weekdays"
DATA_REMINDER_DAY_OF_MONTH = "day_of_month"
DATA_REMINDER_BASE_DATE = "base_date"
DATA_REMINDER_DATES = "dates"


# ------------------------------------------------------------------------------------------------
# Enum values
# ------------------------------------------------------------------------------------------------
KIND_ONE_OFF = "one_off"
KIND_RECURRING = "recurring"
KIND_OPTIONS = [KIND_ONE_OFF, KIND_RECURRING]

LEVEL_QUICK = "quick"
LEVEL_MEDIUM = "medium"
LEVEL_LONG = "long"
LEVEL_OPTIONS = [LEVEL_QUICK, LEVEL_MEDIUM, LEVEL_LONG]

CONFLICT_MODE_ALLOW = "allow"
CONFLICT_MODE_SHIFT = "shift"
CONFLICT_MODE_BLOCK = "block"
CONFLICT_MODE_OPTIONS = [CONFLICT_MODE_ALLOW, CONFLICT_MODE_SHIFT, CONFLICT_MODE_BLOCK]

SCHEDULE_TYPE_INTERVAL = "interval"
SCHEDULE_TYPE_DAILY = "daily"
SCHEDULE_TYPE_WEEKLY = "weekly"
SCHEDULE_TYPE_MONTHLY_DAY = "monthly_day"
SCHEDULE_TYPE_ANNIVERSARY = "anniversary"
SCHEDULE_TYPE_FIXED_DATES = "fixed_dates"
SCHEDULE_TYPE_OPTIONS = [
    SCHEDULE_TYPE_INTERVAL,
    SCHEDULE_TYPE_DAILY,
    SCHEDULE_TYPE_WEEKLY,
    SCHEDULE_TYPE_MONTHLY_DAY,
    SCHEDULE_TYPE_ANNIVERSARY,
    SCHEDULE_TYPE_FIXED_DATES,
]

TIME_UNIT_DAY = "day"
TIME_UNIT_WEEK = "week"
TIME_UNIT_OPTIONS = [TIME_UNIT_DAY, TIME_UNIT_WEEK]

# List view tabs
TAB_PENDING = "pending"
TAB_DONE = "done"
TAB_ALL = "all"
TAB_OPTIONS = [TAB_PENDING, TAB_DONE, TAB_ALL]

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_LEVEL = LEVEL_MEDIUM
DEFAULT_CONFLICT_MODE = CONFLICT_MODE_ALLOW
DEFAULT_TIME_OF_DAY = "09:00"
DEFAULT_EVERY = 1
DEFAULT_UNIT = TIME_UNIT_DAY
DEFAULT_TIME_ZONE_NAME = "UTC"
DEFAULT_DIGEST_SCOPE = "default"

DEFAULT_FORWARD_GUARD_SECONDS = 60
DEFAULT_MAX_SHIFT_ITERATIONS = 520
DEFAULT_NOTIFICATION_HORIZON_HOURS = 24
DEFAULT_TICK_INTERVAL_SECONDS = 60

DEFAULT_FORWARD_GUARD = timedelta(seconds=DEFAULT_FORWARD_GUARD_SECONDS)

# ------------------------------------------------------------------------------------------------
# Search bounds (guarantee termination of the candidate searches)
# ------------------------------------------------------------------------------------------------
WEEKLY_SEARCH_DAYS = 366
MONTHLY_SEARCH_MONTHS = 36
ANNIVERSARY_SEARCH_YEARS = 10
MAX_DATE_CALCULATION_ITERATIONS = 1000

DAY_OF_MONTH_MIN = 1
DAY_OF_MONTH_MAX = 31
WEEKDAY_MIN = 0
WEEKDAY_MAX = 6

# ------------------------------------------------------------------------------------------------
# Options keys
# ------------------------------------------------------------------------------------------------
CONF_TIME_ZONE = "time_zone"
CONF_FORWARD_GUARD_SECONDS = "forward_guard_seconds"
CONF_MAX_SHIFT_ITERATIONS = "max_shift_iterations"
CONF_NOTIFICATION_HORIZON_HOURS = "notification_horizon_hours"
CONF_TICK_INTERVAL_SECONDS = "tick_interval_seconds"
CONF_DIGEST_SCOPE = "digest_scope"

# ------------------------------------------------------------------------------------------------
# Validation error keys (translation keys surfaced to the host application)
# ------------------------------------------------------------------------------------------------
TRANS_KEY_INVALID_TITLE = "invalid_title"
TRANS_KEY_INVALID_KIND = "invalid_kind"
TRANS_KEY_INVALID_DUE_AT = "invalid_due_at"
TRANS_KEY_INVALID_TIME_OF_DAY = "invalid_time_of_day"
TRANS_KEY_INVALID_SCHEDULE_TYPE = "invalid_schedule_type"
TRANS_KEY_INVALID_INTERVAL = "invalid_interval"
TRANS_KEY_WEEKDAYS_REQUIRED = "weekdays_required"
TRANS_KEY_INVALID_DAY_OF_MONTH = "invalid_day_of_month"
TRANS_KEY_INVALID_BASE_DATE = "invalid_base_date"
TRANS_KEY_DATES_REQUIRED = "dates_required"
TRANS_KEY_INVALID_DATES = "invalid_dates"
TRANS_KEY_INVALID_INPUT = "invalid_input"
TRANS_KEY_KIND_IMMUTABLE = "kind_immutable"

# ------------------------------------------------------------------------------------------------
# Notification texts
# ------------------------------------------------------------------------------------------------
NOTIFY_TITLE_ONE_OFF = "Reminder"
NOTIFY_TITLE_RECURRING = "Due today"
NOTIFY_BODY_RECURRING = "{title} today"
NOTIFY_TITLE_DIGEST = "Today's reminders"
NOTIFY_BODY_DIGEST = "{count} due today: {titles}"

# ------------------------------------------------------------------------------------------------
# Manager signals (instance-scoped events)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_REMINDERS_CHANGED = "reminders_changed"
SIGNAL_SUFFIX_REMINDER_DELETED = "reminder_deleted"
SIGNAL_SUFFIX_NOTIFICATION_SENT = "notification_sent"
