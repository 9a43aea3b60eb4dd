"""Type definitions for remindkit data structures.

Reminders are stored as plain JSON-serialisable dicts so that any store
backend can persist them unchanged. TypedDicts below describe the fixed
shapes for static analysis only; runtime code still reads with `.get()`
and defaults, since stored data may come from older versions (see
migration.py).

IMPORTANT: This file must NOT import from managers or coordinator to avoid
circular dependencies. Only import from typing.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

ReminderId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2026-02-10T09:00:00-03:00"
ISODate = str  # ISO 8601 date string (no time) "2026-02-10"
DayKey = str  # Calendar-day key "YYYY-MM-DD" in the configured time zone
TimeOfDay = str  # "HH:MM"

# Injected collaborators
NowFn = Callable[[], datetime]
NotifyFn = Callable[[str, str], None]


# =============================================================================
# Reminder Types
# =============================================================================


class OneOffReminderData(TypedDict):
    """A reminder that fires once at `due_at`."""

    id: ReminderId
    kind: str  # KIND_ONE_OFF
    title: str
    level: str
    conflict_mode: str
    created_at: ISODatetime
    updated_at: ISODatetime
    due_at: ISODatetime
    done: bool
    done_at: ISODatetime | None


class RecurringReminderData(TypedDict):
    """A reminder with a schedule; `next_due_at` is the cached occurrence."""

    id: ReminderId
    kind: str  # KIND_RECURRING
    title: str
    level: str
    conflict_mode: str
    created_at: ISODatetime
    updated_at: ISODatetime
    schedule_type: str
    time_of_day: TimeOfDay
    next_due_at: ISODatetime
    enabled: bool
    last_notified_date: DayKey | None
    paid_at: ISODatetime | None
    # Schedule parameters, present depending on schedule_type
    every: NotRequired[int]
    unit: NotRequired[str]
    weekdays: NotRequired[list[int]]  # 0=Mon..6=Sun; JS getDay() n -> (n - 1) % 7
    day_of_month: NotRequired[int]
    base_date: NotRequired[ISODate]
    dates: NotRequired[list[ISODate]]


ReminderData = OneOffReminderData | RecurringReminderData


class ScheduleConfig(TypedDict, total=False):
    """Configuration for RecurrenceEngine in schedule_engine.py.

    A recurring reminder dict is a valid ScheduleConfig; the engine only
    reads the schedule keys.
    """

    schedule_type: str  # SCHEDULE_TYPE_* constant
    time_of_day: TimeOfDay
    every: int  # Interval count for SCHEDULE_TYPE_INTERVAL
    unit: str  # TIME_UNIT_DAY or TIME_UNIT_WEEK
    weekdays: list[int]  # Weekday integers (0=Mon, 6=Sun)
    day_of_month: int  # 1-31, clamped to month length
    base_date: ISODate  # Anniversary base (year ignored)
    dates: list[ISODate]  # Fixed calendar dates


# =============================================================================
# Options
# =============================================================================


class ReminderOptions(TypedDict):
    """Validated coordinator options (see schemas.OPTIONS_SCHEMA)."""

    time_zone: str
    forward_guard_seconds: int
    max_shift_iterations: int
    notification_horizon_hours: int
    tick_interval_seconds: int
    digest_scope: str


# =============================================================================
# Collection Type Aliases
# =============================================================================

ReminderList = list[dict[str, Any]]
StoreDocument = dict[str, Any]
