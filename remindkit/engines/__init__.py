"""Engine modules for remindkit.

Contains specialized computation engines:
- schedule_engine: Next-occurrence calculation for recurring schedules
- conflict_engine: Day conflicts and allow/shift/block resolution
- reminder_engine: Reminder state, activity rules and list views
"""

# Use relative imports within package to avoid mypy module resolution issues
from .conflict_engine import (
    ConflictEngine,
    ConflictError,
    ConflictSignal,
    ReminderScheduleError,
    RetryExhaustedError,
    UnsolvableScheduleError,
)
from .reminder_engine import (
    REMINDER_STATE_ACTIVE,
    REMINDER_STATE_DONE,
    REMINDER_STATE_PAUSED,
    REMINDER_STATE_PENDING,
    ReminderEngine,
)
from .schedule_engine import RecurrenceEngine, next_occurrence

__all__ = [
    "REMINDER_STATE_ACTIVE",
    "REMINDER_STATE_DONE",
    "REMINDER_STATE_PAUSED",
    "REMINDER_STATE_PENDING",
    "ConflictEngine",
    "ConflictError",
    "ConflictSignal",
    "RecurrenceEngine",
    "ReminderEngine",
    "ReminderScheduleError",
    "RetryExhaustedError",
    "UnsolvableScheduleError",
    "next_occurrence",
]
