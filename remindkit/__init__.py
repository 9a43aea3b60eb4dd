"""remindkit - recurrence, conflict resolution and notifications for reminders.

Usage:
    coordinator = ReminderCoordinator(
        store=JsonFileReminderStore("reminders.json"),
        notify_fn=show_notification,
    ).setup()
    coordinator.reminder_manager.create({...})
    coordinator.notification_manager.tick()
"""

from .coordinator import ReminderCoordinator
from .data_builders import EntityValidationError
from .engines import (
    ConflictEngine,
    ConflictError,
    ConflictSignal,
    RecurrenceEngine,
    ReminderEngine,
    ReminderScheduleError,
    RetryExhaustedError,
    UnsolvableScheduleError,
    next_occurrence,
)
from .managers import (
    ArmedNotification,
    CompletionSummary,
    NotificationManager,
    ReminderManager,
    ReminderNotFoundError,
    WrongReminderKindError,
)
from .store import JsonFileReminderStore, MemoryReminderStore, ReminderStore

__all__ = [
    "ArmedNotification",
    "CompletionSummary",
    "ConflictEngine",
    "ConflictError",
    "ConflictSignal",
    "EntityValidationError",
    "JsonFileReminderStore",
    "MemoryReminderStore",
    "NotificationManager",
    "RecurrenceEngine",
    "ReminderCoordinator",
    "ReminderEngine",
    "ReminderManager",
    "ReminderNotFoundError",
    "ReminderScheduleError",
    "ReminderStore",
    "RetryExhaustedError",
    "UnsolvableScheduleError",
    "WrongReminderKindError",
    "next_occurrence",
]
