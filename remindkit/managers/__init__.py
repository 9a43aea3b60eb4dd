"""Manager modules for remindkit.

Managers orchestrate workflows and coordinate between engines.
They are stateful, event-aware, and handle cross-cutting concerns.
"""

from .base_manager import BaseManager, SignalDispatcher
from .notification_manager import ArmedNotification, NotificationManager
from .reminder_manager import (
    CompletionSummary,
    ReminderManager,
    ReminderNotFoundError,
    WrongReminderKindError,
)

__all__ = [
    "ArmedNotification",
    "BaseManager",
    "CompletionSummary",
    "NotificationManager",
    "ReminderManager",
    "ReminderNotFoundError",
    "SignalDispatcher",
    "WrongReminderKindError",
]
