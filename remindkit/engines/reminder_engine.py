"""Reminder Engine - Pure logic for per-reminder state and list views.

This engine provides stateless, pure Python functions for:
- Kind checks and state derivation (pending/done, active/paused)
- Occurrence lookup (due_at for one-off, next_due_at for recurring)
- Activity rules used by conflict detection and notifications
- List view helpers (tab filter, accent-insensitive search, ordering)

ARCHITECTURE: This is a pure logic engine. All functions are static methods
that operate on passed-in data. State management belongs in ReminderManager.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
import unicodedata

from .. import const
from ..utils.dt_utils import dt_day_key, dt_parse

# =============================================================================
# REMINDER STATES
# =============================================================================

# One-off: Pending <-> Done. Recurring: Active <-> Paused (orthogonal to due date).
REMINDER_STATE_PENDING = "pending"
REMINDER_STATE_DONE = "done"
REMINDER_STATE_ACTIVE = "active"
REMINDER_STATE_PAUSED = "paused"


class ReminderEngine:
    """Pure logic engine for reminder state and list views.

    All methods are static - no instance state.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        REMINDER_STATE_PENDING: [REMINDER_STATE_DONE],
        REMINDER_STATE_DONE: [REMINDER_STATE_PENDING],
        REMINDER_STATE_ACTIVE: [REMINDER_STATE_PAUSED],
        REMINDER_STATE_PAUSED: [REMINDER_STATE_ACTIVE],
    }

    # =========================================================================
    # KIND / STATE
    # =========================================================================

    @staticmethod
    def is_one_off(reminder: dict[str, Any]) -> bool:
        """Return True for one-off reminders."""
        return reminder.get(const.DATA_REMINDER_KIND) == const.KIND_ONE_OFF

    @staticmethod
    def is_recurring(reminder: dict[str, Any]) -> bool:
        """Return True for recurring reminders."""
        return reminder.get(const.DATA_REMINDER_KIND) == const.KIND_RECURRING

    @staticmethod
    def get_state(reminder: dict[str, Any]) -> str:
        """Derive the lifecycle state of a reminder."""
        if ReminderEngine.is_recurring(reminder):
            if reminder.get(const.DATA_REMINDER_ENABLED) is False:
                return REMINDER_STATE_PAUSED
            return REMINDER_STATE_ACTIVE
        if reminder.get(const.DATA_REMINDER_DONE):
            return REMINDER_STATE_DONE
        return REMINDER_STATE_PENDING

    @staticmethod
    def can_transition(current_state: str, target_state: str) -> bool:
        """Validate if a state transition is allowed."""
        return target_state in ReminderEngine.VALID_TRANSITIONS.get(current_state, [])

    @staticmethod
    def is_active(reminder: dict[str, Any]) -> bool:
        """Return True if the reminder takes part in conflicts and notifications.

        One-off reminders are active while not done; recurring reminders
        while `enabled` is not explicitly False.
        """
        return ReminderEngine.get_state(reminder) in (
            REMINDER_STATE_PENDING,
            REMINDER_STATE_ACTIVE,
        )

    # =========================================================================
    # OCCURRENCE
    # =========================================================================

    @staticmethod
    def get_occurrence(reminder: dict[str, Any]) -> datetime | None:
        """Return the current occurrence instant of a reminder.

        One-off: `due_at`. Recurring: cached `next_due_at`.
        """
        if ReminderEngine.is_recurring(reminder):
            raw = reminder.get(const.DATA_REMINDER_NEXT_DUE_AT)
        else:
            raw = reminder.get(const.DATA_REMINDER_DUE_AT)
        return dt_parse(raw) if raw else None

    @staticmethod
    def get_occurrence_day_key(reminder: dict[str, Any]) -> str | None:
        """Return the calendar-day key of the current occurrence."""
        occurrence = ReminderEngine.get_occurrence(reminder)
        return dt_day_key(occurrence) if occurrence else None

    @staticmethod
    def is_due_on(reminder: dict[str, Any], day_key: str) -> bool:
        """Return True if an active reminder's occurrence falls on `day_key`."""
        return (
            ReminderEngine.is_active(reminder)
            and ReminderEngine.get_occurrence_day_key(reminder) == day_key
        )

    # =========================================================================
    # LIST VIEWS
    # =========================================================================

    @staticmethod
    def normalize_text(text: Any) -> str:
        """Normalize text for search: trimmed, lower-case, accents removed."""
        decomposed = unicodedata.normalize("NFD", str(text or "").strip().lower())
        return "".join(ch for ch in decomposed if not unicodedata.combining(ch))

    @staticmethod
    def matches_tab(reminder: dict[str, Any], tab: str) -> bool:
        """Check whether a reminder belongs to a list tab.

        Recurring reminders always count as pending; they are never "done".
        """
        if tab == const.TAB_ALL:
            return True
        if ReminderEngine.is_recurring(reminder):
            return tab == const.TAB_PENDING
        is_done = bool(reminder.get(const.DATA_REMINDER_DONE))
        return is_done if tab == const.TAB_DONE else not is_done

    @staticmethod
    def matches_search(reminder: dict[str, Any], query: str) -> bool:
        """Accent- and case-insensitive title search."""
        needle = ReminderEngine.normalize_text(query)
        if not needle:
            return True
        title = ReminderEngine.normalize_text(reminder.get(const.DATA_REMINDER_TITLE))
        return needle in title

    @staticmethod
    def sort_key(reminder: dict[str, Any]) -> tuple[int, datetime | str]:
        """Order by occurrence; reminders without one sort last."""
        occurrence = ReminderEngine.get_occurrence(reminder)
        if occurrence is None:
            return (1, "")
        return (0, occurrence)
