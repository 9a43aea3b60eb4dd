"""Input builders for remindkit tests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from remindkit import const


def make_dt(
    year: int, month: int, day: int, hour: int = 0, minute: int = 0
) -> datetime:
    """Create a UTC datetime for testing."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def one_off_input(
    title: str = "Dentist", due_at: str = "2026-03-05T15:00", **extra: Any
) -> dict[str, Any]:
    """Create-input for a one-off reminder."""
    return {
        const.DATA_REMINDER_KIND: const.KIND_ONE_OFF,
        const.DATA_REMINDER_TITLE: title,
        const.DATA_REMINDER_DUE_AT: due_at,
        **extra,
    }


def recurring_input(
    title: str = "Electricity bill",
    schedule_type: str = const.SCHEDULE_TYPE_DAILY,
    time_of_day: str = "09:00",
    **extra: Any,
) -> dict[str, Any]:
    """Create-input for a recurring reminder."""
    return {
        const.DATA_REMINDER_KIND: const.KIND_RECURRING,
        const.DATA_REMINDER_TITLE: title,
        const.DATA_REMINDER_SCHEDULE_TYPE: schedule_type,
        const.DATA_REMINDER_TIME_OF_DAY: time_of_day,
        **extra,
    }


def stored_one_off(
    reminder_id: str, due_at: str, *, done: bool = False, title: str = "Stored"
) -> dict[str, Any]:
    """A one-off reminder record as it sits in the list."""
    return {
        const.DATA_REMINDER_ID: reminder_id,
        const.DATA_REMINDER_KIND: const.KIND_ONE_OFF,
        const.DATA_REMINDER_TITLE: title,
        const.DATA_REMINDER_LEVEL: const.DEFAULT_LEVEL,
        const.DATA_REMINDER_CONFLICT_MODE: const.CONFLICT_MODE_ALLOW,
        const.DATA_REMINDER_DUE_AT: due_at,
        const.DATA_REMINDER_DONE: done,
        const.DATA_REMINDER_DONE_AT: None,
    }


def stored_recurring(
    reminder_id: str,
    next_due_at: str,
    *,
    enabled: bool = True,
    title: str = "Stored recurring",
    **schedule: Any,
) -> dict[str, Any]:
    """A recurring reminder record as it sits in the list."""
    return {
        const.DATA_REMINDER_ID: reminder_id,
        const.DATA_REMINDER_KIND: const.KIND_RECURRING,
        const.DATA_REMINDER_TITLE: title,
        const.DATA_REMINDER_LEVEL: const.DEFAULT_LEVEL,
        const.DATA_REMINDER_CONFLICT_MODE: const.CONFLICT_MODE_ALLOW,
        const.DATA_REMINDER_SCHEDULE_TYPE: schedule.pop(
            const.DATA_REMINDER_SCHEDULE_TYPE, const.SCHEDULE_TYPE_DAILY
        ),
        const.DATA_REMINDER_TIME_OF_DAY: schedule.pop(
            const.DATA_REMINDER_TIME_OF_DAY, "09:00"
        ),
        const.DATA_REMINDER_NEXT_DUE_AT: next_due_at,
        const.DATA_REMINDER_ENABLED: enabled,
        const.DATA_REMINDER_LAST_NOTIFIED_DATE: None,
        const.DATA_REMINDER_PAID_AT: None,
        **schedule,
    }
