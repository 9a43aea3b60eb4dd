"""Conflict Engine - day-conflict detection and the shift-retry search.

This engine provides stateless, pure Python functions for:
- Occurrence-day lookup for any reminder (one-off or recurring)
- Day conflict detection against the live reminder list
- Candidate resolution under the three conflict modes (allow / shift / block)

ARCHITECTURE: This is a pure logic engine. All functions are static methods
that operate on passed-in data; nothing here reads the store or the clock
except through arguments. The shift-retry loop below is the only place a
candidate is moved because of another reminder.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.dt_utils import dt_day_key, end_of_local_day
from .reminder_engine import ReminderEngine

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .schedule_engine import RecurrenceEngine


# =============================================================================
# EXCEPTIONS
# =============================================================================


class ReminderScheduleError(Exception):
    """Base class for schedule resolution failures."""


class UnsolvableScheduleError(ReminderScheduleError):
    """Raised when the schedule has no valid next occurrence.

    Example: a FIXED_DATES list whose dates are all in the past.
    """

    def __init__(self, schedule_type: str, message: str | None = None) -> None:
        """Initialize UnsolvableScheduleError.

        Args:
            schedule_type: The schedule type that could not be solved
            message: Optional override for the error message
        """
        self.schedule_type = schedule_type
        super().__init__(
            message or f"No valid next occurrence for schedule type '{schedule_type}'"
        )


class RetryExhaustedError(UnsolvableScheduleError):
    """Raised when shift mode runs out of retry iterations.

    Treated like UnsolvableScheduleError by callers.
    """

    def __init__(self, schedule_type: str, iterations: int) -> None:
        """Initialize RetryExhaustedError.

        Args:
            schedule_type: The schedule type being shifted
            iterations: Number of attempts made before giving up
        """
        self.iterations = iterations
        super().__init__(
            schedule_type,
            f"Shift search exhausted after {iterations} attempts "
            f"for schedule type '{schedule_type}'",
        )


class ConflictError(ReminderScheduleError):
    """Raised when a candidate lands on a busy day under BLOCK mode.

    Attributes:
        date_key: The conflicting calendar day (YYYY-MM-DD)
        candidate: The candidate instant that was rejected
        conflicting_ids: Ids of the reminders already occupying that day
    """

    def __init__(
        self,
        date_key: str,
        candidate: datetime,
        conflicting_ids: list[str] | None = None,
    ) -> None:
        """Initialize ConflictError."""
        self.date_key = date_key
        self.candidate = candidate
        self.conflicting_ids = conflicting_ids or []
        super().__init__(f"Another reminder is already due on {date_key}")


# =============================================================================
# RESULT STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class ConflictSignal:
    """Returned by resolve() when BLOCK mode meets a busy day.

    The caller must not persist a schedule change on receiving this.
    """

    date_key: str
    candidate: datetime
    conflicting_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class _SearchOutcome:
    """Internal result of the bounded candidate search."""

    result: datetime | ConflictSignal | None
    attempts: int
    exhausted: bool = False


# =============================================================================
# CONFLICT ENGINE
# =============================================================================


class ConflictEngine:
    """Pure logic engine for day conflicts and conflict-mode resolution.

    All methods are static - no instance state.
    """

    @staticmethod
    def list_day_conflicts(
        day: datetime | str,
        reminders: Iterable[dict[str, Any]],
        exclude_id: str | None = None,
    ) -> list[str]:
        """Return ids of active reminders whose occurrence falls on `day`.

        Args:
            day: Instant or calendar-day key to test
            reminders: Full live reminder list
            exclude_id: Reminder to ignore (usually the one being scheduled)

        Returns:
            Conflicting reminder ids in list order.
        """
        day_key = day if isinstance(day, str) else dt_day_key(day)
        conflicts: list[str] = []
        for reminder in reminders:
            reminder_id = reminder.get(const.DATA_REMINDER_ID)
            if exclude_id is not None and reminder_id == exclude_id:
                continue
            if not ReminderEngine.is_active(reminder):
                continue
            if ReminderEngine.get_occurrence_day_key(reminder) == day_key:
                conflicts.append(reminder_id)
        return conflicts

    @staticmethod
    def has_day_conflict(
        day: datetime | str,
        reminders: Iterable[dict[str, Any]],
        exclude_id: str | None = None,
    ) -> bool:
        """Check whether any other active reminder occurs on `day`."""
        return bool(ConflictEngine.list_day_conflicts(day, reminders, exclude_id))

    @staticmethod
    def resolve(
        engine: RecurrenceEngine,
        from_instant: datetime,
        reminders: list[dict[str, Any]],
        exclude_id: str | None,
        conflict_mode: str,
        now: datetime,
        max_iterations: int = const.DEFAULT_MAX_SHIFT_ITERATIONS,
    ) -> datetime | ConflictSignal | None:
        """Compute the next occurrence and apply the conflict mode.

        Args:
            engine: RecurrenceEngine built from the reminder's schedule
            from_instant: Search start for the first candidate
            reminders: Full live reminder list
            exclude_id: Own id (excluded from conflict checks)
            conflict_mode: CONFLICT_MODE_* constant
            now: Evaluation instant for the forward guard
            max_iterations: Bound on shift retries

        Returns:
            - datetime: the accepted candidate
            - ConflictSignal: BLOCK mode hit a busy day
            - None: no candidate exists, or SHIFT exhausted its retries
        """
        return ConflictEngine._search(
            engine,
            from_instant,
            reminders,
            exclude_id,
            conflict_mode,
            now,
            max_iterations,
        ).result

    @staticmethod
    def resolve_or_raise(
        engine: RecurrenceEngine,
        from_instant: datetime,
        reminders: list[dict[str, Any]],
        exclude_id: str | None,
        conflict_mode: str,
        now: datetime,
        max_iterations: int = const.DEFAULT_MAX_SHIFT_ITERATIONS,
    ) -> datetime:
        """Resolve like resolve() but map failures onto exceptions.

        Raises:
            ConflictError: BLOCK mode hit a busy day
            RetryExhaustedError: SHIFT mode ran out of iterations
            UnsolvableScheduleError: The schedule has no valid occurrence
        """
        outcome = ConflictEngine._search(
            engine,
            from_instant,
            reminders,
            exclude_id,
            conflict_mode,
            now,
            max_iterations,
        )
        result = outcome.result
        if isinstance(result, ConflictSignal):
            raise ConflictError(
                result.date_key, result.candidate, list(result.conflicting_ids)
            )
        if result is None:
            if outcome.exhausted:
                raise RetryExhaustedError(engine.schedule_type, outcome.attempts)
            raise UnsolvableScheduleError(engine.schedule_type)
        return result

    @staticmethod
    def _search(
        engine: RecurrenceEngine,
        from_instant: datetime,
        reminders: list[dict[str, Any]],
        exclude_id: str | None,
        conflict_mode: str,
        now: datetime,
        max_iterations: int,
    ) -> _SearchOutcome:
        """Bounded candidate search shared by resolve() and resolve_or_raise()."""
        search_from = from_instant
        attempts = 0

        while attempts < max_iterations:
            attempts += 1
            candidate = engine.get_next_occurrence(search_from, now)
            if candidate is None:
                return _SearchOutcome(None, attempts)

            day_key = dt_day_key(candidate)
            conflicts = ConflictEngine.list_day_conflicts(
                day_key, reminders, exclude_id
            )
            if not conflicts:
                return _SearchOutcome(candidate, attempts)

            if conflict_mode == const.CONFLICT_MODE_BLOCK:
                const.LOGGER.debug(
                    "ConflictEngine: %s blocked by %s", day_key, conflicts
                )
                return _SearchOutcome(
                    ConflictSignal(day_key, candidate, tuple(conflicts)), attempts
                )

            if conflict_mode != const.CONFLICT_MODE_SHIFT:
                # Allow (and unknown modes): conflicts are informational only
                return _SearchOutcome(candidate, attempts)

            const.LOGGER.debug(
                "ConflictEngine: %s busy (%s), shifting to next day", day_key, conflicts
            )
            # Retry from the next day; interval phase restarts there
            search_from = end_of_local_day(candidate)
            engine = engine.without_anchor()

        const.LOGGER.warning(
            "ConflictEngine: Shift search exhausted after %s attempts", attempts
        )
        return _SearchOutcome(None, attempts, exhausted=True)
