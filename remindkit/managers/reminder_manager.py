"""Reminder Manager - Stateful reminder operations and lifecycle orchestration.

This manager owns every write to the reminder list:
- create / edit (validate → resolve → swap list)
- one-off done toggle, recurring completion ("paid/done"), pause/resume
- delete and the bulk operations (complete all, clear done, clear all)
- the bookkeeping write used by notifications (mark_notified)

ARCHITECTURE:
- ReminderManager = "The Job" (STATEFUL orchestration, persistence, events)
- RecurrenceEngine / ConflictEngine / ReminderEngine = pure logic (STATELESS)
- NotificationManager = listens to REMINDERS_CHANGED and re-arms

Every mutation builds a new list and hands it to the coordinator only when
it succeeded, so a failed mutation never leaves a partial write behind.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from .. import const, data_builders as db, schemas
from ..engines.conflict_engine import (
    ConflictEngine,
    ConflictError,
    ConflictSignal,
    ReminderScheduleError,
)
from ..engines.reminder_engine import (
    REMINDER_STATE_ACTIVE,
    REMINDER_STATE_DONE,
    REMINDER_STATE_PAUSED,
    REMINDER_STATE_PENDING,
    ReminderEngine,
)
from ..engines.schedule_engine import RecurrenceEngine
from ..utils.dt_utils import (
    dt_at_time_of_day,
    dt_day_key,
    dt_parse,
    dt_to_iso,
    end_of_local_day,
    parse_time_of_day,
)
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..coordinator import ReminderCoordinator


__all__ = [
    "CompletionSummary",
    "ReminderManager",
    "ReminderNotFoundError",
    "WrongReminderKindError",
]


class ReminderNotFoundError(KeyError):
    """Raised when an operation names an id that is not in the list."""

    def __init__(self, reminder_id: str) -> None:
        self.reminder_id = reminder_id
        super().__init__(reminder_id)


class WrongReminderKindError(ValueError):
    """Raised when an operation targets the other reminder kind.

    Example: complete_recurring() on a one-off reminder.
    """

    def __init__(self, reminder_id: str, expected_kind: str) -> None:
        self.reminder_id = reminder_id
        self.expected_kind = expected_kind
        super().__init__(f"Reminder {reminder_id} is not a {expected_kind} reminder")


@dataclass
class CompletionSummary:
    """Outcome of complete_all_recurring().

    Conflicts and unsolvable schedules are collected per id; they never
    abort the batch.
    """

    completed: list[str] = field(default_factory=list)
    conflicts: dict[str, ConflictError] = field(default_factory=dict)
    failed: dict[str, ReminderScheduleError] = field(default_factory=dict)


class ReminderManager(BaseManager):
    """Manager for reminder state transitions and list ownership.

    Responsibilities:
    - Validate input and build reminder records (via data_builders)
    - Run the resolver pipeline for recurring schedules
    - Swap the new list in through the coordinator and emit events

    NOT responsible for:
    - Next-occurrence math (RecurrenceEngine)
    - Day-conflict rules (ConflictEngine)
    - Sending notifications (NotificationManager)
    """

    # =========================================================================
    # §0 LIFECYCLE
    # =========================================================================

    def __init__(self, coordinator: ReminderCoordinator) -> None:
        """Initialize ReminderManager.

        Args:
            coordinator: Parent coordinator owning the list, store and clock
        """
        super().__init__(coordinator)
        self._coordinator = coordinator

    def setup(self) -> None:
        """No subscriptions; this manager only emits."""

    @property
    def reminders(self) -> list[dict[str, Any]]:
        """Live reminder list (treat as read-only)."""
        return self._coordinator.reminders

    # =========================================================================
    # §1 CREATE / EDIT
    # =========================================================================

    def create(self, user_input: dict[str, Any]) -> dict[str, Any]:
        """Create a reminder.

        Args:
            user_input: Reminder fields with DATA_* keys; `kind` is required.

        Returns:
            Copy of the stored reminder.

        Raises:
            EntityValidationError: Input rejected before the resolver ran
            ConflictError: BLOCK mode and the day is taken
            UnsolvableScheduleError: No valid occurrence (or shift exhausted)
        """
        with self._coordinator.lock:
            now = self._coordinator.now()
            clean = schemas.validate_reminder_input(user_input)
            reminder: dict[str, Any] = dict(db.build_reminder(clean, now=now))
            reminder_id = reminder[const.DATA_REMINDER_ID]

            if ReminderEngine.is_recurring(reminder):
                next_due = self._resolve_from(reminder, now, now, self.reminders)
                reminder[const.DATA_REMINDER_NEXT_DUE_AT] = dt_to_iso(next_due)
            else:
                self._check_one_off_block(reminder, self.reminders)

            self._commit([*self.reminders, reminder])
            const.LOGGER.info(
                "Created %s reminder '%s' (ID: %s)",
                reminder[const.DATA_REMINDER_KIND],
                reminder[const.DATA_REMINDER_TITLE],
                reminder_id,
            )
            return copy.deepcopy(reminder)

    def edit(self, reminder_id: str, user_input: dict[str, Any]) -> dict[str, Any]:
        """Edit a reminder; recurring schedules are recomputed from now.

        One-off edits re-check day conflicts only in BLOCK mode, and only
        when the due date or the mode itself changed.

        Raises:
            ReminderNotFoundError: Unknown id
            EntityValidationError: Input rejected (kind changes included)
            ConflictError / UnsolvableScheduleError: As for create()
        """
        with self._coordinator.lock:
            existing = self._get_or_raise(reminder_id)
            now = self._coordinator.now()
            clean = schemas.validate_reminder_input(user_input)
            updated: dict[str, Any] = dict(
                db.build_reminder(clean, existing, now=now)
            )

            if ReminderEngine.is_recurring(updated):
                next_due = self._resolve_from(updated, now, now, self.reminders)
                if dt_day_key(next_due) != ReminderEngine.get_occurrence_day_key(
                    existing
                ):
                    # New occurrence day: the dedupe guard no longer applies
                    updated[const.DATA_REMINDER_LAST_NOTIFIED_DATE] = None
                updated[const.DATA_REMINDER_NEXT_DUE_AT] = dt_to_iso(next_due)
            elif (
                updated[const.DATA_REMINDER_DUE_AT]
                != existing.get(const.DATA_REMINDER_DUE_AT)
                or updated[const.DATA_REMINDER_CONFLICT_MODE]
                != existing.get(const.DATA_REMINDER_CONFLICT_MODE)
            ):
                self._check_one_off_block(updated, self.reminders)

            self._commit(self._replaced(reminder_id, updated))
            const.LOGGER.debug(
                "Updated reminder '%s' (ID: %s)",
                updated[const.DATA_REMINDER_TITLE],
                reminder_id,
            )
            return copy.deepcopy(updated)

    # =========================================================================
    # §2 STATE TRANSITIONS
    # =========================================================================

    def toggle_one_off_done(self, reminder_id: str) -> dict[str, Any]:
        """Flip Pending ⇄ Done, setting or clearing done_at."""
        with self._coordinator.lock:
            reminder = self._get_or_raise(reminder_id, const.KIND_ONE_OFF)
            now_iso = dt_to_iso(self._coordinator.now())
            current = ReminderEngine.get_state(reminder)
            target = (
                REMINDER_STATE_PENDING
                if current == REMINDER_STATE_DONE
                else REMINDER_STATE_DONE
            )
            if not ReminderEngine.can_transition(current, target):
                const.LOGGER.warning(
                    "Invalid transition %s -> %s for reminder %s",
                    current,
                    target,
                    reminder_id,
                )
                return copy.deepcopy(reminder)

            done = target == REMINDER_STATE_DONE
            updated = {
                **reminder,
                const.DATA_REMINDER_DONE: done,
                const.DATA_REMINDER_DONE_AT: now_iso if done else None,
                const.DATA_REMINDER_UPDATED_AT: now_iso,
            }
            self._commit(self._replaced(reminder_id, updated))
            const.LOGGER.debug("Reminder %s is now %s", reminder_id, target)
            return copy.deepcopy(updated)

    def toggle_enabled(self, reminder_id: str) -> dict[str, Any]:
        """Flip Active ⇄ Paused. next_due_at is kept as is."""
        with self._coordinator.lock:
            reminder = self._get_or_raise(reminder_id, const.KIND_RECURRING)
            current = ReminderEngine.get_state(reminder)
            target = (
                REMINDER_STATE_ACTIVE
                if current == REMINDER_STATE_PAUSED
                else REMINDER_STATE_PAUSED
            )
            updated = {
                **reminder,
                const.DATA_REMINDER_ENABLED: target == REMINDER_STATE_ACTIVE,
                const.DATA_REMINDER_UPDATED_AT: dt_to_iso(self._coordinator.now()),
            }
            self._commit(self._replaced(reminder_id, updated))
            const.LOGGER.debug("Reminder %s is now %s", reminder_id, target)
            return copy.deepcopy(updated)

    def complete_recurring(self, reminder_id: str) -> dict[str, Any]:
        """Mark a recurring reminder paid/done and advance its schedule.

        The next occurrence is searched from the end of the current due day,
        so it always lands on a later day than the one just completed.

        Raises:
            ReminderNotFoundError / WrongReminderKindError: Bad target
            ConflictError: BLOCK mode hit a busy day. paid_at is still
                recorded and persisted; next_due_at is unchanged.
            UnsolvableScheduleError: No further occurrence; list unmodified
        """
        with self._coordinator.lock:
            reminder = self._get_or_raise(reminder_id, const.KIND_RECURRING)
            now = self._coordinator.now()
            updated, error = self._apply_completion(reminder, self.reminders, now)
            if updated is not None:
                self._commit(self._replaced(reminder_id, updated))
            if error is not None:
                raise error
            return copy.deepcopy(updated)  # type: ignore[arg-type]

    def complete_all_recurring(self) -> CompletionSummary:
        """Complete every enabled recurring reminder ("pay all").

        Items are processed in list order against a working copy, so each
        completion sees the occurrences already moved by the previous ones.
        The list is committed once at the end.
        """
        with self._coordinator.lock:
            now = self._coordinator.now()
            working = list(self.reminders)
            summary = CompletionSummary()

            for index, reminder in enumerate(working):
                if not (
                    ReminderEngine.is_recurring(reminder)
                    and ReminderEngine.is_active(reminder)
                ):
                    continue
                reminder_id = reminder[const.DATA_REMINDER_ID]
                updated, error = self._apply_completion(reminder, working, now)
                if updated is not None:
                    working[index] = updated
                if isinstance(error, ConflictError):
                    summary.conflicts[reminder_id] = error
                elif error is not None:
                    summary.failed[reminder_id] = error
                else:
                    summary.completed.append(reminder_id)

            if summary.completed or summary.conflicts:
                self._commit(working)
            const.LOGGER.info(
                "Completed %s recurring reminder(s); %s conflict(s), %s failure(s)",
                len(summary.completed),
                len(summary.conflicts),
                len(summary.failed),
            )
            return summary

    # =========================================================================
    # §3 DELETE
    # =========================================================================

    def delete(self, reminder_id: str) -> None:
        """Remove a reminder. Conflicts are evaluated live, nothing cascades."""
        with self._coordinator.lock:
            self._get_or_raise(reminder_id)
            remaining = [
                r for r in self.reminders if r.get(const.DATA_REMINDER_ID) != reminder_id
            ]
            self._commit(remaining)
            self.emit(const.SIGNAL_SUFFIX_REMINDER_DELETED, reminder_id=reminder_id)
            const.LOGGER.info("Deleted reminder %s", reminder_id)

    def clear_done(self) -> int:
        """Delete every completed one-off reminder; returns how many."""
        with self._coordinator.lock:
            remaining = [
                r
                for r in self.reminders
                if not (
                    ReminderEngine.is_one_off(r)
                    and ReminderEngine.get_state(r) == REMINDER_STATE_DONE
                )
            ]
            removed = len(self.reminders) - len(remaining)
            if removed:
                self._commit(remaining)
            const.LOGGER.info("Cleared %s completed reminder(s)", removed)
            return removed

    def clear_all(self) -> int:
        """Delete every reminder; returns how many."""
        with self._coordinator.lock:
            removed = len(self.reminders)
            if removed:
                self._commit([])
            const.LOGGER.warning("Cleared all %s reminder(s)", removed)
            return removed

    # =========================================================================
    # §4 QUERIES (read-only)
    # =========================================================================

    def get(self, reminder_id: str) -> dict[str, Any]:
        """Return a copy of one reminder."""
        return copy.deepcopy(self._get_or_raise(reminder_id))

    def list_reminders(
        self, tab: str = const.TAB_PENDING, search: str = ""
    ) -> list[dict[str, Any]]:
        """List view: filter by tab and title search, order by occurrence."""
        if tab not in const.TAB_OPTIONS:
            raise db.EntityValidationError(
                field="tab",
                translation_key=const.TRANS_KEY_INVALID_INPUT,
                placeholders={"value": str(tab)},
            )
        visible = [
            r
            for r in self.reminders
            if ReminderEngine.matches_tab(r, tab)
            and ReminderEngine.matches_search(r, search)
        ]
        return copy.deepcopy(sorted(visible, key=ReminderEngine.sort_key))

    def has_day_conflict(
        self, day: datetime | str, exclude_id: str | None = None
    ) -> bool:
        """Check whether another active reminder occurs on `day`."""
        return ConflictEngine.has_day_conflict(day, self.reminders, exclude_id)

    def list_day_conflicts(
        self, day: datetime | str, exclude_id: str | None = None
    ) -> list[str]:
        """Ids of active reminders occurring on `day`."""
        return ConflictEngine.list_day_conflicts(day, self.reminders, exclude_id)

    def next_occurrence_preview(
        self, user_input: dict[str, Any], reminder_id: str | None = None
    ) -> datetime | ConflictSignal | None:
        """Run validation and the resolver without persisting anything.

        Args:
            user_input: Reminder fields (as for create, or partial for edit)
            reminder_id: When set, preview an edit of that reminder

        Returns:
            As ConflictEngine.resolve(); one-off input returns its due instant
            (or a ConflictSignal in BLOCK mode when the day is taken).

        Raises:
            EntityValidationError: Input rejected
        """
        existing = self._get_or_raise(reminder_id) if reminder_id else None
        now = self._coordinator.now()
        clean = schemas.validate_reminder_input(user_input)
        candidate: dict[str, Any] = dict(db.build_reminder(clean, existing, now=now))
        exclude_id = candidate[const.DATA_REMINDER_ID]

        if ReminderEngine.is_recurring(candidate):
            return ConflictEngine.resolve(
                RecurrenceEngine(
                    candidate, forward_guard=self._coordinator.forward_guard
                ),
                now,
                self.reminders,
                exclude_id,
                candidate[const.DATA_REMINDER_CONFLICT_MODE],
                now,
                self._coordinator.max_shift_iterations,
            )

        due = dt_parse(candidate[const.DATA_REMINDER_DUE_AT])
        if due is not None and candidate[const.DATA_REMINDER_CONFLICT_MODE] == (
            const.CONFLICT_MODE_BLOCK
        ):
            conflicts = ConflictEngine.list_day_conflicts(
                due, self.reminders, exclude_id
            )
            if conflicts:
                return ConflictSignal(dt_day_key(due), due, tuple(conflicts))
        return due

    # =========================================================================
    # §5 NOTIFICATION BOOKKEEPING
    # =========================================================================

    def mark_notified(self, reminder_id: str, day_key: str) -> None:
        """Stamp last_notified_date. Never touches next_due_at.

        Persisted without a change event: this is bookkeeping, not a
        schedule change, so armed notifications stay as they are.
        """
        with self._coordinator.lock:
            reminder = self._get_or_raise(reminder_id, const.KIND_RECURRING)
            if reminder.get(const.DATA_REMINDER_LAST_NOTIFIED_DATE) == day_key:
                return
            updated = {**reminder, const.DATA_REMINDER_LAST_NOTIFIED_DATE: day_key}
            self._coordinator.commit(
                self._replaced(reminder_id, updated), changed=False
            )

    # =========================================================================
    # §6 INTERNALS
    # =========================================================================

    def _get_or_raise(
        self, reminder_id: str, expected_kind: str | None = None
    ) -> dict[str, Any]:
        """Find a reminder by id, optionally enforcing its kind."""
        for reminder in self.reminders:
            if reminder.get(const.DATA_REMINDER_ID) == reminder_id:
                if (
                    expected_kind is not None
                    and reminder.get(const.DATA_REMINDER_KIND) != expected_kind
                ):
                    raise WrongReminderKindError(reminder_id, expected_kind)
                return reminder
        raise ReminderNotFoundError(reminder_id)

    def _replaced(
        self, reminder_id: str, updated: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """New list with one reminder swapped out."""
        return [
            updated if r.get(const.DATA_REMINDER_ID) == reminder_id else r
            for r in self.reminders
        ]

    def _commit(self, reminders: list[dict[str, Any]]) -> None:
        """Swap the list in and announce the change."""
        self._coordinator.commit(reminders)
        self.emit(const.SIGNAL_SUFFIX_REMINDERS_CHANGED, count=len(reminders))

    def _resolve_from(
        self,
        reminder: dict[str, Any],
        from_instant: datetime,
        now: datetime,
        reminders: list[dict[str, Any]],
        anchor: datetime | None = None,
    ) -> datetime:
        """Run RecurrenceEngine + ConflictEngine for one recurring reminder."""
        engine = RecurrenceEngine(
            reminder, forward_guard=self._coordinator.forward_guard, anchor=anchor
        )
        return ConflictEngine.resolve_or_raise(
            engine,
            from_instant,
            reminders,
            reminder.get(const.DATA_REMINDER_ID),
            reminder.get(const.DATA_REMINDER_CONFLICT_MODE, const.DEFAULT_CONFLICT_MODE),
            now,
            self._coordinator.max_shift_iterations,
        )

    def _check_one_off_block(
        self, reminder: dict[str, Any], reminders: list[dict[str, Any]]
    ) -> None:
        """A fixed due date cannot shift: only BLOCK mode rejects conflicts."""
        if reminder.get(const.DATA_REMINDER_CONFLICT_MODE) != const.CONFLICT_MODE_BLOCK:
            return
        due = ReminderEngine.get_occurrence(reminder)
        if due is None:
            return
        conflicts = ConflictEngine.list_day_conflicts(
            due, reminders, reminder.get(const.DATA_REMINDER_ID)
        )
        if conflicts:
            raise ConflictError(dt_day_key(due), due, conflicts)

    def _apply_completion(
        self,
        reminder: dict[str, Any],
        reminders: list[dict[str, Any]],
        now: datetime,
    ) -> tuple[dict[str, Any] | None, ReminderScheduleError | None]:
        """Compute the completed record without committing it.

        Returns:
            (updated, None) on success; (updated, ConflictError) when only
            paid_at was recorded; (None, error) when nothing may change.
        """
        reminder_id = reminder[const.DATA_REMINDER_ID]
        current_due = ReminderEngine.get_occurrence(reminder)
        if current_due is None:
            # No cached occurrence: fall back to today at the configured time
            time_of_day = parse_time_of_day(
                reminder.get(const.DATA_REMINDER_TIME_OF_DAY)
            ) or parse_time_of_day(const.DEFAULT_TIME_OF_DAY)
            current_due = dt_at_time_of_day(now.date(), time_of_day)  # type: ignore[arg-type]

        now_iso = dt_to_iso(now)
        try:
            next_due = self._resolve_from(
                reminder,
                end_of_local_day(current_due),
                now,
                reminders,
                anchor=current_due,
            )
        except ConflictError as err:
            const.LOGGER.info(
                "Completion of %s recorded, but next occurrence %s is blocked",
                reminder_id,
                err.date_key,
            )
            return (
                {
                    **reminder,
                    const.DATA_REMINDER_PAID_AT: now_iso,
                    const.DATA_REMINDER_UPDATED_AT: now_iso,
                },
                err,
            )
        except ReminderScheduleError as err:
            const.LOGGER.warning("Cannot complete reminder %s: %s", reminder_id, err)
            return None, err

        const.LOGGER.debug(
            "Reminder %s completed, next occurrence %s", reminder_id, next_due
        )
        return (
            {
                **reminder,
                const.DATA_REMINDER_NEXT_DUE_AT: dt_to_iso(next_due),
                const.DATA_REMINDER_PAID_AT: now_iso,
                const.DATA_REMINDER_LAST_NOTIFIED_DATE: None,
                const.DATA_REMINDER_UPDATED_AT: now_iso,
            },
            None,
        )
