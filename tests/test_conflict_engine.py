"""Unit tests for conflict_engine.py ConflictEngine.

Day conflicts are decided on calendar-day keys in the configured zone and
only against *active* reminders (pending one-offs, enabled recurring).
"""

from typing import Any

import pytest

from remindkit import const
from remindkit.engines.conflict_engine import (
    ConflictEngine,
    ConflictError,
    ConflictSignal,
    RetryExhaustedError,
    UnsolvableScheduleError,
)
from remindkit.engines.schedule_engine import RecurrenceEngine
from remindkit.utils.dt_utils import set_default_timezone
from tests.helpers import make_dt, stored_one_off, stored_recurring

NOW = make_dt(2026, 3, 2, 10)


def _daily(time_of_day: str = "09:00") -> RecurrenceEngine:
    return RecurrenceEngine(
        {
            const.DATA_REMINDER_SCHEDULE_TYPE: const.SCHEDULE_TYPE_DAILY,
            const.DATA_REMINDER_TIME_OF_DAY: time_of_day,
        }
    )


def _busy_days(*day_keys: str) -> list[dict[str, Any]]:
    return [
        stored_one_off(f"busy-{index}", f"{day_key}T18:00:00+00:00")
        for index, day_key in enumerate(day_keys)
    ]


# =============================================================================
# Day conflict detection
# =============================================================================


class TestDayConflicts:
    """list_day_conflicts / has_day_conflict."""

    def test_pending_one_off_conflicts(self) -> None:
        """A pending one-off occupies its day."""
        reminders = [stored_one_off("a", "2026-03-05T15:00:00+00:00")]

        assert ConflictEngine.list_day_conflicts("2026-03-05", reminders) == ["a"]
        assert ConflictEngine.has_day_conflict(make_dt(2026, 3, 5, 1), reminders)

    def test_done_one_off_ignored(self) -> None:
        """Done one-offs never conflict."""
        reminders = [stored_one_off("a", "2026-03-05T15:00:00+00:00", done=True)]

        assert not ConflictEngine.has_day_conflict("2026-03-05", reminders)

    def test_enabled_recurring_conflicts_on_cached_occurrence(self) -> None:
        """Only the cached next_due_at of a recurring reminder counts."""
        reminders = [stored_recurring("r", "2026-03-05T09:00:00+00:00")]

        assert ConflictEngine.has_day_conflict("2026-03-05", reminders)
        assert not ConflictEngine.has_day_conflict("2026-03-06", reminders)

    def test_disabled_recurring_ignored(self) -> None:
        """Paused recurring reminders never conflict."""
        reminders = [
            stored_recurring("r", "2026-03-05T09:00:00+00:00", enabled=False)
        ]

        assert not ConflictEngine.has_day_conflict("2026-03-05", reminders)

    def test_exclude_own_id(self) -> None:
        """The reminder being scheduled never conflicts with itself."""
        reminders = [stored_one_off("a", "2026-03-05T15:00:00+00:00")]

        assert not ConflictEngine.has_day_conflict(
            "2026-03-05", reminders, exclude_id="a"
        )

    def test_day_key_uses_local_zone(self) -> None:
        """A late-evening UTC instant belongs to the previous local day."""
        set_default_timezone("America/Sao_Paulo")
        reminders = [stored_one_off("a", "2026-03-06T01:00:00+00:00")]

        assert ConflictEngine.has_day_conflict("2026-03-05", reminders)
        assert not ConflictEngine.has_day_conflict("2026-03-06", reminders)


# =============================================================================
# Conflict modes
# =============================================================================


class TestResolveModes:
    """resolve() under allow / block / shift."""

    def test_free_day_accepted_in_every_mode(self) -> None:
        """No conflict → the raw candidate, regardless of mode."""
        for mode in const.CONFLICT_MODE_OPTIONS:
            result = ConflictEngine.resolve(_daily(), NOW, [], None, mode, NOW)
            assert result == make_dt(2026, 3, 3, 9)

    def test_allow_keeps_busy_day(self) -> None:
        """Allow mode accepts a candidate on a busy day."""
        result = ConflictEngine.resolve(
            _daily(), NOW, _busy_days("2026-03-03"), None,
            const.CONFLICT_MODE_ALLOW, NOW,
        )

        assert result == make_dt(2026, 3, 3, 9)

    def test_block_returns_signal(self) -> None:
        """Block mode reports the busy day instead of a candidate."""
        result = ConflictEngine.resolve(
            _daily(), NOW, _busy_days("2026-03-03"), None,
            const.CONFLICT_MODE_BLOCK, NOW,
        )

        assert isinstance(result, ConflictSignal)
        assert result.date_key == "2026-03-03"
        assert result.candidate == make_dt(2026, 3, 3, 9)
        assert result.conflicting_ids == ("busy-0",)

    def test_block_raises_conflict_error(self) -> None:
        """resolve_or_raise maps the signal to ConflictError."""
        with pytest.raises(ConflictError) as exc_info:
            ConflictEngine.resolve_or_raise(
                _daily(), NOW, _busy_days("2026-03-03"), None,
                const.CONFLICT_MODE_BLOCK, NOW,
            )

        assert exc_info.value.date_key == "2026-03-03"
        assert exc_info.value.conflicting_ids == ["busy-0"]

    def test_shift_skips_busy_days(self) -> None:
        """Shift mode retries from the end of each busy day."""
        result = ConflictEngine.resolve(
            _daily(), NOW, _busy_days("2026-03-03", "2026-03-04"), None,
            const.CONFLICT_MODE_SHIFT, NOW,
        )

        assert result == make_dt(2026, 3, 5, 9)

    def test_shift_midnight_time_of_day(self) -> None:
        """A 00:00 time of day still shifts to the very next day."""
        result = ConflictEngine.resolve(
            _daily("00:00"), NOW, _busy_days("2026-03-03"), None,
            const.CONFLICT_MODE_SHIFT, NOW,
        )

        assert result == make_dt(2026, 3, 4, 0)

    def test_shift_weekly_moves_to_next_matching_weekday(self) -> None:
        """Weekly shift jumps to the next configured weekday, not the next day."""
        engine = RecurrenceEngine(
            {
                const.DATA_REMINDER_SCHEDULE_TYPE: const.SCHEDULE_TYPE_WEEKLY,
                const.DATA_REMINDER_TIME_OF_DAY: "09:00",
                const.DATA_REMINDER_WEEKDAYS: [3],
            }
        )

        result = ConflictEngine.resolve(
            engine, NOW, _busy_days("2026-03-05"), None,
            const.CONFLICT_MODE_SHIFT, NOW,
        )

        assert result == make_dt(2026, 3, 12, 9)

    def test_shift_interval_moves_one_day(self) -> None:
        """An interval blocked on its day moves to the next day, not the next step."""
        engine = RecurrenceEngine(
            {
                const.DATA_REMINDER_SCHEDULE_TYPE: const.SCHEDULE_TYPE_INTERVAL,
                const.DATA_REMINDER_TIME_OF_DAY: "09:00",
                const.DATA_REMINDER_EVERY: 3,
                const.DATA_REMINDER_UNIT: const.TIME_UNIT_DAY,
            },
            anchor=make_dt(2026, 3, 2, 9),
        )

        result = ConflictEngine.resolve(
            engine, NOW, _busy_days("2026-03-05"), None,
            const.CONFLICT_MODE_SHIFT, NOW,
        )

        assert result == make_dt(2026, 3, 6, 9)

    def test_shift_interval_over_consecutive_busy_days(self) -> None:
        """Each retry restarts the interval on the day after the busy one."""
        engine = RecurrenceEngine(
            {
                const.DATA_REMINDER_SCHEDULE_TYPE: const.SCHEDULE_TYPE_INTERVAL,
                const.DATA_REMINDER_TIME_OF_DAY: "09:00",
                const.DATA_REMINDER_EVERY: 2,
                const.DATA_REMINDER_UNIT: const.TIME_UNIT_WEEK,
            }
        )

        result = ConflictEngine.resolve(
            engine, NOW, _busy_days("2026-03-16", "2026-03-17"), None,
            const.CONFLICT_MODE_SHIFT, NOW,
        )

        assert result == make_dt(2026, 3, 18, 9)

    def test_shift_exhaustion(self) -> None:
        """Running out of attempts yields None / RetryExhaustedError."""
        reminders = _busy_days("2026-03-03", "2026-03-04", "2026-03-05")

        result = ConflictEngine.resolve(
            _daily(), NOW, reminders, None, const.CONFLICT_MODE_SHIFT, NOW,
            max_iterations=3,
        )
        assert result is None

        with pytest.raises(RetryExhaustedError) as exc_info:
            ConflictEngine.resolve_or_raise(
                _daily(), NOW, reminders, None, const.CONFLICT_MODE_SHIFT, NOW,
                max_iterations=3,
            )
        assert exc_info.value.iterations == 3
        assert isinstance(exc_info.value, UnsolvableScheduleError)

    def test_single_iteration_exhausts_on_first_conflict(self) -> None:
        """max_iterations=1 gives up as soon as the first candidate is busy."""
        with pytest.raises(RetryExhaustedError):
            ConflictEngine.resolve_or_raise(
                _daily(), NOW, _busy_days("2026-03-03"), None,
                const.CONFLICT_MODE_SHIFT, NOW, max_iterations=1,
            )

    def test_no_candidate_is_unsolvable(self) -> None:
        """An exhausted fixed-date list raises UnsolvableScheduleError."""
        engine = RecurrenceEngine(
            {
                const.DATA_REMINDER_SCHEDULE_TYPE: const.SCHEDULE_TYPE_FIXED_DATES,
                const.DATA_REMINDER_TIME_OF_DAY: "09:00",
                const.DATA_REMINDER_DATES: ["2026-01-01"],
            }
        )

        assert (
            ConflictEngine.resolve(engine, NOW, [], None, const.CONFLICT_MODE_SHIFT, NOW)
            is None
        )
        with pytest.raises(UnsolvableScheduleError) as exc_info:
            ConflictEngine.resolve_or_raise(
                engine, NOW, [], None, const.CONFLICT_MODE_SHIFT, NOW
            )
        assert not isinstance(exc_info.value, RetryExhaustedError)
        assert exc_info.value.schedule_type == const.SCHEDULE_TYPE_FIXED_DATES

    def test_shift_is_deterministic(self) -> None:
        """Same list and clock → same answer."""
        reminders = _busy_days("2026-03-03", "2026-03-05")

        results = {
            ConflictEngine.resolve(
                _daily(), NOW, reminders, None, const.CONFLICT_MODE_SHIFT, NOW
            )
            for _ in range(3)
        }

        assert results == {make_dt(2026, 3, 4, 9)}
