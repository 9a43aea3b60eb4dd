"""Schedule Engine for remindkit.

Computes the next due occurrence of a recurring reminder using a hybrid approach:
- `dateutil.rrule` for weekday patterns (WEEKLY with byweekday)
- `dateutil.relativedelta` for month/year clamping (day 31 in Feb = Feb 28/29)
- fixed-step fast-forward for day/week intervals

The engine never looks at other reminders; conflict avoidance lives in
conflict_engine.py.

IMPORTANT: This module must NOT import from managers or coordinator.
Only import from const.py, type_defs.py, utils and third-party date libraries.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from dateutil.relativedelta import relativedelta
from dateutil.rrule import FR, MO, SA, SU, TH, TU, WE, WEEKLY, rrule

from .. import const
from ..utils.dt_utils import (
    as_local,
    dt_at_time_of_day,
    dt_now_local,
    dt_parse,
    dt_parse_date,
    end_of_local_day,
    parse_time_of_day,
    start_of_next_local_day,
)

if TYPE_CHECKING:
    from ..type_defs import ScheduleConfig


class RecurrenceEngine:
    """Next-occurrence calculator for the six recurring schedule types.

    Every candidate is anchored at the configured time of day and must pass
    the same validity rule: strictly after the search start (`after`) and
    at least `forward_guard` ahead of `now`.

    Handles:
    - INTERVAL / DAILY: fixed steps of N days or N weeks
    - WEEKLY: first matching weekday within 366 days
    - MONTHLY_DAY: day-of-month clamped to month length, within 36 months
    - ANNIVERSARY: month/day of base date clamped, within 10 years
    - FIXED_DATES: earliest listed date not yet passed
    """

    WEEKDAY_TO_RRULE: ClassVar[list[Any]] = [MO, TU, WE, TH, FR, SA, SU]

    INTERVAL_TYPES: ClassVar[set[str]] = {
        const.SCHEDULE_TYPE_INTERVAL,
        const.SCHEDULE_TYPE_DAILY,
    }

    def __init__(
        self,
        config: ScheduleConfig | dict[str, Any],
        *,
        forward_guard: timedelta = const.DEFAULT_FORWARD_GUARD,
        anchor: datetime | None = None,
    ) -> None:
        """Initialize the recurrence engine with a schedule configuration.

        Args:
            config: ScheduleConfig (a recurring reminder dict works as-is)
            forward_guard: Minimum distance between `now` and a candidate
            anchor: Optional phase anchor for interval schedules. When set,
                interval candidates are `anchor + k * step` instead of being
                re-anchored on the search day (used when completing).

        Note:
            Invalid `every` values (<=0 or non-numeric) are coerced to 1.
            Weekdays outside 0-6 and unparseable dates are dropped; the
            builders in data_builders.py reject such input before it gets here.
        """
        self._config = config
        self._schedule_type = config.get(const.DATA_REMINDER_SCHEDULE_TYPE, "")
        self._forward_guard = forward_guard
        self._anchor = as_local(anchor) if anchor else None

        self._time_of_day: time = parse_time_of_day(
            config.get(const.DATA_REMINDER_TIME_OF_DAY)
        ) or parse_time_of_day(const.DEFAULT_TIME_OF_DAY)  # type: ignore[assignment]

        try:
            every = int(config.get(const.DATA_REMINDER_EVERY, const.DEFAULT_EVERY))
        except (TypeError, ValueError):
            every = const.DEFAULT_EVERY
        self._every = max(1, every)
        self._unit = config.get(const.DATA_REMINDER_UNIT, const.DEFAULT_UNIT)

        raw_days = config.get(const.DATA_REMINDER_WEEKDAYS) or []
        self._weekdays = sorted(
            {
                int(d)
                for d in raw_days
                if isinstance(d, int) and const.WEEKDAY_MIN <= d <= const.WEEKDAY_MAX
            }
        )

        self._day_of_month = config.get(const.DATA_REMINDER_DAY_OF_MONTH)
        self._base_date = dt_parse_date(config.get(const.DATA_REMINDER_BASE_DATE))

        parsed_dates = (
            dt_parse_date(d) for d in config.get(const.DATA_REMINDER_DATES) or []
        )
        self._dates: list[date] = sorted({d for d in parsed_dates if d is not None})

    @property
    def schedule_type(self) -> str:
        """Return the configured schedule type."""
        return self._schedule_type

    def without_anchor(self) -> RecurrenceEngine:
        """Return an engine for the same schedule that re-anchors on the search day."""
        if self._anchor is None:
            return self
        return RecurrenceEngine(self._config, forward_guard=self._forward_guard)

    def get_next_occurrence(
        self, after: datetime, now: datetime | None = None
    ) -> datetime | None:
        """Calculate the next occurrence strictly after `after`.

        Args:
            after: Search start (local instant). Candidates must be later.
            now: Evaluation instant for the forward guard. Defaults to the
                local wall clock.

        Returns:
            Next occurrence as local datetime, or None if the schedule has
            no valid occurrence within its search bound.
        """
        after_local = as_local(after)
        now_local = as_local(now) if now is not None else dt_now_local()

        if self._schedule_type in self.INTERVAL_TYPES:
            return self._calculate_interval(after_local, now_local)
        if self._schedule_type == const.SCHEDULE_TYPE_WEEKLY:
            return self._calculate_weekly(after_local, now_local)
        if self._schedule_type == const.SCHEDULE_TYPE_MONTHLY_DAY:
            return self._calculate_monthly_day(after_local, now_local)
        if self._schedule_type == const.SCHEDULE_TYPE_ANNIVERSARY:
            return self._calculate_anniversary(after_local, now_local)
        if self._schedule_type == const.SCHEDULE_TYPE_FIXED_DATES:
            return self._calculate_fixed_dates(after_local, now_local)

        const.LOGGER.debug(
            "RecurrenceEngine: Unknown schedule type '%s', cannot calculate",
            self._schedule_type,
        )
        return None

    def is_valid_candidate(
        self, candidate: datetime, after: datetime, now: datetime
    ) -> bool:
        """Check the shared validity rule (strictly after search start, clears guard)."""
        return candidate > after and candidate >= now + self._forward_guard

    # =========================================================================
    # Private: fixed-step intervals (INTERVAL, DAILY)
    # =========================================================================

    def _get_step(self) -> timedelta:
        """Return the fixed step for interval schedules."""
        if self._schedule_type == const.SCHEDULE_TYPE_DAILY:
            return timedelta(days=1)
        if self._unit == const.TIME_UNIT_WEEK:
            return timedelta(weeks=self._every)
        return timedelta(days=self._every)

    def _calculate_interval(self, after: datetime, now: datetime) -> datetime | None:
        """Fast-forward from the anchor to the first valid step.

        Uses integer division to jump close to the threshold, then steps
        forward; the loop is bounded for safety.
        """
        step = self._get_step()
        if self._anchor:
            anchor_day = self._anchor.date()
        elif after == end_of_local_day(after):
            # Searching from a day's last instant starts on the next day
            anchor_day = start_of_next_local_day(after).date()
        else:
            anchor_day = after.date()
        result = dt_at_time_of_day(anchor_day, self._time_of_day)

        threshold = max(after, now + self._forward_guard)
        if result < threshold:
            result = result + step * ((threshold - result) // step)

        iteration = 0
        while (
            not self.is_valid_candidate(result, after, now)
            and iteration < const.MAX_DATE_CALCULATION_ITERATIONS
        ):
            iteration += 1
            result = result + step

        if iteration >= const.MAX_DATE_CALCULATION_ITERATIONS:
            const.LOGGER.warning(
                "RecurrenceEngine: Max iterations reached for interval schedule"
            )
            return None
        return result

    # =========================================================================
    # Private: rrule-based calculation (WEEKLY)
    # =========================================================================

    def _calculate_weekly(self, after: datetime, now: datetime) -> datetime | None:
        """Scan forward for the first date whose weekday is configured.

        The rrule is bounded to WEEKLY_SEARCH_DAYS after the search day.
        """
        if not self._weekdays:
            const.LOGGER.debug("RecurrenceEngine: WEEKLY schedule has no weekdays")
            return None

        dtstart = dt_at_time_of_day(after.date(), self._time_of_day)
        rule = rrule(
            WEEKLY,
            dtstart=dtstart,
            until=dtstart + timedelta(days=const.WEEKLY_SEARCH_DAYS),
            byweekday=[self.WEEKDAY_TO_RRULE[d] for d in self._weekdays],
        )

        for candidate in rule:
            if self.is_valid_candidate(candidate, after, now):
                return candidate

        const.LOGGER.debug(
            "RecurrenceEngine: No WEEKLY match within %s days of %s",
            const.WEEKLY_SEARCH_DAYS,
            after.date(),
        )
        return None

    # =========================================================================
    # Private: relativedelta-based calculation (clamping schedules)
    # =========================================================================

    def _calculate_monthly_day(
        self, after: datetime, now: datetime
    ) -> datetime | None:
        """Return the next month whose clamped target day is valid.

        relativedelta(day=N) clamps to the month length, so day 31 lands on
        Feb 28/29, Apr 30, etc. No rollover into the following month.
        """
        if not isinstance(self._day_of_month, int):
            return None

        first_of_month = after.date().replace(day=1)
        for offset in range(const.MONTHLY_SEARCH_MONTHS):
            target_day = first_of_month + relativedelta(
                months=offset, day=self._day_of_month
            )
            candidate = dt_at_time_of_day(target_day, self._time_of_day)
            if self.is_valid_candidate(candidate, after, now):
                return candidate

        const.LOGGER.debug(
            "RecurrenceEngine: No MONTHLY_DAY match within %s months",
            const.MONTHLY_SEARCH_MONTHS,
        )
        return None

    def _calculate_anniversary(
        self, after: datetime, now: datetime
    ) -> datetime | None:
        """Return the next yearly recurrence of the base date's month/day.

        Feb 29 clamps to Feb 28 in non-leap years.
        """
        if self._base_date is None:
            return None

        start_of_year = date(after.year, 1, 1)
        for offset in range(const.ANNIVERSARY_SEARCH_YEARS):
            target_day = start_of_year + relativedelta(
                years=offset, month=self._base_date.month, day=self._base_date.day
            )
            candidate = dt_at_time_of_day(target_day, self._time_of_day)
            if self.is_valid_candidate(candidate, after, now):
                return candidate

        return None

    # =========================================================================
    # Private: FIXED_DATES
    # =========================================================================

    def _calculate_fixed_dates(
        self, after: datetime, now: datetime
    ) -> datetime | None:
        """Return the earliest listed date that is still valid."""
        after_day = after.date()
        for target_day in self._dates:
            if target_day < after_day:
                continue
            candidate = dt_at_time_of_day(target_day, self._time_of_day)
            if self.is_valid_candidate(candidate, after, now):
                return candidate

        const.LOGGER.debug("RecurrenceEngine: FIXED_DATES list exhausted")
        return None


# =============================================================================
# Module-level convenience functions
# =============================================================================


def next_occurrence(
    config: ScheduleConfig | dict[str, Any],
    after: datetime | str,
    now: datetime | None = None,
    forward_guard: timedelta = const.DEFAULT_FORWARD_GUARD,
    anchor: datetime | None = None,
) -> datetime | None:
    """Calculate the next occurrence for a schedule configuration.

    Convenience wrapper around RecurrenceEngine.get_next_occurrence().

    Args:
        config: ScheduleConfig or recurring reminder dict
        after: Search start (datetime or ISO string)
        now: Evaluation instant for the forward guard (default: wall clock)
        forward_guard: Minimum distance from `now`
        anchor: Optional interval phase anchor

    Returns:
        Next occurrence as local datetime, or None.
    """
    after_dt = dt_parse(after)
    if after_dt is None:
        const.LOGGER.error("next_occurrence: Could not parse search start: %s", after)
        return None

    engine = RecurrenceEngine(config, forward_guard=forward_guard, anchor=anchor)
    return engine.get_next_occurrence(after_dt, now)
