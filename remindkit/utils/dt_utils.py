# File: utils/dt_utils.py
"""Date and time utilities for remindkit.

Pure Python date/time functions. All functions here can be unit tested
without a running coordinator.

Every instant handled by the engines is a timezone-aware datetime in the
configured local time zone (wall-clock semantics); calendar-day keys are
`YYYY-MM-DD` strings in that same zone.

Functions:
    - set_default_timezone / get_default_timezone: Configure local zone
    - dt_now_local: Get current datetime in local timezone
    - as_local: Convert a datetime into the local timezone
    - start_of_next_local_day / end_of_local_day: Day boundaries
    - dt_parse_date: Parse date strings
    - dt_parse: Normalize datetime inputs to aware local datetimes
    - dt_to_iso: Serialize an instant for storage
    - dt_day_key: Calendar-day key for a date or datetime
    - parse_time_of_day: Parse "HH:MM" strings
    - dt_at_time_of_day: Combine a date with a time of day
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
import logging
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

if TYPE_CHECKING:
    from datetime import tzinfo

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# Default timezone - overridden by the coordinator from its options
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")


# ==============================================================================
# Timezone Configuration
# ==============================================================================


def set_default_timezone(tz: ZoneInfo | str) -> None:
    """Set the default timezone for all dt_utils functions.

    Args:
        tz: ZoneInfo object or IANA zone name

    Raises:
        ValueError: If the zone name is unknown
    """
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    if isinstance(tz, str):
        try:
            tz = ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError) as err:
            raise ValueError(f"Unknown time zone: {tz}") from err
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Get the current default timezone."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Current Date/Time Functions
# ==============================================================================


def dt_now_local(tz: ZoneInfo | None = None) -> datetime:
    """Return the current datetime in local timezone (timezone-aware).

    This is the default clock for the coordinator; tests inject their own.
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.now(tz_info)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Naive datetimes are interpreted as local wall-clock time, since every
    stored instant is local.

    Args:
        dt_obj: Datetime object
        tz: Optional timezone override. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        return dt_obj.replace(tzinfo=tz_info)
    return dt_obj.astimezone(tz_info)


def start_of_next_local_day(dt_obj: datetime | date, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of the local day following `dt_obj`'s day."""
    tz_info = tz or DEFAULT_TIME_ZONE
    if isinstance(dt_obj, datetime):
        day = as_local(dt_obj, tz_info).date()
    else:
        day = dt_obj
    return datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz_info)


def end_of_local_day(dt_obj: datetime | date, tz: ZoneInfo | None = None) -> datetime:
    """Get the last representable instant of `dt_obj`'s local day.

    Searching strictly after this instant starts at the next day and still
    accepts a 00:00 time of day.
    """
    return start_of_next_local_day(dt_obj, tz) - timedelta(microseconds=1)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_input: str | date | None) -> date | None:
    """Safely parse a date string into a `datetime.date`.

    Accepts formats:
    - "2025-04-07" (ISO format)
    - "2025-04-07T09:00" (date portion of an ISO datetime)
    - "07/04/2025" (day-first format, as entered in the original app)

    Returns:
        datetime.date or None if parsing fails.
    """
    if isinstance(date_input, datetime):
        return as_local(date_input).date()
    if isinstance(date_input, date):
        return date_input
    if not date_input or not isinstance(date_input, str):
        return None

    text = date_input.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in ("%d/%m/%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: tzinfo | None = None,
) -> datetime | None:
    """Normalize various datetime input formats to an aware local datetime.

    Args:
        dt_input: String, date or datetime to normalize, or None
        default_tzinfo: Timezone to use if the input is naive
                        (defaults to DEFAULT_TIME_ZONE if None)

    Returns:
        Timezone-aware datetime in local timezone, or None if the input
        could not be parsed.

    Example:
        >>> dt_parse("2026-02-10T09:00")
        datetime.datetime(2026, 2, 10, 9, 0, tzinfo=ZoneInfo('UTC'))
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        text = dt_input.strip()
        # fromisoformat does not accept a trailing "Z" on every supported Python
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            parsed_date = dt_parse_date(text)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, time.min)
    elif isinstance(dt_input, datetime):
        result = dt_input
    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, time.min)
    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)
    return result.astimezone(DEFAULT_TIME_ZONE)


def dt_to_iso(dt_obj: datetime | None) -> str | None:
    """Serialize an instant for storage (local ISO 8601, seconds precision)."""
    if dt_obj is None:
        return None
    return as_local(dt_obj).isoformat(timespec="seconds")


def dt_day_key(dt_input: datetime | date) -> str:
    """Return the calendar-day key (YYYY-MM-DD) for a date or local datetime."""
    if isinstance(dt_input, datetime):
        return as_local(dt_input).date().isoformat()
    return dt_input.isoformat()


# ==============================================================================
# Time of Day
# ==============================================================================


def parse_time_of_day(time_str: str | None) -> time | None:
    """Parse an "HH:MM" string into a `datetime.time`.

    Returns:
        time object, or None if the string is missing or out of range.
    """
    if not time_str or not isinstance(time_str, str):
        return None

    try:
        hour_str, minute_str = time_str.strip().split(":")[:2]
        hour = int(hour_str)
        minute = int(minute_str)
    except (ValueError, AttributeError):
        _LOGGER.debug("Invalid time of day: %s (expected HH:MM)", time_str)
        return None

    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        _LOGGER.debug("Invalid time of day: %s (out of range)", time_str)
        return None

    return time(hour, minute)


def dt_at_time_of_day(
    day: date,
    time_of_day: time,
    tz: ZoneInfo | None = None,
) -> datetime:
    """Combine a calendar day and a time of day into an aware local datetime."""
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.combine(day, time_of_day, tzinfo=tz_info)
