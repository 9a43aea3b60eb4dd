"""Reminder lifecycle helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Reminder field defaults
- Business logic validation (title, schedule parameters)
- Complete reminder structure building

## Key Concepts

### Build Functions
Each reminder kind has a `build_<kind>()` function that:
- Takes user_input with DATA_* keys (already passed through schemas.py)
- Generates the id (UUID) for new reminders
- Sets timestamps (created_at, updated_at) from the injected clock
- Applies field defaults and normalizes schedule parameters
- Returns a complete reminder dict ready for storage

The recurring builder never computes `next_due_at`; it carries the existing
value (or None) and ReminderManager stores the resolver's answer.

### Validation Functions
Each reminder kind has a `validate_<kind>_data()` function that:
- Takes data with DATA_* keys
- Performs business rule validation
- Returns dict of errors {field: translation_key} (empty if valid)

Builders validate the merged record and raise EntityValidationError for the
first failure, so nothing invalid ever reaches the resolver.

Consumers:
- managers/reminder_manager.py (create / edit / preview)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast
import uuid

from . import const
from .type_defs import OneOffReminderData, RecurringReminderData
from .utils.dt_utils import dt_parse, dt_parse_date, dt_to_iso, parse_time_of_day

# ==============================================================================
# HELPER FUNCTIONS FOR FIELD NORMALIZATION
# ==============================================================================


def _normalize_list_field(value: Any) -> list[Any]:
    """Normalize a field that should be a list.

    Handles cases where the value might be:
    - Already a list → return as-is
    - None → return empty list
    - A single scalar → wrap it
    """
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    return [value]


def _normalize_weekdays(value: Any) -> list[int]:
    """Return sorted unique weekday ints (0=Mon); invalid entries dropped."""
    weekdays: set[int] = set()
    for raw in _normalize_list_field(value):
        if isinstance(raw, bool):
            continue
        try:
            day = int(raw)
        except (TypeError, ValueError):
            continue
        if const.WEEKDAY_MIN <= day <= const.WEEKDAY_MAX:
            weekdays.add(day)
    return sorted(weekdays)


def _normalize_dates(value: Any) -> list[str]:
    """Return sorted unique ISO date strings; unparseable entries dropped."""
    parsed = (dt_parse_date(raw) for raw in _normalize_list_field(value))
    return sorted({d.isoformat() for d in parsed if d is not None})


def _coerce_int(value: Any) -> int | None:
    """Coerce to int, rejecting bools and non-numeric input."""
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information.

    Raised when business logic validation fails in reminder creation or
    update. The field attribute lets the host application map the error back
    to the input field that caused the failure.

    Attributes:
        field: The DATA_REMINDER_* key identifying the field that failed
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_REMINDER_DAY_OF_MONTH,
            translation_key=const.TRANS_KEY_INVALID_DAY_OF_MONTH,
            placeholders={"value": "32"},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError.

        Args:
            field: The DATA_REMINDER_* key for the field that failed validation
            translation_key: The TRANS_KEY_* constant for error message
            placeholders: Optional dict for translation placeholders
        """
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(translation_key)


def _raise_first_error(errors: dict[str, str], data: dict[str, Any]) -> None:
    """Raise EntityValidationError for the first entry of an error dict."""
    if not errors:
        return
    field, translation_key = next(iter(errors.items()))
    raise EntityValidationError(
        field=field,
        translation_key=translation_key,
        placeholders={"value": str(data.get(field))},
    )


# ==============================================================================
# SHARED VALIDATION
# ==============================================================================


def _validate_common(data: dict[str, Any]) -> dict[str, str]:
    """Validate fields shared by both reminder kinds."""
    errors: dict[str, str] = {}

    # === 1. Title validation ===
    title = data.get(const.DATA_REMINDER_TITLE, "")
    if not isinstance(title, str) or not title.strip():
        errors[const.DATA_REMINDER_TITLE] = const.TRANS_KEY_INVALID_TITLE
        return errors

    # === 2. Enum fields ===
    level = data.get(const.DATA_REMINDER_LEVEL, const.DEFAULT_LEVEL)
    if level not in const.LEVEL_OPTIONS:
        errors[const.DATA_REMINDER_LEVEL] = const.TRANS_KEY_INVALID_INPUT
        return errors

    mode = data.get(const.DATA_REMINDER_CONFLICT_MODE, const.DEFAULT_CONFLICT_MODE)
    if mode not in const.CONFLICT_MODE_OPTIONS:
        errors[const.DATA_REMINDER_CONFLICT_MODE] = const.TRANS_KEY_INVALID_INPUT

    return errors


# ==============================================================================
# ONE-OFF REMINDERS
# ==============================================================================


def validate_one_off_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate one-off reminder business rules.

    Args:
        data: Reminder data dict with DATA_* keys (complete, merged record)

    Returns:
        Dict of errors: {field: translation_key}
        Empty dict means validation passed.

    Validation Rules:
        1. Title not empty
        2. Level / conflict mode are known values
        3. due_at parses to a date and time
    """
    errors = _validate_common(data)
    if errors:
        return errors

    if dt_parse(data.get(const.DATA_REMINDER_DUE_AT)) is None:
        errors[const.DATA_REMINDER_DUE_AT] = const.TRANS_KEY_INVALID_DUE_AT

    return errors


def build_one_off(
    user_input: dict[str, Any],
    existing: OneOffReminderData | None = None,
    *,
    now: datetime,
) -> OneOffReminderData:
    """Build one-off reminder data for create or update operations.

    One function handles both create (existing=None) and update.

    Args:
        user_input: Data with DATA_* keys (may have missing fields)
        existing: None for create, existing reminder for update
        now: Current instant from the injected clock (timestamps)

    Returns:
        Complete OneOffReminderData ready for storage

    Raises:
        EntityValidationError: If any business rule fails
    """
    is_create = existing is None

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    merged: dict[str, Any] = {
        const.DATA_REMINDER_TITLE: get_field(const.DATA_REMINDER_TITLE, ""),
        const.DATA_REMINDER_LEVEL: get_field(
            const.DATA_REMINDER_LEVEL, const.DEFAULT_LEVEL
        ),
        const.DATA_REMINDER_CONFLICT_MODE: get_field(
            const.DATA_REMINDER_CONFLICT_MODE, const.DEFAULT_CONFLICT_MODE
        ),
        const.DATA_REMINDER_DUE_AT: get_field(const.DATA_REMINDER_DUE_AT, None),
    }
    _raise_first_error(validate_one_off_data(merged), merged)

    timestamp = dt_to_iso(now)
    if is_create or existing is None:
        reminder_id = str(uuid.uuid4())
        created_at = timestamp
    else:
        reminder_id = existing.get(const.DATA_REMINDER_ID, str(uuid.uuid4()))
        created_at = existing.get(const.DATA_REMINDER_CREATED_AT, timestamp)

    return OneOffReminderData(
        id=reminder_id,
        kind=const.KIND_ONE_OFF,
        title=str(merged[const.DATA_REMINDER_TITLE]).strip(),
        level=merged[const.DATA_REMINDER_LEVEL],
        conflict_mode=merged[const.DATA_REMINDER_CONFLICT_MODE],
        created_at=cast("str", created_at),
        updated_at=cast("str", timestamp),
        due_at=cast("str", dt_to_iso(dt_parse(merged[const.DATA_REMINDER_DUE_AT]))),
        done=bool(get_field(const.DATA_REMINDER_DONE, False)),
        done_at=get_field(const.DATA_REMINDER_DONE_AT, None),
    )


# ==============================================================================
# RECURRING REMINDERS
# ==============================================================================


def validate_recurring_data(data: dict[str, Any]) -> dict[str, str]:
    """Validate recurring reminder business rules.

    Works with DATA_* keys. Schedule parameters are checked only for the
    selected schedule type.

    Returns:
        Dict of errors: {field: translation_key}
        Empty dict means validation passed.

    Validation Rules:
        1. Title not empty
        2. Level / conflict mode are known values
        3. Schedule type is known
        4. time_of_day is a valid HH:MM
        5. INTERVAL: every >= 1, unit is day or week
        6. WEEKLY: at least one weekday in 0-6
        7. MONTHLY_DAY: day of month 1-31
        8. ANNIVERSARY: base date parses
        9. FIXED_DATES: non-empty list, every entry parses
    """
    errors = _validate_common(data)
    if errors:
        return errors

    # === 3. Schedule type ===
    schedule_type = data.get(const.DATA_REMINDER_SCHEDULE_TYPE)
    if schedule_type not in const.SCHEDULE_TYPE_OPTIONS:
        errors[const.DATA_REMINDER_SCHEDULE_TYPE] = (
            const.TRANS_KEY_INVALID_SCHEDULE_TYPE
        )
        return errors

    # === 4. Time of day ===
    if parse_time_of_day(data.get(const.DATA_REMINDER_TIME_OF_DAY)) is None:
        errors[const.DATA_REMINDER_TIME_OF_DAY] = const.TRANS_KEY_INVALID_TIME_OF_DAY
        return errors

    # === 5-9. Per-type parameters ===
    if schedule_type == const.SCHEDULE_TYPE_INTERVAL:
        every = _coerce_int(data.get(const.DATA_REMINDER_EVERY, const.DEFAULT_EVERY))
        if every is None or every < 1:
            errors[const.DATA_REMINDER_EVERY] = const.TRANS_KEY_INVALID_INTERVAL
        elif (
            data.get(const.DATA_REMINDER_UNIT, const.DEFAULT_UNIT)
            not in const.TIME_UNIT_OPTIONS
        ):
            errors[const.DATA_REMINDER_UNIT] = const.TRANS_KEY_INVALID_INTERVAL

    elif schedule_type == const.SCHEDULE_TYPE_WEEKLY:
        raw_days = _normalize_list_field(data.get(const.DATA_REMINDER_WEEKDAYS))
        valid_days = _normalize_weekdays(raw_days)
        if not valid_days or len(valid_days) != len(set(map(str, raw_days))):
            errors[const.DATA_REMINDER_WEEKDAYS] = const.TRANS_KEY_WEEKDAYS_REQUIRED

    elif schedule_type == const.SCHEDULE_TYPE_MONTHLY_DAY:
        day = _coerce_int(data.get(const.DATA_REMINDER_DAY_OF_MONTH))
        if day is None or not (
            const.DAY_OF_MONTH_MIN <= day <= const.DAY_OF_MONTH_MAX
        ):
            errors[const.DATA_REMINDER_DAY_OF_MONTH] = (
                const.TRANS_KEY_INVALID_DAY_OF_MONTH
            )

    elif schedule_type == const.SCHEDULE_TYPE_ANNIVERSARY:
        if dt_parse_date(data.get(const.DATA_REMINDER_BASE_DATE)) is None:
            errors[const.DATA_REMINDER_BASE_DATE] = const.TRANS_KEY_INVALID_BASE_DATE

    elif schedule_type == const.SCHEDULE_TYPE_FIXED_DATES:
        raw_dates = _normalize_list_field(data.get(const.DATA_REMINDER_DATES))
        if not raw_dates:
            errors[const.DATA_REMINDER_DATES] = const.TRANS_KEY_DATES_REQUIRED
        elif any(dt_parse_date(raw) is None for raw in raw_dates):
            errors[const.DATA_REMINDER_DATES] = const.TRANS_KEY_INVALID_DATES

    return errors


def _schedule_parameters(schedule_type: str, merged: dict[str, Any]) -> dict[str, Any]:
    """Return the normalized parameters stored for a schedule type."""
    if schedule_type == const.SCHEDULE_TYPE_INTERVAL:
        return {
            const.DATA_REMINDER_EVERY: _coerce_int(
                merged.get(const.DATA_REMINDER_EVERY, const.DEFAULT_EVERY)
            ),
            const.DATA_REMINDER_UNIT: merged.get(
                const.DATA_REMINDER_UNIT, const.DEFAULT_UNIT
            ),
        }
    if schedule_type == const.SCHEDULE_TYPE_WEEKLY:
        return {
            const.DATA_REMINDER_WEEKDAYS: _normalize_weekdays(
                merged.get(const.DATA_REMINDER_WEEKDAYS)
            )
        }
    if schedule_type == const.SCHEDULE_TYPE_MONTHLY_DAY:
        return {
            const.DATA_REMINDER_DAY_OF_MONTH: _coerce_int(
                merged.get(const.DATA_REMINDER_DAY_OF_MONTH)
            )
        }
    if schedule_type == const.SCHEDULE_TYPE_ANNIVERSARY:
        base_date = dt_parse_date(merged.get(const.DATA_REMINDER_BASE_DATE))
        return {const.DATA_REMINDER_BASE_DATE: base_date.isoformat() if base_date else None}
    if schedule_type == const.SCHEDULE_TYPE_FIXED_DATES:
        return {
            const.DATA_REMINDER_DATES: _normalize_dates(
                merged.get(const.DATA_REMINDER_DATES)
            )
        }
    # DAILY has no parameters beyond time_of_day
    return {}


def build_recurring(
    user_input: dict[str, Any],
    existing: RecurringReminderData | None = None,
    *,
    now: datetime,
) -> RecurringReminderData:
    """Build recurring reminder data for create or update operations.

    Only the parameters of the selected schedule type are kept, so switching
    type on edit drops the stale ones.

    Weekdays follow Python's `date.weekday()`: 0 = Monday ... 6 = Sunday.
    Hosts counting from Sunday (JavaScript `Date.getDay()`) convert with
    `(n - 1) % 7` before calling, so getDay() 0 (Sunday) becomes 6.

    Args:
        user_input: Data with DATA_* keys (may have missing fields)
        existing: None for create, existing reminder for update
        now: Current instant from the injected clock (timestamps)

    Returns:
        Complete RecurringReminderData; `next_due_at` is carried over from
        `existing` (None on create) for the caller to recompute.

    Raises:
        EntityValidationError: If any business rule fails
    """
    is_create = existing is None

    def get_field(data_key: str, default: Any) -> Any:
        """Get field value: user_input > existing > default."""
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    merged: dict[str, Any] = {
        const.DATA_REMINDER_TITLE: get_field(const.DATA_REMINDER_TITLE, ""),
        const.DATA_REMINDER_LEVEL: get_field(
            const.DATA_REMINDER_LEVEL, const.DEFAULT_LEVEL
        ),
        const.DATA_REMINDER_CONFLICT_MODE: get_field(
            const.DATA_REMINDER_CONFLICT_MODE, const.DEFAULT_CONFLICT_MODE
        ),
        const.DATA_REMINDER_SCHEDULE_TYPE: get_field(
            const.DATA_REMINDER_SCHEDULE_TYPE, None
        ),
        const.DATA_REMINDER_TIME_OF_DAY: get_field(
            const.DATA_REMINDER_TIME_OF_DAY, const.DEFAULT_TIME_OF_DAY
        ),
        const.DATA_REMINDER_EVERY: get_field(
            const.DATA_REMINDER_EVERY, const.DEFAULT_EVERY
        ),
        const.DATA_REMINDER_UNIT: get_field(const.DATA_REMINDER_UNIT, const.DEFAULT_UNIT),
        const.DATA_REMINDER_WEEKDAYS: get_field(const.DATA_REMINDER_WEEKDAYS, None),
        const.DATA_REMINDER_DAY_OF_MONTH: get_field(
            const.DATA_REMINDER_DAY_OF_MONTH, None
        ),
        const.DATA_REMINDER_BASE_DATE: get_field(const.DATA_REMINDER_BASE_DATE, None),
        const.DATA_REMINDER_DATES: get_field(const.DATA_REMINDER_DATES, None),
    }
    _raise_first_error(validate_recurring_data(merged), merged)

    timestamp = dt_to_iso(now)
    if is_create or existing is None:
        reminder_id = str(uuid.uuid4())
        created_at = timestamp
    else:
        reminder_id = existing.get(const.DATA_REMINDER_ID, str(uuid.uuid4()))
        created_at = existing.get(const.DATA_REMINDER_CREATED_AT, timestamp)

    schedule_type = merged[const.DATA_REMINDER_SCHEDULE_TYPE]
    parsed_time = parse_time_of_day(merged[const.DATA_REMINDER_TIME_OF_DAY])

    reminder: dict[str, Any] = {
        const.DATA_REMINDER_ID: reminder_id,
        const.DATA_REMINDER_KIND: const.KIND_RECURRING,
        const.DATA_REMINDER_TITLE: str(merged[const.DATA_REMINDER_TITLE]).strip(),
        const.DATA_REMINDER_LEVEL: merged[const.DATA_REMINDER_LEVEL],
        const.DATA_REMINDER_CONFLICT_MODE: merged[const.DATA_REMINDER_CONFLICT_MODE],
        const.DATA_REMINDER_CREATED_AT: created_at,
        const.DATA_REMINDER_UPDATED_AT: timestamp,
        const.DATA_REMINDER_SCHEDULE_TYPE: schedule_type,
        const.DATA_REMINDER_TIME_OF_DAY: parsed_time.strftime("%H:%M")
        if parsed_time
        else const.DEFAULT_TIME_OF_DAY,
        const.DATA_REMINDER_NEXT_DUE_AT: get_field(
            const.DATA_REMINDER_NEXT_DUE_AT, None
        ),
        const.DATA_REMINDER_ENABLED: get_field(const.DATA_REMINDER_ENABLED, True)
        is not False,
        const.DATA_REMINDER_LAST_NOTIFIED_DATE: get_field(
            const.DATA_REMINDER_LAST_NOTIFIED_DATE, None
        ),
        const.DATA_REMINDER_PAID_AT: get_field(const.DATA_REMINDER_PAID_AT, None),
    }
    reminder.update(_schedule_parameters(schedule_type, merged))
    return cast("RecurringReminderData", reminder)


# ==============================================================================
# DISPATCH
# ==============================================================================


def build_reminder(
    user_input: dict[str, Any],
    existing: dict[str, Any] | None = None,
    *,
    now: datetime,
) -> OneOffReminderData | RecurringReminderData:
    """Build a reminder of the kind named in the input (or of `existing`).

    Raises:
        EntityValidationError: Unknown kind, kind change on update, or any
            per-kind business rule failure
    """
    kind = user_input.get(
        const.DATA_REMINDER_KIND,
        existing.get(const.DATA_REMINDER_KIND) if existing else None,
    )
    if existing is not None and kind != existing.get(const.DATA_REMINDER_KIND):
        raise EntityValidationError(
            field=const.DATA_REMINDER_KIND,
            translation_key=const.TRANS_KEY_KIND_IMMUTABLE,
            placeholders={"value": str(kind)},
        )
    if kind == const.KIND_ONE_OFF:
        return build_one_off(
            user_input, cast("OneOffReminderData | None", existing), now=now
        )
    if kind == const.KIND_RECURRING:
        return build_recurring(
            user_input, cast("RecurringReminderData | None", existing), now=now
        )
    raise EntityValidationError(
        field=const.DATA_REMINDER_KIND,
        translation_key=const.TRANS_KEY_INVALID_KIND,
        placeholders={"value": str(kind)},
    )
