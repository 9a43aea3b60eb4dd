"""Voluptuous schemas for reminder input and coordinator options.

Schemas do structural checks and type coercion only; business rules with
translation keys live in data_builders.py. Every voluptuous failure is
surfaced to callers as EntityValidationError so the host application sees a
single validation error type.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import voluptuous as vol

from . import const
from .data_builders import EntityValidationError
from .type_defs import ReminderOptions


def _ensure_list(value: Any) -> list[Any]:
    """Wrap scalars and convert tuples/sets so list schemas accept them."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _whole_number(value: Any) -> int:
    """Coerce to int, rejecting booleans and fractional values such as 2.7."""
    if isinstance(value, bool):
        raise vol.Invalid("expected a whole number")
    if isinstance(value, float) and not value.is_integer():
        raise vol.Invalid(f"expected a whole number, got {value}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError) as err:
        raise vol.Invalid(f"expected a whole number, got {value!r}") from err


def _time_zone(value: Any) -> str:
    """Validate an IANA time zone name."""
    if not isinstance(value, str) or not value:
        raise vol.Invalid("time zone must be a non-empty string")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as err:
        raise vol.Invalid(f"unknown time zone: {value}") from err
    return value


# ==============================================================================
# Reminder input
# ==============================================================================

# Used for create, edit and preview; every key is optional so partial edits
# validate. Unknown keys (id, next_due_at, ...) are dropped: those are owned
# by the state machine.
REMINDER_INPUT_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_REMINDER_KIND): vol.In(const.KIND_OPTIONS),
        vol.Optional(const.DATA_REMINDER_TITLE): str,
        vol.Optional(const.DATA_REMINDER_LEVEL): vol.In(const.LEVEL_OPTIONS),
        vol.Optional(const.DATA_REMINDER_CONFLICT_MODE): vol.In(
            const.CONFLICT_MODE_OPTIONS
        ),
        vol.Optional(const.DATA_REMINDER_DUE_AT): vol.Any(str, datetime),
        vol.Optional(const.DATA_REMINDER_SCHEDULE_TYPE): vol.In(
            const.SCHEDULE_TYPE_OPTIONS
        ),
        vol.Optional(const.DATA_REMINDER_TIME_OF_DAY): str,
        vol.Optional(const.DATA_REMINDER_EVERY): _whole_number,
        vol.Optional(const.DATA_REMINDER_UNIT): vol.In(const.TIME_UNIT_OPTIONS),
        vol.Optional(const.DATA_REMINDER_WEEKDAYS): vol.All(
            _ensure_list, [_whole_number]
        ),
        vol.Optional(const.DATA_REMINDER_DAY_OF_MONTH): _whole_number,
        vol.Optional(const.DATA_REMINDER_BASE_DATE): vol.Any(str, date),
        vol.Optional(const.DATA_REMINDER_DATES): vol.All(
            _ensure_list, [vol.Any(str, date)]
        ),
        vol.Optional(const.DATA_REMINDER_ENABLED): vol.Boolean(),
    },
    extra=vol.REMOVE_EXTRA,
)

# Field → translation key used when a schema check fails on that field
FIELD_TRANSLATION_KEYS: dict[str, str] = {
    const.DATA_REMINDER_KIND: const.TRANS_KEY_INVALID_KIND,
    const.DATA_REMINDER_TITLE: const.TRANS_KEY_INVALID_TITLE,
    const.DATA_REMINDER_DUE_AT: const.TRANS_KEY_INVALID_DUE_AT,
    const.DATA_REMINDER_SCHEDULE_TYPE: const.TRANS_KEY_INVALID_SCHEDULE_TYPE,
    const.DATA_REMINDER_TIME_OF_DAY: const.TRANS_KEY_INVALID_TIME_OF_DAY,
    const.DATA_REMINDER_EVERY: const.TRANS_KEY_INVALID_INTERVAL,
    const.DATA_REMINDER_UNIT: const.TRANS_KEY_INVALID_INTERVAL,
    const.DATA_REMINDER_WEEKDAYS: const.TRANS_KEY_WEEKDAYS_REQUIRED,
    const.DATA_REMINDER_DAY_OF_MONTH: const.TRANS_KEY_INVALID_DAY_OF_MONTH,
    const.DATA_REMINDER_BASE_DATE: const.TRANS_KEY_INVALID_BASE_DATE,
    const.DATA_REMINDER_DATES: const.TRANS_KEY_INVALID_DATES,
}


def validate_reminder_input(user_input: dict[str, Any]) -> dict[str, Any]:
    """Run REMINDER_INPUT_SCHEMA and convert failures.

    Raises:
        EntityValidationError: On the first structural failure
    """
    if not isinstance(user_input, dict):
        raise EntityValidationError(
            field=const.DATA_REMINDER_KIND,
            translation_key=const.TRANS_KEY_INVALID_INPUT,
        )
    try:
        return REMINDER_INPUT_SCHEMA(dict(user_input))
    except vol.Invalid as err:
        field = str(err.path[0]) if err.path else const.DATA_REMINDER_KIND
        raise EntityValidationError(
            field=field,
            translation_key=FIELD_TRANSLATION_KEYS.get(
                field, const.TRANS_KEY_INVALID_INPUT
            ),
            placeholders={"error": err.msg},
        ) from err


# ==============================================================================
# Coordinator options
# ==============================================================================

OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_TIME_ZONE, default=const.DEFAULT_TIME_ZONE_NAME
        ): _time_zone,
        vol.Optional(
            const.CONF_FORWARD_GUARD_SECONDS,
            default=const.DEFAULT_FORWARD_GUARD_SECONDS,
        ): vol.All(_whole_number, vol.Range(min=0)),
        vol.Optional(
            const.CONF_MAX_SHIFT_ITERATIONS,
            default=const.DEFAULT_MAX_SHIFT_ITERATIONS,
        ): vol.All(_whole_number, vol.Range(min=1)),
        vol.Optional(
            const.CONF_NOTIFICATION_HORIZON_HOURS,
            default=const.DEFAULT_NOTIFICATION_HORIZON_HOURS,
        ): vol.All(_whole_number, vol.Range(min=0)),
        vol.Optional(
            const.CONF_TICK_INTERVAL_SECONDS,
            default=const.DEFAULT_TICK_INTERVAL_SECONDS,
        ): vol.All(_whole_number, vol.Range(min=1)),
        vol.Optional(
            const.CONF_DIGEST_SCOPE, default=const.DEFAULT_DIGEST_SCOPE
        ): vol.All(str, vol.Length(min=1)),
    }
)


def validate_options(options: dict[str, Any] | None = None) -> ReminderOptions:
    """Validate coordinator options, filling defaults.

    Raises:
        vol.Invalid: If any option is malformed
    """
    validated: ReminderOptions = OPTIONS_SCHEMA(dict(options or {}))
    return validated
