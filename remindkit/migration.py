"""Migration logic for legacy reminder records.

Older versions of the host application stored reminders in a different
shape: Portuguese field names (`tipo`, `titulo`, `quando`), camelCase keys
(`nextDueISO`, `timeHHmm`, `createdAt`), string interval counts and a
`scheduleMode` flag that selected between two recurrence engines. This
module normalizes such records into the current shape once, at load time,
so no engine ever branches on the old format.

Every step is idempotent - running it over already-migrated data is a no-op.
"""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any
import uuid

from . import const
from .utils.dt_utils import dt_parse, dt_parse_date, dt_to_iso, parse_time_of_day

# ================================================================================================
# Legacy field mappings
# ================================================================================================

# Legacy / camelCase key → current key
LEGACY_KEY_MAP: dict[str, str] = {
    "tipo": const.DATA_REMINDER_KIND,
    "titulo": const.DATA_REMINDER_TITLE,
    "quando": const.DATA_REMINDER_DUE_AT,
    "nextDueISO": const.DATA_REMINDER_NEXT_DUE_AT,
    "timeHHmm": const.DATA_REMINDER_TIME_OF_DAY,
    "conflictMode": const.DATA_REMINDER_CONFLICT_MODE,
    "createdAt": const.DATA_REMINDER_CREATED_AT,
    "updatedAt": const.DATA_REMINDER_UPDATED_AT,
    "dueAt": const.DATA_REMINDER_DUE_AT,
    "doneAt": const.DATA_REMINDER_DONE_AT,
    "scheduleType": const.DATA_REMINDER_SCHEDULE_TYPE,
    "timeOfDay": const.DATA_REMINDER_TIME_OF_DAY,
    "nextDueAt": const.DATA_REMINDER_NEXT_DUE_AT,
    "lastNotifiedDate": const.DATA_REMINDER_LAST_NOTIFIED_DATE,
    "paidAt": const.DATA_REMINDER_PAID_AT,
    "dayOfMonth": const.DATA_REMINDER_DAY_OF_MONTH,
    "baseDate": const.DATA_REMINDER_BASE_DATE,
}

LEGACY_KIND_MAP: dict[str, str] = {
    "avulso": const.KIND_ONE_OFF,
    "recorrente": const.KIND_RECURRING,
    "oneOff": const.KIND_ONE_OFF,
}

LEGACY_UNIT_MAP: dict[str, str] = {
    "dias": const.TIME_UNIT_DAY,
    "dia": const.TIME_UNIT_DAY,
    "days": const.TIME_UNIT_DAY,
    "semanas": const.TIME_UNIT_WEEK,
    "semana": const.TIME_UNIT_WEEK,
    "weeks": const.TIME_UNIT_WEEK,
}

LEGACY_SCHEDULE_TYPE_MAP: dict[str, str] = {
    "monthlyDay": const.SCHEDULE_TYPE_MONTHLY_DAY,
    "fixedDates": const.SCHEDULE_TYPE_FIXED_DATES,
}

LEGACY_SCHEDULE_MODE_KEY = "scheduleMode"

_INSTANT_KEYS = (
    const.DATA_REMINDER_CREATED_AT,
    const.DATA_REMINDER_UPDATED_AT,
    const.DATA_REMINDER_DUE_AT,
    const.DATA_REMINDER_DONE_AT,
    const.DATA_REMINDER_NEXT_DUE_AT,
    const.DATA_REMINDER_PAID_AT,
)


# ================================================================================================
# Record migration
# ================================================================================================


def _rename_legacy_keys(record: dict[str, Any]) -> None:
    """Move legacy keys onto current keys; current keys win on collision."""
    for legacy_key, current_key in LEGACY_KEY_MAP.items():
        if legacy_key not in record:
            continue
        value = record.pop(legacy_key)
        record.setdefault(current_key, value)


def _migrate_instant(value: Any) -> Any:
    """Convert a stored instant to a local ISO string, keeping bad values."""
    if value is None or value == "":
        return None
    parsed = dt_parse(value)
    if parsed is None:
        const.LOGGER.warning(
            "WARNING: Migrate DateTime - Could not parse stored instant '%s'", value
        )
        return value
    return dt_to_iso(parsed)


def _migrate_schedule(record: dict[str, Any]) -> None:
    """Resolve the legacy two-engine split into a single schedule_type."""
    schedule_mode = record.pop(LEGACY_SCHEDULE_MODE_KEY, None)
    schedule_type = record.get(const.DATA_REMINDER_SCHEDULE_TYPE)
    schedule_type = LEGACY_SCHEDULE_TYPE_MAP.get(schedule_type, schedule_type)

    # Legacy engine (or no engine marker at all) only knew "every N days/weeks"
    if schedule_type not in const.SCHEDULE_TYPE_OPTIONS or schedule_mode == "legacy":
        if schedule_type and schedule_type not in const.SCHEDULE_TYPE_OPTIONS:
            const.LOGGER.warning(
                "WARNING: Unknown schedule type '%s' on reminder %s, using interval",
                schedule_type,
                record.get(const.DATA_REMINDER_ID),
            )
        schedule_type = const.SCHEDULE_TYPE_INTERVAL
    record[const.DATA_REMINDER_SCHEDULE_TYPE] = schedule_type

    if schedule_type == const.SCHEDULE_TYPE_INTERVAL:
        try:
            every = int(record.get(const.DATA_REMINDER_EVERY, const.DEFAULT_EVERY))
        except (TypeError, ValueError):
            every = const.DEFAULT_EVERY
        record[const.DATA_REMINDER_EVERY] = max(1, every)
        unit = record.get(const.DATA_REMINDER_UNIT, const.DEFAULT_UNIT)
        record[const.DATA_REMINDER_UNIT] = LEGACY_UNIT_MAP.get(unit, unit)
        if record[const.DATA_REMINDER_UNIT] not in const.TIME_UNIT_OPTIONS:
            record[const.DATA_REMINDER_UNIT] = const.DEFAULT_UNIT

    base_date = dt_parse_date(record.get(const.DATA_REMINDER_BASE_DATE))
    if base_date is not None:
        record[const.DATA_REMINDER_BASE_DATE] = base_date.isoformat()

    if isinstance(record.get(const.DATA_REMINDER_DATES), list):
        parsed = (dt_parse_date(d) for d in record[const.DATA_REMINDER_DATES])
        record[const.DATA_REMINDER_DATES] = sorted(
            {d.isoformat() for d in parsed if d is not None}
        )

    time_of_day = parse_time_of_day(record.get(const.DATA_REMINDER_TIME_OF_DAY))
    record[const.DATA_REMINDER_TIME_OF_DAY] = (
        time_of_day.strftime("%H:%M") if time_of_day else const.DEFAULT_TIME_OF_DAY
    )


def migrate_reminder(record: dict[str, Any]) -> dict[str, Any]:
    """Return a migrated copy of one stored reminder record."""
    migrated = copy.deepcopy(record)
    _rename_legacy_keys(migrated)

    kind = migrated.get(const.DATA_REMINDER_KIND)
    kind = LEGACY_KIND_MAP.get(kind, kind)
    if kind not in const.KIND_OPTIONS:
        # Records without a kind predate recurring reminders
        kind = const.KIND_ONE_OFF
    migrated[const.DATA_REMINDER_KIND] = kind

    migrated.setdefault(const.DATA_REMINDER_ID, str(uuid.uuid4()))
    migrated[const.DATA_REMINDER_TITLE] = str(
        migrated.get(const.DATA_REMINDER_TITLE) or ""
    ).strip()
    if migrated.get(const.DATA_REMINDER_LEVEL) not in const.LEVEL_OPTIONS:
        migrated[const.DATA_REMINDER_LEVEL] = const.DEFAULT_LEVEL
    if migrated.get(const.DATA_REMINDER_CONFLICT_MODE) not in const.CONFLICT_MODE_OPTIONS:
        migrated[const.DATA_REMINDER_CONFLICT_MODE] = const.DEFAULT_CONFLICT_MODE

    for key in _INSTANT_KEYS:
        if key in migrated:
            migrated[key] = _migrate_instant(migrated[key])

    if kind == const.KIND_ONE_OFF:
        migrated[const.DATA_REMINDER_DONE] = bool(migrated.get(const.DATA_REMINDER_DONE))
        migrated.setdefault(const.DATA_REMINDER_DONE_AT, None)
        migrated.pop(LEGACY_SCHEDULE_MODE_KEY, None)
    else:
        _migrate_schedule(migrated)
        migrated[const.DATA_REMINDER_ENABLED] = (
            migrated.get(const.DATA_REMINDER_ENABLED) is not False
        )
        migrated.setdefault(const.DATA_REMINDER_NEXT_DUE_AT, None)
        migrated.setdefault(const.DATA_REMINDER_LAST_NOTIFIED_DATE, None)
        migrated.setdefault(const.DATA_REMINDER_PAID_AT, None)

    return migrated


def migrate_reminders(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Migrate a full reminder list; non-dict entries are dropped."""
    migrated: list[dict[str, Any]] = []
    for record in records or []:
        if not isinstance(record, dict):
            const.LOGGER.warning(
                "WARNING: Dropping malformed reminder record of type %s",
                type(record).__name__,
            )
            continue
        migrated.append(migrate_reminder(record))
    return migrated


# ================================================================================================
# Document migration
# ================================================================================================


def migrate_document(
    document: dict[str, Any] | list[Any] | None, now: datetime | None = None
) -> dict[str, Any]:
    """Bring a stored document up to SCHEMA_VERSION_CURRENT.

    Accepts the bare list written by the oldest versions as well as the
    current `{"meta": ..., "reminders": [...]}` structure.

    Returns:
        A new document; the input is never mutated.
    """
    if isinstance(document, list):
        document = {const.DATA_REMINDERS: document}
    document = copy.deepcopy(document or {})

    meta = document.get(const.DATA_META) or {}
    version = meta.get(const.DATA_META_SCHEMA_VERSION, const.SCHEMA_VERSION_LEGACY)
    reminders = document.get(const.DATA_REMINDERS) or []

    if version >= const.SCHEMA_VERSION_CURRENT:
        document[const.DATA_META] = meta
        document[const.DATA_REMINDERS] = reminders
        return document

    const.LOGGER.info(
        "INFO: Migrating %s reminder(s) from schema %s to %s",
        len(reminders),
        version,
        const.SCHEMA_VERSION_CURRENT,
    )
    document[const.DATA_REMINDERS] = migrate_reminders(reminders)
    meta[const.DATA_META_SCHEMA_VERSION] = const.SCHEMA_VERSION_CURRENT
    meta[const.DATA_META_LAST_MIGRATION_DATE] = dt_to_iso(now) if now else None
    document[const.DATA_META] = meta
    return document
