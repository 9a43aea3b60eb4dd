"""Tests for legacy record migration.

Legacy records come from older app versions: Portuguese field names,
camelCase keys, string counts and the `scheduleMode` engine flag.
"""

from typing import Any

from remindkit import const
from remindkit.migration import migrate_document, migrate_reminder, migrate_reminders
from tests.helpers import make_dt, stored_one_off

LEGACY_ONE_OFF: dict[str, Any] = {
    "id": "legacy-1",
    "tipo": "avulso",
    "titulo": "  Conta de luz ",
    "quando": "2026-03-05T15:00:00Z",
    "done": 0,
}

LEGACY_RECURRING: dict[str, Any] = {
    "id": "legacy-2",
    "tipo": "recorrente",
    "titulo": "Aluguel",
    "nextDueISO": "2026-03-10T12:00:00.000Z",
    "timeHHmm": "9:00",
    "every": "2",
    "unit": "semanas",
    "scheduleMode": "legacy",
}


class TestMigrateReminder:
    """Single record normalization."""

    def test_legacy_one_off(self) -> None:
        """Portuguese keys map onto the current one-off shape."""
        migrated = migrate_reminder(LEGACY_ONE_OFF)

        assert migrated[const.DATA_REMINDER_KIND] == const.KIND_ONE_OFF
        assert migrated[const.DATA_REMINDER_TITLE] == "Conta de luz"
        assert migrated[const.DATA_REMINDER_DUE_AT] == "2026-03-05T15:00:00+00:00"
        assert migrated[const.DATA_REMINDER_DONE] is False
        assert migrated[const.DATA_REMINDER_DONE_AT] is None
        assert migrated[const.DATA_REMINDER_LEVEL] == const.DEFAULT_LEVEL
        assert "tipo" not in migrated
        assert "quando" not in migrated

    def test_legacy_recurring_becomes_interval(self) -> None:
        """The old 'every N days/weeks' engine becomes an interval schedule."""
        migrated = migrate_reminder(LEGACY_RECURRING)

        assert migrated[const.DATA_REMINDER_KIND] == const.KIND_RECURRING
        assert migrated[const.DATA_REMINDER_SCHEDULE_TYPE] == const.SCHEDULE_TYPE_INTERVAL
        assert migrated[const.DATA_REMINDER_EVERY] == 2
        assert migrated[const.DATA_REMINDER_UNIT] == const.TIME_UNIT_WEEK
        assert migrated[const.DATA_REMINDER_TIME_OF_DAY] == "09:00"
        assert migrated[const.DATA_REMINDER_NEXT_DUE_AT] == "2026-03-10T12:00:00+00:00"
        assert migrated[const.DATA_REMINDER_ENABLED] is True
        assert migrated[const.DATA_REMINDER_LAST_NOTIFIED_DATE] is None
        assert "scheduleMode" not in migrated

    def test_camel_case_monthly_day(self) -> None:
        """camelCase schedule keys of the newer engine are renamed."""
        migrated = migrate_reminder(
            {
                "id": "m",
                "kind": const.KIND_RECURRING,
                "title": "Card",
                "scheduleType": "monthlyDay",
                "dayOfMonth": 31,
                "timeOfDay": "08:30",
                "scheduleMode": "new",
            }
        )

        assert migrated[const.DATA_REMINDER_SCHEDULE_TYPE] == const.SCHEDULE_TYPE_MONTHLY_DAY
        assert migrated[const.DATA_REMINDER_DAY_OF_MONTH] == 31
        assert migrated[const.DATA_REMINDER_TIME_OF_DAY] == "08:30"

    def test_unknown_schedule_type_falls_back_to_interval(self) -> None:
        """Unrecognized types degrade to a one-day interval."""
        migrated = migrate_reminder(
            {"id": "u", "kind": const.KIND_RECURRING, "schedule_type": "yearly"}
        )

        assert migrated[const.DATA_REMINDER_SCHEDULE_TYPE] == const.SCHEDULE_TYPE_INTERVAL
        assert migrated[const.DATA_REMINDER_EVERY] == 1
        assert migrated[const.DATA_REMINDER_UNIT] == const.TIME_UNIT_DAY

    def test_missing_kind_and_id(self) -> None:
        """Records without kind are one-offs; a missing id is generated."""
        migrated = migrate_reminder({"title": "Old", "due_at": "2026-03-05T15:00"})

        assert migrated[const.DATA_REMINDER_KIND] == const.KIND_ONE_OFF
        assert migrated[const.DATA_REMINDER_ID]

    def test_unparseable_instant_kept(self) -> None:
        """Bad instants are kept as-is rather than discarded."""
        migrated = migrate_reminder({"id": "x", "title": "x", "quando": "amanhã"})

        assert migrated[const.DATA_REMINDER_DUE_AT] == "amanhã"

    def test_idempotent(self) -> None:
        """Migrating an already-migrated record changes nothing."""
        for record in (LEGACY_ONE_OFF, LEGACY_RECURRING):
            once = migrate_reminder(record)
            assert migrate_reminder(once) == once

    def test_input_not_mutated(self) -> None:
        """The original record is untouched."""
        snapshot = dict(LEGACY_RECURRING)

        migrate_reminder(LEGACY_RECURRING)

        assert snapshot == LEGACY_RECURRING

    def test_malformed_entries_dropped(self) -> None:
        """Non-dict list entries are skipped."""
        migrated = migrate_reminders([LEGACY_ONE_OFF, "garbage", None])

        assert len(migrated) == 1


class TestMigrateDocument:
    """Whole-document versioning."""

    def test_bare_list_document(self) -> None:
        """The oldest format was a bare list of records."""
        document = migrate_document(
            [LEGACY_ONE_OFF, LEGACY_RECURRING], now=make_dt(2026, 3, 2, 10)
        )

        meta = document[const.DATA_META]
        assert meta[const.DATA_META_SCHEMA_VERSION] == const.SCHEMA_VERSION_CURRENT
        assert meta[const.DATA_META_LAST_MIGRATION_DATE] == "2026-03-02T10:00:00+00:00"
        assert [r[const.DATA_REMINDER_ID] for r in document[const.DATA_REMINDERS]] == [
            "legacy-1",
            "legacy-2",
        ]

    def test_current_document_untouched(self) -> None:
        """Documents at the current schema are returned as-is."""
        document = {
            const.DATA_META: {
                const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
                "last_digest_day:default": "2026-03-01",
            },
            const.DATA_REMINDERS: [stored_one_off("a", "2026-03-05T15:00:00+00:00")],
        }

        assert migrate_document(document) == document

    def test_empty_document(self) -> None:
        """None migrates to an empty current document."""
        document = migrate_document(None)

        assert document[const.DATA_REMINDERS] == []
        assert (
            document[const.DATA_META][const.DATA_META_SCHEMA_VERSION]
            == const.SCHEMA_VERSION_CURRENT
        )
