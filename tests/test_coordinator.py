"""Tests for ReminderCoordinator wiring, options and the periodic loop."""

import asyncio
from pathlib import Path

from freezegun import freeze_time
import pytest
import voluptuous as vol

from remindkit import const
from remindkit.coordinator import ReminderCoordinator
from remindkit.store import JsonFileReminderStore, MemoryReminderStore
from remindkit.utils.dt_utils import get_default_timezone
from tests.helpers import (
    FixedClock,
    RecordingSink,
    make_dt,
    one_off_input,
    recurring_input,
)

# =============================================================================
# Construction / options
# =============================================================================


class TestCoordinatorOptions:
    """Options are validated and applied at construction."""

    def test_invalid_options_raise(self) -> None:
        """Malformed options fail fast."""
        with pytest.raises(vol.Invalid):
            ReminderCoordinator(options={const.CONF_MAX_SHIFT_ITERATIONS: "many"})

    def test_time_zone_applied(self, clock: FixedClock) -> None:
        """The configured zone becomes the local zone for day keys."""
        coordinator = ReminderCoordinator(
            now_fn=clock, options={const.CONF_TIME_ZONE: "America/Sao_Paulo"}
        ).setup()

        assert str(get_default_timezone()) == "America/Sao_Paulo"
        assert coordinator.now().utcoffset().total_seconds() == -3 * 3600

    def test_local_day_in_configured_zone(self, sink: RecordingSink) -> None:
        """A 01:00 UTC instant still belongs to the previous local day."""
        clock = FixedClock(make_dt(2026, 3, 3, 1))  # 22:00 on 03-02 in São Paulo
        coordinator = ReminderCoordinator(
            notify_fn=sink,
            now_fn=clock,
            options={const.CONF_TIME_ZONE: "America/Sao_Paulo"},
        ).setup()

        created = coordinator.reminder_manager.create(recurring_input())

        assert created[const.DATA_REMINDER_NEXT_DUE_AT] == "2026-03-03T09:00:00-03:00"

    def test_second_zone_replaces_first_with_warning(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """The zone is process-wide: a different one is logged and wins."""
        ReminderCoordinator(options={const.CONF_TIME_ZONE: "America/Sao_Paulo"})
        caplog.clear()

        ReminderCoordinator(options={const.CONF_TIME_ZONE: "Europe/Lisbon"})

        assert str(get_default_timezone()) == "Europe/Lisbon"
        assert "Europe/Lisbon replaces America/Sao_Paulo" in caplog.text

    def test_same_zone_twice_is_quiet(self, caplog: pytest.LogCaptureFixture) -> None:
        """Coordinators sharing a zone coexist without a warning."""
        ReminderCoordinator(options={const.CONF_TIME_ZONE: "UTC"})
        caplog.clear()

        ReminderCoordinator(options={const.CONF_TIME_ZONE: "UTC"})

        assert "replaces" not in caplog.text

    def test_option_properties(self) -> None:
        """Typed accessors over the validated options."""
        coordinator = ReminderCoordinator(
            options={
                const.CONF_FORWARD_GUARD_SECONDS: 120,
                const.CONF_NOTIFICATION_HORIZON_HOURS: 6,
                const.CONF_DIGEST_SCOPE: "phone",
            }
        )

        assert coordinator.forward_guard.total_seconds() == 120
        assert coordinator.notification_horizon.total_seconds() == 6 * 3600
        assert coordinator.max_shift_iterations == const.DEFAULT_MAX_SHIFT_ITERATIONS
        assert coordinator.digest_scope == "phone"

    @freeze_time("2026-03-02 10:00:00")
    def test_default_clock_is_wall_clock(self) -> None:
        """Without now_fn the coordinator uses the (frozen) wall clock."""
        coordinator = ReminderCoordinator().setup()

        created = coordinator.reminder_manager.create(recurring_input())

        assert coordinator.now() == make_dt(2026, 3, 2, 10)
        assert created[const.DATA_REMINDER_NEXT_DUE_AT] == "2026-03-03T09:00:00+00:00"

    def test_default_sink_only_logs(
        self, clock: FixedClock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Without notify_fn notifications go to the log."""
        coordinator = ReminderCoordinator(now_fn=clock).setup()

        with caplog.at_level("INFO", logger="remindkit"):
            coordinator.reminder_manager.create(
                one_off_input(due_at="2026-03-02T18:00")
            )

        assert "Today's reminders" in caplog.text


# =============================================================================
# Persistence
# =============================================================================


class TestCoordinatorPersistence:
    """The list survives a restart on the same store."""

    def test_reload_from_json_file(
        self, tmp_path: Path, clock: FixedClock, sink: RecordingSink
    ) -> None:
        """A second coordinator on the same file sees the same list."""
        path = tmp_path / "reminders.json"
        first = ReminderCoordinator(
            store=JsonFileReminderStore(path), notify_fn=sink, now_fn=clock
        ).setup()
        created = first.reminder_manager.create(recurring_input())

        second = ReminderCoordinator(
            store=JsonFileReminderStore(path), notify_fn=sink, now_fn=clock
        ).setup()

        assert second.reminder_manager.get(created[const.DATA_REMINDER_ID]) == created

    def test_shutdown_drops_subscriptions(
        self, coordinator: ReminderCoordinator
    ) -> None:
        """After shutdown, list changes no longer re-arm."""
        coordinator.shutdown()

        coordinator.reminder_manager.create(one_off_input(due_at="2026-03-02T15:00"))

        assert coordinator.notification_manager.armed == {}

    def test_listener_failure_does_not_abort_mutation(
        self, coordinator: ReminderCoordinator
    ) -> None:
        """A broken listener is logged; the mutation still commits."""

        def _broken(payload: dict) -> None:
            raise RuntimeError("listener bug")

        coordinator.signals.connect(const.SIGNAL_SUFFIX_REMINDERS_CHANGED, _broken)

        coordinator.reminder_manager.create(one_off_input())

        assert len(coordinator.reminders) == 1

    def test_store_is_default_memory(self) -> None:
        """No store → in-memory store."""
        assert isinstance(ReminderCoordinator().store, MemoryReminderStore)


# =============================================================================
# Periodic evaluation
# =============================================================================


class TestPeriodicLoop:
    """async_start_periodic / async_stop_periodic."""

    def test_loop_ticks_until_stopped(
        self, coordinator: ReminderCoordinator, sink: RecordingSink
    ) -> None:
        """The loop runs tick() repeatedly and stops on request."""
        coordinator.reminder_manager.create(one_off_input(due_at="2026-03-02T18:00"))
        ticks: list[int] = []
        original_tick = coordinator.notification_manager.tick

        def _counting_tick(now=None) -> int:
            ticks.append(1)
            return original_tick(now)

        coordinator.notification_manager.tick = _counting_tick  # type: ignore[method-assign]

        async def _run() -> None:
            task = coordinator.async_start_periodic(interval_seconds=0.01)
            assert coordinator.async_start_periodic() is task
            await asyncio.sleep(0.05)
            await coordinator.async_stop_periodic()
            assert task.done()

        asyncio.run(_run())

        assert len(ticks) >= 2
        assert len(sink.titled(const.NOTIFY_TITLE_DIGEST)) == 1

    def test_loop_survives_tick_errors(self, coordinator: ReminderCoordinator) -> None:
        """An exception inside a tick is logged and the loop keeps going."""
        calls: list[int] = []

        def _failing_tick(now=None) -> int:
            calls.append(1)
            raise RuntimeError("tick failed")

        coordinator.notification_manager.tick = _failing_tick  # type: ignore[method-assign]

        async def _run() -> None:
            coordinator.async_start_periodic(interval_seconds=0.01)
            await asyncio.sleep(0.05)
            await coordinator.async_stop_periodic()

        asyncio.run(_run())

        assert len(calls) >= 2

    def test_stop_without_start(self, coordinator: ReminderCoordinator) -> None:
        """Stopping an idle coordinator is a no-op."""
        asyncio.run(coordinator.async_stop_periodic())
