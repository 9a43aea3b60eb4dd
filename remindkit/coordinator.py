# File: coordinator.py
"""Coordinator for remindkit.

Composition root of the reminder engine: owns the authoritative in-memory
reminder list and wires it to the injected collaborators.

- store: ReminderStore (load/save + meta keys)
- clock: now_fn() -> datetime
- sink: notify_fn(title, body)

Managers do the work (ReminderManager mutates, NotificationManager
notifies); the coordinator serializes them with a single re-entrant lock,
so a mutation (resolver retries included) finishes before the next
mutation or tick starts.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
import threading
from typing import TYPE_CHECKING, Any, ClassVar

from . import const, schemas
from .managers.base_manager import SignalDispatcher
from .managers.notification_manager import NotificationManager
from .managers.reminder_manager import ReminderManager
from .store import MemoryReminderStore, ReminderStore
from .utils.dt_utils import as_local, dt_now_local, set_default_timezone

if TYPE_CHECKING:
    from .type_defs import NotifyFn, NowFn, ReminderOptions


def _log_only_sink(title: str, body: str) -> None:
    """Default sink when the host supplies none."""
    const.LOGGER.info("Notification: %s - %s", title, body)


class ReminderCoordinator:
    """Coordinator owning the reminder list, options and managers.

    The `time_zone` option sets the process-wide local zone in dt_utils.
    One zone per process is supported: a coordinator configured with a
    different zone switches it for every coordinator already running.
    """

    # Zone applied by the most recently constructed coordinator
    _configured_zone: ClassVar[str | None] = None

    def __init__(
        self,
        store: ReminderStore | None = None,
        notify_fn: NotifyFn | None = None,
        now_fn: NowFn | None = None,
        options: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Persistence backend (default: in-memory)
            notify_fn: Notification sink `(title, body) -> None`
            now_fn: Clock returning the current instant (default: wall clock)
            options: Raw options, validated with schemas.OPTIONS_SCHEMA

        Raises:
            vol.Invalid: If options are malformed
        """
        self.options: ReminderOptions = schemas.validate_options(options)
        self._apply_time_zone(self.options[const.CONF_TIME_ZONE])

        self.store: ReminderStore = store if store is not None else MemoryReminderStore()
        self.notify_fn: NotifyFn = notify_fn or _log_only_sink
        self._now_fn: NowFn = now_fn or dt_now_local

        self.lock = threading.RLock()
        self.signals = SignalDispatcher()
        self._reminders: list[dict[str, Any]] = []
        self._periodic_task: asyncio.Task[None] | None = None

        self.reminder_manager = ReminderManager(self)
        self.notification_manager = NotificationManager(self)

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    def setup(self) -> ReminderCoordinator:
        """Load the list from the store and set up managers."""
        with self.lock:
            self._reminders = self.store.load()
            const.LOGGER.info(
                "Reminder coordinator ready with %s reminder(s)", len(self._reminders)
            )
            self.reminder_manager.setup()
            self.notification_manager.setup()
        return self

    def shutdown(self) -> None:
        """Drop manager subscriptions."""
        self.reminder_manager.shutdown()
        self.notification_manager.shutdown()

    @classmethod
    def _apply_time_zone(cls, zone: str) -> None:
        """Set the process-wide zone, warning when it replaces another one."""
        previous = cls._configured_zone
        if previous is not None and previous != zone:
            const.LOGGER.warning(
                "Time zone %s replaces %s for every coordinator in this process",
                zone,
                previous,
            )
        cls._configured_zone = zone
        set_default_timezone(zone)

    # -------------------------------------------------------------------------------------
    # Options
    # -------------------------------------------------------------------------------------

    @property
    def forward_guard(self) -> timedelta:
        """Minimum distance between now and a valid candidate."""
        return timedelta(seconds=self.options[const.CONF_FORWARD_GUARD_SECONDS])

    @property
    def max_shift_iterations(self) -> int:
        """Bound on shift-mode retries."""
        return self.options[const.CONF_MAX_SHIFT_ITERATIONS]

    @property
    def notification_horizon(self) -> timedelta:
        """How far ahead notifications are armed."""
        return timedelta(hours=self.options[const.CONF_NOTIFICATION_HORIZON_HOURS])

    @property
    def digest_scope(self) -> str:
        """Scope of the once-per-day digest guard (per user/device)."""
        return self.options[const.CONF_DIGEST_SCOPE]

    # -------------------------------------------------------------------------------------
    # Shared state
    # -------------------------------------------------------------------------------------

    def now(self) -> datetime:
        """Current instant from the injected clock, in local time."""
        return as_local(self._now_fn())

    @property
    def reminders(self) -> list[dict[str, Any]]:
        """The authoritative reminder list. Managers replace it, never edit it."""
        return self._reminders

    def commit(self, reminders: list[dict[str, Any]], *, changed: bool = True) -> None:
        """Swap in a new list and persist it.

        The in-memory list is authoritative: a failed save is logged and the
        mutation stands.

        Args:
            reminders: The complete new list
            changed: False for bookkeeping writes (no schedule change)
        """
        with self.lock:
            self._reminders = reminders
            try:
                saved = self.store.save(reminders)
            except Exception:  # noqa: BLE001
                const.LOGGER.exception("Unexpected error saving reminders")
                saved = False
            if not saved:
                const.LOGGER.warning(
                    "Reminder list kept in memory only (%s reminder(s))", len(reminders)
                )
            const.LOGGER.debug(
                "Committed %s reminder(s) (changed=%s)", len(reminders), changed
            )

    # -------------------------------------------------------------------------------------
    # Periodic evaluation
    # -------------------------------------------------------------------------------------

    async def async_run_periodic(
        self,
        *,
        interval_seconds: float | None = None,
        wait_first: bool = False,
    ) -> None:
        """Run NotificationManager.tick() until cancelled.

        Exceptions from a tick are logged and the loop continues.
        """
        interval = float(
            interval_seconds
            if interval_seconds is not None
            else self.options[const.CONF_TICK_INTERVAL_SECONDS]
        )
        if wait_first:
            await asyncio.sleep(interval)

        while True:
            try:
                self.notification_manager.tick()
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001
                const.LOGGER.exception("Periodic reminder evaluation failed")
            await asyncio.sleep(interval)

    def async_start_periodic(
        self, *, interval_seconds: float | None = None, wait_first: bool = False
    ) -> asyncio.Task[None]:
        """Start the periodic loop as a task on the running event loop."""
        if self._periodic_task is None or self._periodic_task.done():
            self._periodic_task = asyncio.create_task(
                self.async_run_periodic(
                    interval_seconds=interval_seconds, wait_first=wait_first
                ),
                name="remindkit-periodic",
            )
        return self._periodic_task

    async def async_stop_periodic(self) -> None:
        """Cancel the periodic loop and wait for it to finish."""
        task, self._periodic_task = self._periodic_task, None
        if task is None:
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        const.LOGGER.info("Periodic reminder evaluation stopped")
