# File: notification_manager.py
"""Notification Manager for remindkit.

This manager decides which reminders notify, and when:
- Horizon-bounded one-shot notifications for upcoming occurrences
- Immediate "due today" notifications for recurring reminders that reached
  their occurrence (deduped per calendar day via last_notified_date)
- One combined digest per calendar day (deduped via a meta key in the store)

Armed notifications are explicit records keyed by reminder id. The whole
set is cleared and rebuilt on every list change, so a deleted, paused or
moved reminder can never fire from a stale record. Firing is cooperative:
tick() fires every record whose instant has been reached.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.reminder_engine import ReminderEngine
from ..utils.dt_utils import dt_day_key
from .base_manager import BaseManager

if TYPE_CHECKING:
    from ..coordinator import ReminderCoordinator


@dataclass(frozen=True)
class ArmedNotification:
    """A one-shot notification waiting for its instant."""

    reminder_id: str
    kind: str
    fire_at: datetime
    title: str
    body: str


class NotificationManager(BaseManager):
    """Manager for armed notifications, due-today alerts and the digest.

    Responsibilities:
    - Evaluate and re-arm on every list change (REMINDERS_CHANGED)
    - Fire due notifications on tick()
    - Send through the injected sink, swallowing sink failures

    NOT responsible for:
    - Advancing next_due_at (only ReminderManager.complete_recurring does)
    """

    def __init__(self, coordinator: ReminderCoordinator) -> None:
        """Initialize NotificationManager.

        Args:
            coordinator: Parent coordinator owning the list, clock and sink
        """
        super().__init__(coordinator)
        self._coordinator = coordinator
        self._armed: dict[str, ArmedNotification] = {}
        # Occurrences at or before this instant are never armed again
        self._last_evaluated_at: datetime | None = None

    def setup(self) -> None:
        """Subscribe to list changes and arm the initial set."""
        self.listen(const.SIGNAL_SUFFIX_REMINDERS_CHANGED, self._on_reminders_changed)
        self.listen(const.SIGNAL_SUFFIX_REMINDER_DELETED, self._on_reminder_deleted)
        self._last_evaluated_at = self._coordinator.now()
        self.rearm()

    # =========================================================================
    # Armed set
    # =========================================================================

    @property
    def armed(self) -> dict[str, ArmedNotification]:
        """Snapshot of the armed notifications, keyed by reminder id."""
        return dict(self._armed)

    def rearm(self, now: datetime | None = None) -> int:
        """Clear every armed notification and rebuild the set.

        An active reminder is armed when its occurrence lies after the last
        evaluation and within the horizon.

        Returns:
            Number of armed notifications.
        """
        now = now or self._coordinator.now()
        floor = self._last_evaluated_at or now
        horizon_end = now + self._coordinator.notification_horizon

        self._armed.clear()
        for reminder in self._coordinator.reminders:
            if not ReminderEngine.is_active(reminder):
                continue
            occurrence = ReminderEngine.get_occurrence(reminder)
            if occurrence is None or not (floor < occurrence <= horizon_end):
                continue
            reminder_id = reminder[const.DATA_REMINDER_ID]
            title, body = self._build_message(reminder)
            self._armed[reminder_id] = ArmedNotification(
                reminder_id=reminder_id,
                kind=reminder[const.DATA_REMINDER_KIND],
                fire_at=occurrence,
                title=title,
                body=body,
            )

        const.LOGGER.debug(
            "Armed %s notification(s) up to %s", len(self._armed), horizon_end
        )
        return len(self._armed)

    def disarm(self, reminder_id: str) -> bool:
        """Drop the armed notification of one reminder, if any."""
        return self._armed.pop(reminder_id, None) is not None

    # =========================================================================
    # Evaluation
    # =========================================================================

    def tick(self, now: datetime | None = None) -> int:
        """Run one evaluation cycle.

        1. Fire armed notifications whose instant has been reached
        2. Fire "due today" for recurring reminders at/after their occurrence
        3. Send the daily digest
        4. Re-arm for the next horizon window

        Returns:
            Number of notifications sent.
        """
        with self._coordinator.lock:
            now = now or self._coordinator.now()
            sent = self._fire_armed(now)
            sent += self._fire_reached_recurring(now)
            if self.evaluate_digest(now):
                sent += 1
            self._last_evaluated_at = now
            self.rearm(now)
            return sent

    def evaluate_digest(self, now: datetime | None = None) -> bool:
        """Send the once-per-day digest of reminders due today.

        Skipped when already sent today (per digest scope) or when nothing
        is due; an empty day leaves the guard untouched.

        Returns:
            True if the digest was sent.
        """
        with self._coordinator.lock:
            now = now or self._coordinator.now()
            today = dt_day_key(now)
            guard_key = (
                f"{const.META_LAST_DIGEST_DAY_PREFIX}:{self._coordinator.digest_scope}"
            )
            if self._coordinator.store.get_meta(guard_key) == today:
                return False

            due_today = sorted(
                (
                    r
                    for r in self._coordinator.reminders
                    if ReminderEngine.is_due_on(r, today)
                ),
                key=ReminderEngine.sort_key,
            )
            if not due_today:
                return False

            titles = ", ".join(r[const.DATA_REMINDER_TITLE] for r in due_today)
            self._send_notification(
                const.NOTIFY_TITLE_DIGEST,
                const.NOTIFY_BODY_DIGEST.format(count=len(due_today), titles=titles),
            )
            self._coordinator.store.set_meta(guard_key, today)
            return True

    def _fire_armed(self, now: datetime) -> int:
        """Fire and remove every armed record with fire_at <= now."""
        sent = 0
        for reminder_id, armed in sorted(
            self._armed.items(), key=lambda item: item[1].fire_at
        ):
            if armed.fire_at > now:
                continue
            del self._armed[reminder_id]

            if armed.kind == const.KIND_RECURRING:
                day_key = dt_day_key(now)
                reminder = self._find(reminder_id)
                if reminder is None or reminder.get(
                    const.DATA_REMINDER_LAST_NOTIFIED_DATE
                ) == day_key:
                    continue
                self._send_notification(armed.title, armed.body, reminder_id)
                self._coordinator.reminder_manager.mark_notified(reminder_id, day_key)
            else:
                self._send_notification(armed.title, armed.body, reminder_id)
            sent += 1
        return sent

    def _fire_reached_recurring(self, now: datetime) -> int:
        """Immediate path: recurring occurrence reached, not yet notified today."""
        sent = 0
        today = dt_day_key(now)
        for reminder in list(self._coordinator.reminders):
            if not (
                ReminderEngine.is_recurring(reminder)
                and ReminderEngine.is_active(reminder)
            ):
                continue
            occurrence = ReminderEngine.get_occurrence(reminder)
            if occurrence is None or occurrence > now:
                continue
            if reminder.get(const.DATA_REMINDER_LAST_NOTIFIED_DATE) == today:
                continue
            reminder_id = reminder[const.DATA_REMINDER_ID]
            title, body = self._build_message(reminder)
            self._send_notification(title, body, reminder_id)
            self._coordinator.reminder_manager.mark_notified(reminder_id, today)
            sent += 1
        return sent

    # =========================================================================
    # Sending
    # =========================================================================

    @staticmethod
    def _build_message(reminder: dict[str, Any]) -> tuple[str, str]:
        """Return (title, body) for a reminder notification."""
        title = reminder.get(const.DATA_REMINDER_TITLE, "")
        if ReminderEngine.is_recurring(reminder):
            return (
                const.NOTIFY_TITLE_RECURRING,
                const.NOTIFY_BODY_RECURRING.format(title=title),
            )
        return const.NOTIFY_TITLE_ONE_OFF, title

    def _send_notification(
        self, title: str, body: str, reminder_id: str | None = None
    ) -> None:
        """Deliver through the sink. Sink failures are logged, never raised."""
        const.LOGGER.debug("Sending notification: title='%s', body='%s'", title, body)
        try:
            self._coordinator.notify_fn(title, body)
        except Exception:  # noqa: BLE001
            # Fire-and-forget: a broken sink must not undo the evaluation
            const.LOGGER.exception("Unexpected error sending notification '%s'", title)
            return
        self.emit(
            const.SIGNAL_SUFFIX_NOTIFICATION_SENT,
            reminder_id=reminder_id,
            title=title,
            body=body,
        )

    def _find(self, reminder_id: str) -> dict[str, Any] | None:
        for reminder in self._coordinator.reminders:
            if reminder.get(const.DATA_REMINDER_ID) == reminder_id:
                return reminder
        return None

    # =========================================================================
    # Event handlers
    # =========================================================================

    def _on_reminders_changed(self, payload: dict[str, Any]) -> None:
        """Evaluate the changed list, then re-arm as a unit.

        Armed records are left for the next tick; only the immediate
        recurring path and the digest run here.
        """
        with self._coordinator.lock:
            now = self._coordinator.now()
            self._fire_reached_recurring(now)
            self.evaluate_digest(now)
            self.rearm(now)

    def _on_reminder_deleted(self, payload: dict[str, Any]) -> None:
        """Make sure a deleted reminder has nothing armed."""
        if self.disarm(payload.get("reminder_id", "")):
            const.LOGGER.debug(
                "Disarmed notification for deleted reminder %s",
                payload.get("reminder_id"),
            )
