"""Injectable collaborators for remindkit tests (clock, sink, stores)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from remindkit.store import MemoryReminderStore

# Monday. 2026-03-05 is the Thursday used by the conflict scenarios.
DEFAULT_NOW = datetime(2026, 3, 2, 10, 0, tzinfo=UTC)


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = DEFAULT_NOW) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> datetime:
        self.current = value
        return value

    def advance(self, **kwargs: Any) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class RecordingSink:
    """Notification sink recording every (title, body) call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def __call__(self, title: str, body: str) -> None:
        self.calls.append((title, body))

    def titled(self, title: str) -> list[tuple[str, str]]:
        """Calls with the given title."""
        return [call for call in self.calls if call[0] == title]


class FailingSink:
    """Sink that always raises."""

    def __init__(self) -> None:
        self.attempts = 0

    def __call__(self, title: str, body: str) -> None:
        self.attempts += 1
        raise RuntimeError("notification service unavailable")


class FailingSaveStore(MemoryReminderStore):
    """Memory store whose backend write always fails with OSError."""

    def _write(self, document: dict[str, Any]) -> None:
        raise OSError("disk full")


class ExplodingSaveStore(MemoryReminderStore):
    """Memory store whose save() raises something unexpected."""

    def save(self, reminders: list[dict[str, Any]]) -> bool:
        raise RuntimeError("backend exploded")
