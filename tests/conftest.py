"""Shared fixtures for remindkit tests."""

from typing import Any

import pytest

from remindkit.coordinator import ReminderCoordinator
from remindkit.store import MemoryReminderStore
from remindkit.utils.dt_utils import set_default_timezone
from tests.helpers import FixedClock, RecordingSink


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Any:
    """Every test starts (and ends) in UTC."""
    set_default_timezone("UTC")
    yield
    set_default_timezone("UTC")


@pytest.fixture
def clock() -> FixedClock:
    """Fixed clock at Monday 2026-03-02 10:00 UTC."""
    return FixedClock()


@pytest.fixture
def sink() -> RecordingSink:
    """Recording notification sink."""
    return RecordingSink()


@pytest.fixture
def store() -> MemoryReminderStore:
    """Empty in-memory store."""
    return MemoryReminderStore()


@pytest.fixture
def coordinator(
    store: MemoryReminderStore, sink: RecordingSink, clock: FixedClock
) -> ReminderCoordinator:
    """Coordinator wired to the fixed clock, recording sink and memory store."""
    return ReminderCoordinator(store=store, notify_fn=sink, now_fn=clock).setup()
