"""Test helpers for remindkit tests.

This module re-exports all helpers for convenient imports:

    from tests.helpers import (
        FixedClock, RecordingSink, make_dt,
        one_off_input, recurring_input, stored_one_off, stored_recurring,
    )

See individual modules for full documentation:
- fakes.py: Injectable clock, sinks and failing stores
- builders.py: Reminder input and stored-record builders
"""

from tests.helpers.builders import (
    make_dt,
    one_off_input,
    recurring_input,
    stored_one_off,
    stored_recurring,
)
from tests.helpers.fakes import (
    DEFAULT_NOW,
    ExplodingSaveStore,
    FailingSaveStore,
    FailingSink,
    FixedClock,
    RecordingSink,
)

__all__ = [
    "DEFAULT_NOW",
    "ExplodingSaveStore",
    "FailingSaveStore",
    "FailingSink",
    "FixedClock",
    "RecordingSink",
    "make_dt",
    "one_off_input",
    "recurring_input",
    "stored_one_off",
    "stored_recurring",
]
