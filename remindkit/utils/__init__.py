# File: utils/__init__.py
"""Pure Python utilities for remindkit.

Submodules:
    - dt_utils: Date/time parsing, day keys, time-of-day handling

Usage:
    from . import dt_utils
"""

from . import dt_utils

__all__ = ["dt_utils"]
