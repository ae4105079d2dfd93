"""
core/clock.py -- The one seam for "current time".

Token issuance and validation never call datetime.now() directly. They take a
Clock -- any zero-argument callable returning a timezone-aware datetime -- so
tests can pin time without patching globals.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: the system time in UTC."""
    return datetime.now(timezone.utc)
