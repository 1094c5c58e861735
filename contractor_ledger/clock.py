"""
clock.py - Time sources for the ledger

The store stamps records and the withdrawal processor computes settlement due
times through a Clock. Production code uses SystemClock; tests use
ManualClock and advance it explicitly, so settlement never waits on real
wall-clock seconds.
"""

from __future__ import annotations
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can report the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class ManualClock:
    """
    Virtual clock that only moves when told to.

    Time can only move forward, never backward.
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2025, 1, 1, tzinfo=timezone.utc)
        self._lock = Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward by delta and return the new time."""
        if delta < timedelta(0):
            raise ValueError(f"Cannot move time backwards: {delta}")
        with self._lock:
            self._now = self._now + delta
            return self._now

    def advance_to(self, new_time: datetime) -> datetime:
        """
        Move the clock to new_time.

        Raises:
            ValueError: If new_time is before the current time
        """
        with self._lock:
            if new_time < self._now:
                raise ValueError(
                    f"Cannot move time backwards: {new_time} < {self._now}"
                )
            self._now = new_time
            return self._now
