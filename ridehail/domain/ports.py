"""
Interfaces the fare and matching core consumes.

The core never fetches its own inputs: live counts, driver locations and
the current time all come through these narrow ports so they can be
swapped for fixed values in tests.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from .entities import DriverCandidate


class DriverCountProvider(Protocol):
    async def get_counts(self) -> tuple[int, int]:
        """Return ``(active_drivers, active_requests)`` as of now."""
        ...


class OnlineDriverLocationProvider(Protocol):
    async def get_online_driver_locations(self) -> list[DriverCandidate]: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in a fixed zone, so rush hour follows local time and DST."""

    def __init__(self, timezone: str = "UTC"):
        self.tz = ZoneInfo(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant
