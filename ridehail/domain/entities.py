"""
Domain entities and value objects.

Patterns used
-------------
- **Value Objects** (``GeoPoint``, ``FareQuote``, ``DriverCandidate``,
  ``MatchResult``): frozen dataclasses with no identity.
- **State Pattern** on ``Ride``: enforces valid lifecycle transitions
  (SEARCHING -> ACCEPTED -> COMPLETED, with CANCELLED from either
  non-terminal state).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Optional

from .enums import RIDE_TRANSITIONS, RideStatus


class InvalidStateTransition(Exception):
    """Raised when a ride status change violates the state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class FareQuote:
    """Price, distance and surge for one pickup/dropoff pair, 2-dp rounded."""

    price: float
    distance_km: float
    surge_multiplier: float


@dataclass(frozen=True)
class DriverCandidate:
    driver_id: Hashable
    location: GeoPoint


@dataclass(frozen=True)
class MatchResult:
    driver_id: Hashable
    distance_km: float


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Ride:
    """Lifecycle of a ride; persistence lives in ``RideModel``."""

    id: Optional[int] = None
    driver_id: Optional[int] = None
    status: RideStatus = RideStatus.SEARCHING

    def transition_to(self, new_status: RideStatus) -> None:
        """Move to *new_status* if the transition is legal, else raise."""
        allowed = RIDE_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status} to {new_status}"
            )
        self.status = new_status

