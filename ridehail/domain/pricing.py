"""
Fare Calculator  (Strategy Pattern for the volatility term)
============================================================

Formula
-------
Price = max(Distance x Rate_Per_KM x Surge_Multiplier + Platform_Fee, Minimum_Fare)

* **Surge_Multiplier** = 1.0
  + 0.2 during rush hour (local hours 7-9 and 17-19 inclusive)
  + demand term: requests/drivers > 1.5 -> 0.3, > 1.2 -> 0.1,
    no drivers but open requests -> 0.5
  + volatility draw in [0, 0.2) standing in for traffic / weather
* Price, distance and surge are rounded to 2 decimals on the way out.
* The minimum fare clamps the price only, never distance or surge.

A quote the customer confirmed comes back with the ride request;
``FareCalculator.check_quote`` re-derives its distance and checks that the
price follows from it under the calculator's own rates.

Inputs are not validated: negative counts or out-of-range coordinates
are undefined input and produce whatever the arithmetic produces.

Complexity: O(1) per quote.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from .distance import distance_km
from .entities import FareQuote, GeoPoint
from .enums import VehicleTier

RUSH_HOURS: tuple[tuple[int, int], ...] = ((7, 9), (17, 19))
NO_DRIVER_SURCHARGE = 0.5

# Quoted figures are 2-dp rounded; allow one cent either way
QUOTE_TOLERANCE = 0.01


class InvalidQuote(Exception):
    """Raised when a confirmed quote does not match the trip it is for."""


# ── Volatility strategies ─────────────────────────────────────────────


class VolatilitySource(ABC):
    """Supplies the additive "current conditions" surge term.

    ``ceiling`` bounds every draw from above.
    """

    ceiling: float

    @abstractmethod
    def draw(self) -> float: ...


class RandomVolatility(VolatilitySource):
    """Uniform draw from ``[0, ceiling)`` using a private generator."""

    def __init__(self, ceiling: float = 0.2, rng: Optional[random.Random] = None):
        self.ceiling = ceiling
        self.rng = rng if rng is not None else random.Random()

    def draw(self) -> float:
        return self.rng.random() * self.ceiling


class FixedVolatility(VolatilitySource):
    """Always returns the same value; pins quotes in tests."""

    def __init__(self, value: float = 0.0):
        self.value = value
        self.ceiling = value

    def draw(self) -> float:
        return self.value


# ── Surge components ──────────────────────────────────────────────────


def is_rush_hour(now: datetime, windows=RUSH_HOURS) -> bool:
    hour = now.hour
    return any(start <= hour <= end for start, end in windows)


def demand_surcharge(active_drivers: int, active_requests: int) -> float:
    if active_drivers > 0 and active_requests > active_drivers:
        ratio = active_requests / active_drivers
        if ratio > 1.5:
            return 0.3
        if ratio > 1.2:
            return 0.1
        return 0.0
    if active_drivers == 0 and active_requests > 0:
        return NO_DRIVER_SURCHARGE
    return 0.0


# ── Calculator facade ─────────────────────────────────────────────────


class FareCalculator:
    """High-level API used by the quote route and the ride workflow."""

    def __init__(
        self,
        volatility: Optional[VolatilitySource] = None,
        base_rate_per_km: float = 0.6,
        platform_fee: float = 0.99,
        minimum_fare: float = 5.00,
        rush_surcharge: float = 0.2,
        rush_windows: tuple[tuple[int, int], ...] = RUSH_HOURS,
    ):
        self.volatility = volatility if volatility is not None else RandomVolatility()
        self.base_rate_per_km = base_rate_per_km
        self.platform_fee = platform_fee
        self.minimum_fare = minimum_fare
        self.rush_surcharge = rush_surcharge
        self.rush_windows = tuple(tuple(w) for w in rush_windows)

    @property
    def max_surge(self) -> float:
        """Largest (rounded) multiplier ``surge_multiplier`` can produce."""
        return round(
            1.0 + self.rush_surcharge + NO_DRIVER_SURCHARGE + self.volatility.ceiling, 2
        )

    def surge_multiplier(
        self, active_drivers: int, active_requests: int, now: datetime
    ) -> float:
        surge = 1.0
        if is_rush_hour(now, self.rush_windows):
            surge += self.rush_surcharge
        surge += demand_surcharge(active_drivers, active_requests)
        surge += self.volatility.draw()
        return surge

    def quote(
        self,
        pickup: GeoPoint,
        dropoff: GeoPoint,
        active_drivers: int,
        active_requests: int,
        now: datetime,
    ) -> FareQuote:
        distance = distance_km(pickup, dropoff)
        surge = self.surge_multiplier(active_drivers, active_requests, now)

        price = distance * self.base_rate_per_km * surge + self.platform_fee
        if price < self.minimum_fare:
            price = self.minimum_fare

        return FareQuote(
            price=round(price, 2),
            distance_km=round(distance, 2),
            surge_multiplier=round(surge, 2),
        )

    def check_quote(
        self, quote: FareQuote, pickup: GeoPoint, dropoff: GeoPoint
    ) -> FareQuote:
        """
        Verify a client-supplied *quote* for the trip *pickup* -> *dropoff*.

        The distance must be this server's distance, the surge must be one
        ``surge_multiplier`` can produce, and the price must follow from
        both under this calculator's rates (minimum fare included).  Demand
        and volatility are not re-read: they may have moved since quoting.

        Returns *quote* unchanged; raises ``InvalidQuote`` otherwise.
        """
        distance = distance_km(pickup, dropoff)
        if abs(quote.distance_km - round(distance, 2)) > QUOTE_TOLERANCE:
            raise InvalidQuote(
                f"Quoted distance {quote.distance_km} km does not match "
                f"trip distance {distance:.2f} km"
            )

        if not 1.0 <= quote.surge_multiplier <= self.max_surge:
            raise InvalidQuote(
                f"Surge multiplier {quote.surge_multiplier} outside "
                f"[1.0, {self.max_surge}]"
            )

        if quote.price < self.minimum_fare:
            raise InvalidQuote(
                f"Price {quote.price} below minimum fare {self.minimum_fare:.2f}"
            )

        metered = distance * self.base_rate_per_km
        expected = max(metered * quote.surge_multiplier + self.platform_fee, self.minimum_fare)
        # The quoted surge is itself rounded to 2 dp
        slack = metered * 0.005 + QUOTE_TOLERANCE
        if abs(quote.price - expected) > slack:
            raise InvalidQuote(
                f"Price {quote.price} does not match {expected:.2f} for "
                f"{distance:.2f} km at surge {quote.surge_multiplier}"
            )
        return quote


def price_for_tier(quote: FareQuote, tier: VehicleTier) -> float:
    """Final price the customer pays for *tier* on top of *quote*."""
    return round(quote.price * tier.price_multiplier, 2)
