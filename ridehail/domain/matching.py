"""
Nearest-driver selection
========================

Linear scan over the currently-online drivers.  The candidate set is
the handful of drivers online right now, not the whole fleet, so no
spatial index is used.

Ties
----
The best candidate is only replaced on a *strictly* smaller distance,
so among equally-near drivers the first one in input order wins.

Complexity: O(n) in the number of candidates.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .distance import distance_km
from .entities import DriverCandidate, GeoPoint, MatchResult


def select_nearest(
    pickup: GeoPoint, candidates: Iterable[DriverCandidate]
) -> Optional[MatchResult]:
    """Return the closest candidate to *pickup*, or ``None`` if there are none."""
    best: Optional[MatchResult] = None
    for candidate in candidates:
        d = distance_km(pickup, candidate.location)
        if best is None or d < best.distance_km:
            best = MatchResult(driver_id=candidate.driver_id, distance_km=d)
    return best
