"""
Background Dispatch Worker
==========================

Runs every ``DISPATCH_INTERVAL_SECONDS`` (default 15 s).

A ride is dispatched once synchronously when it is requested.  Rides
that found no online driver at that moment stay SEARCHING; this worker
retries them so a driver coming online later still picks them up.

Concurrency safety
------------------
* **Redis distributed lock** ensures only one instance runs the dispatch
  cycle at a time across multiple API processes.
* **Conditional UPDATE** (``status = SEARCHING``) in
  ``RideRepository.assign_driver`` means a ride accepted by hand between
  our read and our write is left alone.

Within one cycle a driver is handed at most one ride.  Known gap: a
driver who already holds a ride is still a candidate for the next
request or cycle.

Algorithm per cycle
-------------------
1. Fetch all SEARCHING rides, oldest first.
2. Fetch the online drivers' last known locations once.
3. For each ride pick the nearest remaining driver and conditionally
   assign it; a matched driver leaves the pool for the rest of the cycle.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from ridehail.config import settings
from ridehail.domain.entities import DriverCandidate, GeoPoint, MatchResult
from ridehail.domain.matching import select_nearest
from ridehail.infrastructure.database import async_session_factory
from ridehail.infrastructure.locks import DistributedLock
from ridehail.infrastructure.redis_client import get_redis
from ridehail.infrastructure.repositories import DriverRepository, RideRepository

logger = logging.getLogger(__name__)

_task: asyncio.Task | None = None
_stop_event: asyncio.Event | None = None


# ── Public API ────────────────────────────────────────────────────────


async def assign_nearest_driver(
    ride,
    ride_repo: RideRepository,
    candidates: Iterable[DriverCandidate],
) -> Optional[MatchResult]:
    """
    Pick the nearest candidate for *ride* and try to hand the ride over.

    Returns the match, or ``None`` when there is no candidate or the ride
    stopped being SEARCHING before the update landed.
    """
    pickup = GeoPoint(ride.pickup_lat, ride.pickup_lng)
    match = select_nearest(pickup, candidates)
    if match is None:
        return None

    if not await ride_repo.assign_driver(ride.id, match.driver_id):
        logger.info("Ride %s no longer searching; skipped driver %s", ride.id, match.driver_id)
        return None

    logger.info(
        "Ride %s assigned to driver %s (%.2f km away)",
        ride.id, match.driver_id, match.distance_km,
    )
    return match


async def start_dispatch_loop() -> None:
    global _task, _stop_event
    _stop_event = asyncio.Event()
    _task = asyncio.create_task(_loop())
    logger.info(
        "Dispatch worker started (interval=%ds)", settings.dispatch_interval_seconds
    )


async def stop_dispatch_loop() -> None:
    if _stop_event:
        _stop_event.set()
    if _task:
        _task.cancel()
        try:
            await _task
        except asyncio.CancelledError:
            pass
    logger.info("Dispatch worker stopped")


# ── Internals ─────────────────────────────────────────────────────────


async def _loop() -> None:
    """Periodic loop: run a dispatch cycle then sleep."""
    assert _stop_event is not None
    while not _stop_event.is_set():
        try:
            await run_dispatch_cycle()
        except Exception:
            logger.exception("Unhandled error in dispatch cycle")
        try:
            await asyncio.wait_for(
                _stop_event.wait(), timeout=settings.dispatch_interval_seconds
            )
            break
        except asyncio.TimeoutError:
            pass  # next cycle


async def run_dispatch_cycle(session_factory=async_session_factory) -> int:
    """Execute one dispatch cycle.  Returns the number of rides assigned."""
    redis = await get_redis()
    lock = DistributedLock(
        redis, "dispatch", ttl_seconds=settings.dispatch_lock_ttl_seconds
    )

    if not await lock.acquire():
        logger.debug("Lock held by another worker - skipping cycle")
        return 0

    assigned = 0
    try:
        async with session_factory() as session:
            ride_repo = RideRepository(session)
            driver_repo = DriverRepository(session)

            searching = await ride_repo.get_searching_rides()
            if not searching:
                await session.commit()
                return 0

            candidates = await driver_repo.get_online_driver_locations()
            if not candidates:
                logger.debug("%d rides searching, no drivers online", len(searching))
                await session.commit()
                return 0

            for ride in searching:
                if not candidates:
                    break
                match = await assign_nearest_driver(ride, ride_repo, candidates)
                if match:
                    assigned += 1
                    candidates = [
                        c for c in candidates if c.driver_id != match.driver_id
                    ]

            await session.commit()
            if assigned:
                logger.info("Dispatch cycle: %d rides assigned", assigned)
    finally:
        await lock.release()

    return assigned
