"""
Ride endpoints
==============

POST  /api/v1/rides                 -- request a ride (returns 202 Accepted)
GET   /api/v1/rides?customer_id=... -- a customer's rides, newest first
GET   /api/v1/rides/{ride_id}       -- ride status, driver and price
POST  /api/v1/rides/{ride_id}/accept   -- a driver takes a searching ride
PATCH /api/v1/rides/{ride_id}/cancel   -- cancel a ride
PATCH /api/v1/rides/{ride_id}/complete -- finish an accepted ride
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db, get_fare_calculator
from ridehail.api.middleware import DEFAULT_RATE, limiter
from ridehail.api.schemas import (
    AcceptRideRequest,
    ErrorResponse,
    RideCreateRequest,
    RideResponse,
)
from ridehail.domain.entities import InvalidStateTransition, Ride
from ridehail.domain.enums import RideStatus
from ridehail.domain.pricing import FareCalculator, InvalidQuote, price_for_tier
from ridehail.infrastructure.repositories import (
    DriverRepository,
    RideRepository,
    UserRepository,
)
from ridehail.workers.dispatcher import assign_nearest_driver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rides", tags=["rides"])

NOT_FOUND = {404: {"model": ErrorResponse}}
CONFLICT = {409: {"model": ErrorResponse}}


async def _get_ride_or_404(repo: RideRepository, ride_id: int):
    ride = await repo.get_by_id(ride_id)
    if not ride:
        raise HTTPException(status_code=404, detail="Ride not found")
    return ride


def _transition(ride, new_status: RideStatus) -> None:
    """Apply the ride state machine to an ORM row, 409 on illegal moves."""
    entity = Ride(id=ride.id, status=RideStatus(ride.status))
    try:
        entity.transition_to(new_status)
    except InvalidStateTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    ride.status = entity.status


@router.post(
    "",
    status_code=202,
    response_model=RideResponse,
    summary="Request a ride",
    responses={
        202: {"description": "Ride created; driver assigned if one is online."},
        **NOT_FOUND,
        422: {"description": "Invalid body, or a quote that does not match the trip."},
    },
)
@limiter.limit(DEFAULT_RATE)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    db: AsyncSession = Depends(get_db),
    calculator: FareCalculator = Depends(get_fare_calculator),
):
    repo = RideRepository(db)

    # ── Idempotency guard ─────────────────────────────────────────
    if body.idempotency_key:
        existing = await repo.get_by_idempotency_key(body.idempotency_key)
        if existing:
            return existing

    if not await UserRepository(db).get_by_id(body.customer_id):
        raise HTTPException(status_code=404, detail="Customer not found")

    pickup, dropoff = body.pickup.to_point(), body.dropoff.to_point()
    try:
        quote = calculator.check_quote(body.quote.to_quote(), pickup, dropoff)
    except InvalidQuote as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    try:
        ride = await repo.create_ride(
            customer_id=body.customer_id,
            pickup=pickup,
            dropoff=dropoff,
            quote=quote,
            vehicle_tier=body.vehicle_tier,
            price=price_for_tier(quote, body.vehicle_tier),
            idempotency_key=body.idempotency_key,
        )
    except IntegrityError:
        # A concurrent retry with the same key inserted first
        if not body.idempotency_key:
            raise
        await db.rollback()
        existing = await repo.get_by_idempotency_key(body.idempotency_key)
        if existing is None:
            raise
        logger.info("Ride request %s already created", body.idempotency_key)
        return existing

    candidates = await DriverRepository(db).get_online_driver_locations()
    match = await assign_nearest_driver(ride, repo, candidates)
    if match is None:
        logger.info("Ride %s searching: no driver available yet", ride.id)
    return ride


@router.get("", response_model=list[RideResponse], summary="List a customer's rides")
@limiter.limit(DEFAULT_RATE)
async def list_rides(
    request: Request,
    customer_id: int = Query(...),
    db: AsyncSession = Depends(get_db),
):
    return await RideRepository(db).list_for_customer(customer_id)


@router.get(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Get ride status and price",
    responses=NOT_FOUND,
)
@limiter.limit(DEFAULT_RATE)
async def get_ride(
    request: Request,
    ride_id: int,
    db: AsyncSession = Depends(get_db),
):
    return await _get_ride_or_404(RideRepository(db), ride_id)


@router.post(
    "/{ride_id}/accept",
    response_model=RideResponse,
    summary="Driver accepts a searching ride",
    responses={**NOT_FOUND, **CONFLICT},
)
@limiter.limit(DEFAULT_RATE)
async def accept_ride(
    request: Request,
    ride_id: int,
    body: AcceptRideRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = RideRepository(db)
    ride = await _get_ride_or_404(repo, ride_id)

    if not await DriverRepository(db).get_by_id(body.driver_id):
        raise HTTPException(status_code=404, detail="Driver not found")

    if not await repo.assign_driver(ride_id, body.driver_id):
        raise HTTPException(
            status_code=409,
            detail=f"Cannot accept ride in status {RideStatus(ride.status).value}",
        )
    return ride


@router.patch(
    "/{ride_id}/cancel",
    response_model=RideResponse,
    summary="Cancel a ride",
    description="Transitions a SEARCHING or ACCEPTED ride to CANCELLED.",
    responses={**NOT_FOUND, **CONFLICT},
)
@limiter.limit(DEFAULT_RATE)
async def cancel_ride(
    request: Request,
    ride_id: int,
    db: AsyncSession = Depends(get_db),
):
    ride = await _get_ride_or_404(RideRepository(db), ride_id)
    _transition(ride, RideStatus.CANCELLED)
    return ride


@router.patch(
    "/{ride_id}/complete",
    response_model=RideResponse,
    summary="Complete an accepted ride",
    responses={**NOT_FOUND, **CONFLICT},
)
@limiter.limit(DEFAULT_RATE)
async def complete_ride(
    request: Request,
    ride_id: int,
    db: AsyncSession = Depends(get_db),
):
    ride = await _get_ride_or_404(RideRepository(db), ride_id)
    _transition(ride, RideStatus.COMPLETED)
    return ride
