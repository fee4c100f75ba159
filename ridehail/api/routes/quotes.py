"""
Fare quotes
===========

POST /api/v1/quotes -- price a pickup/dropoff pair for every vehicle tier
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_clock, get_db, get_fare_calculator
from ridehail.api.middleware import DEFAULT_RATE, limiter
from ridehail.api.schemas import QuoteRequest, QuoteResponse, TierOption
from ridehail.domain.enums import VehicleTier
from ridehail.domain.ports import Clock
from ridehail.domain.pricing import FareCalculator, price_for_tier
from ridehail.infrastructure.repositories import LiveCountsRepository

router = APIRouter(prefix="/quotes", tags=["quotes"])

# Display copy for the tier picker
TIER_DISPLAY: dict[VehicleTier, tuple[str, str]] = {
    VehicleTier.BIKE: ("5-7 min", "Small parcels, fastest pickup"),
    VehicleTier.CAR: ("8-10 min", "Bigger boot, safer packaging"),
    VehicleTier.TRUCK: ("15-18 min", "Heavy loads and pallets"),
}


@router.post("", response_model=QuoteResponse, summary="Quote a fare")
@limiter.limit(DEFAULT_RATE)
async def create_quote(
    request: Request,
    body: QuoteRequest,
    db: AsyncSession = Depends(get_db),
    calculator: FareCalculator = Depends(get_fare_calculator),
    clock: Clock = Depends(get_clock),
):
    active_drivers, active_requests = await LiveCountsRepository(db).get_counts()
    quote = calculator.quote(
        body.pickup.to_point(),
        body.dropoff.to_point(),
        active_drivers,
        active_requests,
        clock.now(),
    )
    options = [
        TierOption(
            tier=tier,
            label=tier.label,
            eta=TIER_DISPLAY[tier][0],
            blurb=TIER_DISPLAY[tier][1],
            price=price_for_tier(quote, tier),
        )
        for tier in VehicleTier
    ]
    return QuoteResponse(
        price=quote.price,
        distance_km=quote.distance_km,
        surge_multiplier=quote.surge_multiplier,
        options=options,
    )
