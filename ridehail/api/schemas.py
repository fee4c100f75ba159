"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ridehail.domain.entities import FareQuote, GeoPoint
from ridehail.domain.enums import RideStatus, VehicleTier


# ── Shared ────────────────────────────────────────────────────────────


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def to_point(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lng)


class FareQuoteBody(BaseModel):
    price: float = Field(..., ge=0)
    distance_km: float = Field(..., ge=0)
    surge_multiplier: float = Field(..., ge=1.0)

    def to_quote(self) -> FareQuote:
        return FareQuote(self.price, self.distance_km, self.surge_multiplier)


# ── Requests ──────────────────────────────────────────────────────────


class QuoteRequest(BaseModel):
    pickup: Coordinate
    dropoff: Coordinate


class RideCreateRequest(BaseModel):
    customer_id: int
    pickup: Coordinate
    dropoff: Coordinate
    vehicle_tier: VehicleTier = VehicleTier.BIKE
    quote: FareQuoteBody = Field(
        ..., description="The quote the customer confirmed (from POST /quotes)."
    )
    idempotency_key: Optional[str] = Field(
        None,
        max_length=64,
        description="Client-generated UUID to prevent double-booking on retries.",
    )


class AcceptRideRequest(BaseModel):
    driver_id: int


class DriverStatusRequest(BaseModel):
    is_online: bool


class DriverLocationRequest(Coordinate):
    heading: float = Field(0.0, ge=0, lt=360)


# ── Responses ─────────────────────────────────────────────────────────


class TierOption(BaseModel):
    tier: VehicleTier
    label: str
    eta: str
    blurb: str
    price: float


class QuoteResponse(BaseModel):
    price: float
    distance_km: float
    surge_multiplier: float
    options: list[TierOption]


class RideResponse(BaseModel):
    id: int
    customer_id: int
    driver_id: Optional[int] = None
    pickup_lat: float
    pickup_lng: float
    dropoff_lat: float
    dropoff_lng: float
    status: RideStatus
    vehicle_tier: VehicleTier
    price: float
    distance_km: float
    surge_multiplier: float
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverResponse(BaseModel):
    id: int
    vehicle_type: Optional[str] = None
    vehicle_model: Optional[str] = None
    license_plate: Optional[str] = None
    is_online: bool

    model_config = {"from_attributes": True}


class DriverLocationResponse(BaseModel):
    driver_id: int
    latitude: float
    longitude: float
    heading: float

    model_config = {"from_attributes": True}


class StatsResponse(BaseModel):
    online_drivers: int
    searching_rides: int


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
