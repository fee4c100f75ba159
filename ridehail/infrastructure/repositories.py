"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  ``LiveCountsRepository`` and
``DriverRepository`` are the database-backed implementations of the
``DriverCountProvider`` and ``OnlineDriverLocationProvider`` ports.

The mapped classes are class attributes so the same queries can run
against alternative mappings of the same tables.
"""

from __future__ import annotations

from typing import Optional

from geoalchemy2.functions import ST_MakePoint, ST_SetSRID
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DriverLocationModel, DriverModel, RideModel, UserModel
from ridehail.domain.entities import DriverCandidate, FareQuote, GeoPoint
from ridehail.domain.enums import RideStatus, VehicleTier


def make_point(point: GeoPoint):
    """PostGIS POINT in SRID 4326 (note: x = longitude, y = latitude)."""
    return ST_SetSRID(ST_MakePoint(point.longitude, point.latitude), 4326)


class RideRepository:
    model = RideModel

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _point(point: GeoPoint):
        return make_point(point)

    async def create_ride(
        self,
        *,
        customer_id: int,
        pickup: GeoPoint,
        dropoff: GeoPoint,
        quote: FareQuote,
        vehicle_tier: VehicleTier,
        price: float,
        idempotency_key: str | None = None,
    ) -> RideModel:
        """Insert a SEARCHING ride carrying the confirmed fare."""
        ride = self.model(
            customer_id=customer_id,
            pickup_lat=pickup.latitude,
            pickup_lng=pickup.longitude,
            dropoff_lat=dropoff.latitude,
            dropoff_lng=dropoff.longitude,
            pickup_point=self._point(pickup),
            dropoff_point=self._point(dropoff),
            status=RideStatus.SEARCHING,
            vehicle_tier=vehicle_tier,
            price=price,
            distance_km=quote.distance_km,
            surge_multiplier=quote.surge_multiplier,
            idempotency_key=idempotency_key,
        )
        self.session.add(ride)
        await self.session.flush()
        return ride

    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        return await self.session.get(self.model, ride_id)

    async def get_by_idempotency_key(self, key: str) -> Optional[RideModel]:
        result = await self.session.execute(
            select(self.model).where(self.model.idempotency_key == key)
        )
        return result.scalar_one_or_none()

    async def list_for_customer(self, customer_id: int) -> list[RideModel]:
        result = await self.session.execute(
            select(self.model)
            .where(self.model.customer_id == customer_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        return list(result.scalars().all())

    async def get_searching_rides(self, newest_first: bool = False) -> list[RideModel]:
        order = (
            (self.model.created_at.desc(), self.model.id.desc())
            if newest_first
            else (self.model.created_at, self.model.id)
        )
        result = await self.session.execute(
            select(self.model)
            .where(self.model.status == RideStatus.SEARCHING)
            .order_by(*order)
        )
        return list(result.scalars().all())

    async def count_searching(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.status == RideStatus.SEARCHING)
        )
        return result.scalar() or 0

    async def assign_driver(self, ride_id: int, driver_id: int) -> bool:
        """
        Conditionally hand *ride_id* to *driver_id*.

        The UPDATE only matches while the ride is still SEARCHING, so of
        two concurrent assignments (dispatcher vs. a driver accepting by
        hand) exactly one succeeds.  Returns True if this call won.
        """
        result = await self.session.execute(
            update(self.model)
            .where(
                self.model.id == ride_id,
                self.model.status == RideStatus.SEARCHING,
            )
            .values(driver_id=driver_id, status=RideStatus.ACCEPTED)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        # reload any copy already in the session
        await self.session.get(self.model, ride_id, populate_existing=True)
        return True


class DriverRepository:
    model = DriverModel
    location_model = DriverLocationModel

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _point(point: GeoPoint):
        return make_point(point)

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(self.model, driver_id)

    async def set_online(self, driver: DriverModel, is_online: bool) -> DriverModel:
        driver.is_online = is_online
        await self.session.flush()
        return driver

    async def upsert_location(
        self, driver_id: int, point: GeoPoint, heading: float = 0.0
    ):
        loc = await self.session.get(self.location_model, driver_id)
        if loc is None:
            loc = self.location_model(driver_id=driver_id)
            self.session.add(loc)
        loc.latitude = point.latitude
        loc.longitude = point.longitude
        loc.heading = heading
        loc.location = self._point(point)
        await self.session.flush()
        return loc

    async def count_online(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(self.model)
            .where(self.model.is_online.is_(True))
        )
        return result.scalar() or 0

    async def get_online_driver_locations(self) -> list[DriverCandidate]:
        """Last known positions of online drivers, ordered by driver id."""
        loc = self.location_model
        result = await self.session.execute(
            select(loc.driver_id, loc.latitude, loc.longitude)
            .join(self.model, self.model.id == loc.driver_id)
            .where(self.model.is_online.is_(True))
            .order_by(loc.driver_id)
        )
        return [
            DriverCandidate(driver_id=row.driver_id, location=GeoPoint(row.latitude, row.longitude))
            for row in result.all()
        ]


class LiveCountsRepository:
    """Supply / demand snapshot: online drivers vs. SEARCHING rides."""

    driver_repository = DriverRepository
    ride_repository = RideRepository

    def __init__(self, session: AsyncSession):
        self.drivers = self.driver_repository(session)
        self.rides = self.ride_repository(session)

    async def get_counts(self) -> tuple[int, int]:
        return await self.drivers.count_online(), await self.rides.count_searching()


class UserRepository:
    model = UserModel

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(self.model, user_id)
