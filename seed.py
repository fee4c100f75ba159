"""
Seed script -- populates the database with demo data.

Run after migrations:
    python seed.py

Creates:
  - 2 customers
  - 3 online drivers with locations around Dublin city centre
  - 2 past rides (one COMPLETED, one CANCELLED) priced by the fare calculator
"""

import asyncio
from datetime import datetime
from zoneinfo import ZoneInfo

from sqlalchemy import text

from ridehail.config import settings
from ridehail.domain.entities import GeoPoint
from ridehail.domain.enums import RideStatus, UserType, VehicleTier
from ridehail.domain.pricing import FareCalculator, FixedVolatility, price_for_tier
from ridehail.infrastructure.database import async_session_factory, engine
from ridehail.infrastructure.models import DriverModel, UserModel
from ridehail.infrastructure.repositories import DriverRepository, RideRepository

CUSTOMERS = [
    {"full_name": "Aoife Byrne", "email": "aoife@example.com"},
    {"full_name": "Cian Walsh", "email": "cian@example.com"},
]

DRIVERS = [
    {"full_name": "Driver One", "email": "driver1@example.com", "lat": 53.3498, "lng": -6.2603},
    {"full_name": "Driver Two", "email": "driver2@example.com", "lat": 53.3438, "lng": -6.2546},
    {"full_name": "Driver Three", "email": "driver3@example.com", "lat": 53.3561, "lng": -6.2740},
]

PAST_RIDES = [
    # (customer index, pickup, dropoff, tier, final status)
    (0, (53.3498, -6.2603), (53.3599, -6.2470), VehicleTier.CAR, RideStatus.COMPLETED),
    (1, (53.3438, -6.2546), (53.3331, -6.2489), VehicleTier.BIKE, RideStatus.CANCELLED),
]


async def seed():
    async with async_session_factory() as session:
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Customers ─────────────────────────────────────────────────
        customers = []
        for c in CUSTOMERS:
            m = UserModel(full_name=c["full_name"], email=c["email"], user_type=UserType.CUSTOMER)
            session.add(m)
            customers.append(m)
        await session.flush()
        print(f"  Created {len(customers)} customers")

        # ── Drivers + locations ───────────────────────────────────────
        driver_repo = DriverRepository(session)
        driver_ids = []
        for d in DRIVERS:
            user = UserModel(full_name=d["full_name"], email=d["email"], user_type=UserType.DRIVER)
            session.add(user)
            await session.flush()
            session.add(
                DriverModel(
                    id=user.id,
                    vehicle_type="Sedan",
                    vehicle_model="Toyota Prius",
                    license_plate="123-D-456",
                    is_online=True,
                )
            )
            await session.flush()
            await driver_repo.upsert_location(user.id, GeoPoint(d["lat"], d["lng"]))
            driver_ids.append(user.id)
        print(f"  Created {len(DRIVERS)} online drivers")

        # ── Past rides ────────────────────────────────────────────────
        calculator = FareCalculator(
            volatility=FixedVolatility(0.0),
            base_rate_per_km=settings.base_rate_per_km,
            platform_fee=settings.platform_fee,
            minimum_fare=settings.minimum_fare,
        )
        noon = datetime(2026, 1, 15, 12, 0, tzinfo=ZoneInfo(settings.local_timezone))
        ride_repo = RideRepository(session)
        for idx, pickup, dropoff, tier, status in PAST_RIDES:
            pickup_pt, dropoff_pt = GeoPoint(*pickup), GeoPoint(*dropoff)
            quote = calculator.quote(pickup_pt, dropoff_pt, len(DRIVERS), 0, noon)
            ride = await ride_repo.create_ride(
                customer_id=customers[idx].id,
                pickup=pickup_pt,
                dropoff=dropoff_pt,
                quote=quote,
                vehicle_tier=tier,
                price=price_for_tier(quote, tier),
            )
            if status == RideStatus.COMPLETED:
                ride.driver_id = driver_ids[0]
            ride.status = status
        await session.flush()
        print(f"  Created {len(PAST_RIDES)} past rides")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
