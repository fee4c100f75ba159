"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  PostGIS geometry columns are replaced by
plain String columns in the mirror models below, and the repositories
are subclassed to point at those models and write WKT strings.
"""

from __future__ import annotations

from datetime import datetime
from typing import AsyncGenerator
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from ridehail.domain.ports import FixedClock
from ridehail.domain.pricing import FareCalculator, FixedVolatility
from ridehail.infrastructure.repositories import (
    DriverRepository,
    LiveCountsRepository,
    RideRepository,
    UserRepository,
)

# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

test_engine = create_async_engine(TEST_DB_URL, echo=False)
TestSessionFactory = async_sessionmaker(
    test_engine, class_=AsyncSession, expire_on_commit=False
)

# A weekday noon: outside both rush-hour windows
QUIET_NOON = datetime(2026, 3, 4, 12, 0)


class SqliteBase(DeclarativeBase):
    pass


# Mirror the production models but without PostGIS Geometry columns
# (SQLite doesn't support them).

class SqliteUserModel(SqliteBase):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    user_type = Column(String(20), default="customer", nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class SqliteDriverModel(SqliteBase):
    __tablename__ = "drivers"
    id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    vehicle_type = Column(String(40), nullable=True)
    vehicle_model = Column(String(80), nullable=True)
    license_plate = Column(String(20), nullable=True)
    is_online = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class SqliteDriverLocationModel(SqliteBase):
    __tablename__ = "driver_locations"
    driver_id = Column(Integer, ForeignKey("drivers.id"), primary_key=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    heading = Column(Float, default=0.0)
    location = Column(String, nullable=True)  # stub for Geometry
    updated_at = Column(DateTime, server_default=func.now())


class SqliteRideModel(SqliteBase):
    __tablename__ = "rides"
    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)
    pickup_point = Column(String, nullable=True)  # stub for Geometry
    dropoff_point = Column(String, nullable=True)  # stub for Geometry
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)
    status = Column(String(20), default="SEARCHING", nullable=False)
    vehicle_tier = Column(String(20), default="bike", nullable=False)
    price = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=False)
    surge_multiplier = Column(Float, nullable=False, default=1.0)
    idempotency_key = Column(String(64), unique=True, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now())


# ── SQLite-friendly repositories ──────────────────────────────────────


def _wkt(point) -> str:
    return f"POINT({point.longitude} {point.latitude})"


class SqliteRideRepository(RideRepository):
    model = SqliteRideModel
    _point = staticmethod(_wkt)


class SqliteDriverRepository(DriverRepository):
    model = SqliteDriverModel
    location_model = SqliteDriverLocationModel
    _point = staticmethod(_wkt)


class SqliteUserRepository(UserRepository):
    model = SqliteUserModel


class SqliteLiveCountsRepository(LiveCountsRepository):
    driver_repository = SqliteDriverRepository
    ride_repository = SqliteRideRepository


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield a session, then drop everything."""
    async with test_engine.begin() as conn:
        await conn.run_sync(SqliteBase.metadata.create_all)

    async with TestSessionFactory() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(SqliteBase.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory():
    return TestSessionFactory


@pytest.fixture
def add_driver():
    """Insert an online (by default) driver with a location; returns its id."""

    async def _add(session: AsyncSession, lat: float, lng: float, is_online: bool = True) -> int:
        user = SqliteUserModel(
            full_name="Driver", email=f"driver-{lat}-{lng}@example.com", user_type="driver"
        )
        session.add(user)
        await session.flush()
        session.add(SqliteDriverModel(id=user.id, is_online=is_online))
        session.add(
            SqliteDriverLocationModel(
                driver_id=user.id, latitude=lat, longitude=lng, location=f"POINT({lng} {lat})"
            )
        )
        await session.commit()
        return user.id

    return _add


@pytest_asyncio.fixture
async def client():
    """AsyncClient backed by SQLite + mirror models, with a customer (id 1)."""
    async with test_engine.begin() as conn:
        await conn.run_sync(SqliteBase.metadata.create_all)

    async with TestSessionFactory() as session:
        session.add(SqliteUserModel(full_name="Test Customer", email="customer@example.com"))
        await session.commit()

    with (
        patch("ridehail.workers.dispatcher.start_dispatch_loop", new_callable=AsyncMock),
        patch("ridehail.workers.dispatcher.stop_dispatch_loop", new_callable=AsyncMock),
        patch("ridehail.api.routes.rides.RideRepository", SqliteRideRepository),
        patch("ridehail.api.routes.rides.DriverRepository", SqliteDriverRepository),
        patch("ridehail.api.routes.rides.UserRepository", SqliteUserRepository),
        patch("ridehail.api.routes.drivers.RideRepository", SqliteRideRepository),
        patch("ridehail.api.routes.drivers.DriverRepository", SqliteDriverRepository),
        patch("ridehail.api.routes.quotes.LiveCountsRepository", SqliteLiveCountsRepository),
        patch("ridehail.api.routes.admin.LiveCountsRepository", SqliteLiveCountsRepository),
    ):
        async def _test_db():
            async with TestSessionFactory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        from ridehail.api.app import create_app
        from ridehail.api.dependencies import get_clock, get_db, get_fare_calculator

        app = create_app()
        app.dependency_overrides[get_db] = _test_db
        app.dependency_overrides[get_clock] = lambda: FixedClock(QUIET_NOON)
        app.dependency_overrides[get_fare_calculator] = lambda: FareCalculator(
            volatility=FixedVolatility(0.0)
        )

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    async with test_engine.begin() as conn:
        await conn.run_sync(SqliteBase.metadata.drop_all)
    await test_engine.dispose()
