"""FastAPI dependency injection helpers."""

from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.config import settings
from ridehail.domain.ports import Clock, SystemClock
from ridehail.domain.pricing import FareCalculator, RandomVolatility
from ridehail.infrastructure.database import async_session_factory


async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async DB session; commit on success, rollback on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_clock() -> Clock:
    return SystemClock(settings.local_timezone)


def get_fare_calculator() -> FareCalculator:
    """A fresh calculator (and volatility generator) per request."""
    return FareCalculator(
        volatility=RandomVolatility(ceiling=settings.max_volatility),
        base_rate_per_km=settings.base_rate_per_km,
        platform_fee=settings.platform_fee,
        minimum_fare=settings.minimum_fare,
        rush_surcharge=settings.rush_surcharge,
        rush_windows=settings.rush_hour_windows,
    )
