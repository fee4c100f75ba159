"""
Admin / observability endpoints
===============================

GET /api/v1/admin/stats  -- live supply / demand counts used for surge
GET /api/v1/admin/health -- simple health check
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db
from ridehail.api.middleware import DEFAULT_RATE, limiter
from ridehail.api.schemas import HealthResponse, StatsResponse
from ridehail.infrastructure.repositories import LiveCountsRepository

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/stats",
    response_model=StatsResponse,
    summary="Online drivers and searching rides",
)
@limiter.limit(DEFAULT_RATE)
async def get_stats(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    online_drivers, searching_rides = await LiveCountsRepository(db).get_counts()
    return StatsResponse(online_drivers=online_drivers, searching_rides=searching_rides)


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
