"""
Driver endpoints
================

GET   /api/v1/drivers/available-rides      -- SEARCHING rides, newest first
PATCH /api/v1/drivers/{driver_id}/status   -- go online / offline
PUT   /api/v1/drivers/{driver_id}/location -- publish last known position
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ridehail.api.dependencies import get_db
from ridehail.api.middleware import DEFAULT_RATE, limiter
from ridehail.api.schemas import (
    DriverLocationRequest,
    DriverLocationResponse,
    DriverResponse,
    DriverStatusRequest,
    ErrorResponse,
    RideResponse,
)
from ridehail.infrastructure.repositories import DriverRepository, RideRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/drivers", tags=["drivers"])


async def _get_driver_or_404(repo: DriverRepository, driver_id: int):
    driver = await repo.get_by_id(driver_id)
    if not driver:
        raise HTTPException(status_code=404, detail="Driver not found")
    return driver


@router.get(
    "/available-rides",
    response_model=list[RideResponse],
    summary="Rides still searching for a driver",
)
@limiter.limit(DEFAULT_RATE)
async def available_rides(
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    return await RideRepository(db).get_searching_rides(newest_first=True)


@router.patch(
    "/{driver_id}/status",
    response_model=DriverResponse,
    summary="Set a driver online or offline",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_RATE)
async def set_status(
    request: Request,
    driver_id: int,
    body: DriverStatusRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = DriverRepository(db)
    driver = await _get_driver_or_404(repo, driver_id)
    driver = await repo.set_online(driver, body.is_online)
    logger.info("Driver %s is %s", driver_id, "online" if body.is_online else "offline")
    return driver


@router.put(
    "/{driver_id}/location",
    response_model=DriverLocationResponse,
    summary="Update a driver's location",
    responses={404: {"model": ErrorResponse}},
)
@limiter.limit(DEFAULT_RATE)
async def update_location(
    request: Request,
    driver_id: int,
    body: DriverLocationRequest,
    db: AsyncSession = Depends(get_db),
):
    repo = DriverRepository(db)
    await _get_driver_or_404(repo, driver_id)
    return await repo.upsert_location(driver_id, body.to_point(), body.heading)
