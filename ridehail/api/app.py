"""
FastAPI application factory.

* Registers routes for quotes, rides, drivers and admin.
* Starts / stops the background dispatch worker via lifespan events.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from ridehail.api.middleware import limiter
from ridehail.api.routes import admin, drivers, quotes, rides
from ridehail.infrastructure.redis_client import close_redis
from ridehail.workers import dispatcher as _dispatcher

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the dispatch worker on startup; stop on shutdown."""
    await _dispatcher.start_dispatch_loop()
    yield
    await _dispatcher.stop_dispatch_loop()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride Hailing API",
        description=(
            "Quotes fares from distance, time of day and live supply / "
            "demand, books rides by vehicle tier, and assigns the nearest "
            "online driver."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(quotes.router, prefix="/api/v1")
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(drivers.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
