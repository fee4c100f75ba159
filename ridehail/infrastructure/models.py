"""
SQLAlchemy ORM models  (maps to PostgreSQL + PostGIS).

Tables
------
* ``users``             -- customers and drivers (``user_type``)
* ``drivers``           -- vehicle details and the online flag
* ``driver_locations``  -- last known position, one row per driver
* ``rides``             -- ride requests with the quoted fare

Indexes
-------
* **GIST** on geometry columns (``driver_locations.location``,
  ``rides.pickup_point``, ``rides.dropoff_point``).
* **B-Tree** on ``drivers.is_online`` and ``rides.status`` (both feed the
  live supply / demand counts), plus ``customer_id``, ``driver_id`` and
  ``idempotency_key`` on rides.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from geoalchemy2 import Geometry

from .database import Base
from ridehail.domain.enums import RideStatus, UserType, VehicleTier


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    user_type = Column(Enum(UserType), default=UserType.CUSTOMER, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DriverModel(Base):
    __tablename__ = "drivers"

    # A driver *is* a user; share the key
    id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    vehicle_type = Column(String(40), nullable=True)
    vehicle_model = Column(String(80), nullable=True)
    license_plate = Column(String(20), nullable=True)
    is_online = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_drivers_online", "is_online"),)


class DriverLocationModel(Base):
    __tablename__ = "driver_locations"

    driver_id = Column(Integer, ForeignKey("drivers.id"), primary_key=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    heading = Column(Float, default=0.0)
    location = Column(Geometry("POINT", srid=4326), nullable=True)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_driver_locations_point", "location", postgresql_using="gist"),
    )


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    # Stored as PostGIS geometry for spatial indexing
    pickup_point = Column(Geometry("POINT", srid=4326), nullable=False)
    dropoff_point = Column(Geometry("POINT", srid=4326), nullable=False)

    # Also stored as plain floats for fast reads (avoids ST_X / ST_Y)
    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)

    status = Column(Enum(RideStatus), default=RideStatus.SEARCHING, nullable=False)
    vehicle_tier = Column(Enum(VehicleTier), default=VehicleTier.BIKE, nullable=False)
    price = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=False)
    surge_multiplier = Column(Float, nullable=False, default=1.0)
    idempotency_key = Column(String(64), unique=True, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("idx_rides_pickup", "pickup_point", postgresql_using="gist"),
        Index("idx_rides_dropoff", "dropoff_point", postgresql_using="gist"),
        Index("idx_rides_status", "status"),
        Index("idx_rides_customer", "customer_id"),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_idempotency", "idempotency_key"),
    )
