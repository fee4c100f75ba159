"""Initial schema with PostGIS extension: users, drivers, locations, rides.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("full_name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column(
            "user_type",
            sa.Enum("CUSTOMER", "DRIVER", name="usertype"),
            nullable=False,
            server_default="CUSTOMER",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── drivers ───────────────────────────────────────────────────────
    op.create_table(
        "drivers",
        sa.Column(
            "id", sa.Integer, sa.ForeignKey("users.id"), primary_key=True
        ),
        sa.Column("vehicle_type", sa.String(40), nullable=True),
        sa.Column("vehicle_model", sa.String(80), nullable=True),
        sa.Column("license_plate", sa.String(20), nullable=True),
        sa.Column(
            "is_online", sa.Boolean, nullable=False, server_default=sa.false()
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_drivers_online", "drivers", ["is_online"])

    # ── driver_locations ──────────────────────────────────────────────
    op.create_table(
        "driver_locations",
        sa.Column(
            "driver_id",
            sa.Integer,
            sa.ForeignKey("drivers.id"),
            primary_key=True,
        ),
        sa.Column("latitude", sa.Float, nullable=False),
        sa.Column("longitude", sa.Float, nullable=False),
        sa.Column("heading", sa.Float, server_default="0"),
        sa.Column("location", Geometry("POINT", srid=4326), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_driver_locations_point",
        "driver_locations",
        ["location"],
        postgresql_using="gist",
    )

    # ── rides ─────────────────────────────────────────────────────────
    op.create_table(
        "rides",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "customer_id", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "driver_id", sa.Integer, sa.ForeignKey("drivers.id"), nullable=True
        ),
        sa.Column(
            "pickup_point", Geometry("POINT", srid=4326), nullable=False
        ),
        sa.Column(
            "dropoff_point", Geometry("POINT", srid=4326), nullable=False
        ),
        sa.Column("pickup_lat", sa.Float, nullable=False),
        sa.Column("pickup_lng", sa.Float, nullable=False),
        sa.Column("dropoff_lat", sa.Float, nullable=False),
        sa.Column("dropoff_lng", sa.Float, nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "SEARCHING",
                "ACCEPTED",
                "COMPLETED",
                "CANCELLED",
                name="ridestatus",
            ),
            nullable=False,
            server_default="SEARCHING",
        ),
        sa.Column(
            "vehicle_tier",
            sa.Enum("BIKE", "CAR", "TRUCK", name="vehicletier"),
            nullable=False,
            server_default="BIKE",
        ),
        sa.Column("price", sa.Float, nullable=False),
        sa.Column("distance_km", sa.Float, nullable=False),
        sa.Column(
            "surge_multiplier", sa.Float, nullable=False, server_default="1.0"
        ),
        sa.Column("idempotency_key", sa.String(64), unique=True, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_rides_pickup", "rides", ["pickup_point"], postgresql_using="gist"
    )
    op.create_index(
        "idx_rides_dropoff", "rides", ["dropoff_point"], postgresql_using="gist"
    )
    op.create_index("idx_rides_status", "rides", ["status"])
    op.create_index("idx_rides_customer", "rides", ["customer_id"])
    op.create_index("idx_rides_driver", "rides", ["driver_id"])
    op.create_index("idx_rides_idempotency", "rides", ["idempotency_key"])


def downgrade() -> None:
    op.drop_table("rides")
    op.drop_table("driver_locations")
    op.drop_table("drivers")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS ridestatus")
    op.execute("DROP TYPE IF EXISTS vehicletier")
    op.execute("DROP TYPE IF EXISTS usertype")
