"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    SEARCHING = "SEARCHING"
    ACCEPTED = "ACCEPTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.SEARCHING: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {RideStatus.COMPLETED, RideStatus.CANCELLED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}


class VehicleTier(str, enum.Enum):
    """Closed set of vehicle tiers a customer can book."""

    BIKE = "bike"
    CAR = "car"
    TRUCK = "truck"

    @property
    def price_multiplier(self) -> float:
        return TIER_MULTIPLIERS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


TIER_MULTIPLIERS: dict[VehicleTier, float] = {
    VehicleTier.BIKE: 1.0,
    VehicleTier.CAR: 1.35,
    VehicleTier.TRUCK: 2.0,
}


class UserType(str, enum.Enum):
    CUSTOMER = "customer"
    DRIVER = "driver"
