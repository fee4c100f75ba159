"""Unit tests for the fare calculator."""

import random
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from ridehail.domain.distance import distance_km
from ridehail.domain.entities import FareQuote, GeoPoint
from ridehail.domain.enums import VehicleTier
from ridehail.domain.ports import FixedClock, SystemClock
from ridehail.domain.pricing import (
    FareCalculator,
    FixedVolatility,
    InvalidQuote,
    RandomVolatility,
    demand_surcharge,
    is_rush_hour,
    price_for_tier,
)

ORIGIN = GeoPoint(0.0, 0.0)
ONE_DEGREE_EAST = GeoPoint(0.0, 1.0)  # ~111.19 km
NOON = datetime(2026, 3, 4, 12, 0)
EIGHT_AM = datetime(2026, 3, 4, 8, 0)


def at_hour(hour: int) -> datetime:
    return datetime(2026, 3, 4, hour, 30)


class TestSurgeComponents:
    @pytest.mark.parametrize("hour", [7, 8, 9, 17, 18, 19])
    def test_rush_hours(self, hour):
        assert is_rush_hour(at_hour(hour))

    @pytest.mark.parametrize("hour", [0, 6, 10, 12, 16, 20, 23])
    def test_quiet_hours(self, hour):
        assert not is_rush_hour(at_hour(hour))

    def test_rush_hour_uses_local_wall_clock(self):
        # 06:30 UTC in July is 07:30 in Dublin (IST)
        utc = datetime(2026, 7, 1, 6, 30, tzinfo=timezone.utc)
        assert not is_rush_hour(utc)
        assert is_rush_hour(utc.astimezone(ZoneInfo("Europe/Dublin")))

    @pytest.mark.parametrize(
        "drivers, requests, expected",
        [
            (2, 5, 0.3),  # ratio 2.5
            (4, 5, 0.1),  # ratio 1.25
            (4, 6, 0.1),  # ratio 1.5 is not > 1.5
            (5, 6, 0.0),  # ratio 1.2 is not > 1.2
            (0, 3, 0.5),  # nobody online
            (10, 5, 0.0),  # supply exceeds demand
            (5, 5, 0.0),
            (0, 0, 0.0),
        ],
    )
    def test_demand_surcharge(self, drivers, requests, expected):
        assert demand_surcharge(drivers, requests) == expected


class TestVolatility:
    def test_fixed(self):
        assert FixedVolatility(0.07).draw() == 0.07

    def test_random_stays_in_range(self):
        vol = RandomVolatility(rng=random.Random(1))
        draws = [vol.draw() for _ in range(1000)]
        assert all(0.0 <= d < 0.2 for d in draws)

    def test_seeded_sources_agree(self):
        a = RandomVolatility(rng=random.Random(42))
        b = RandomVolatility(rng=random.Random(42))
        assert [a.draw() for _ in range(5)] == [b.draw() for _ in range(5)]


class TestFareCalculator:
    def setup_method(self):
        self.calc = FareCalculator(volatility=FixedVolatility(0.0))

    def test_no_surge_baseline(self):
        quote = self.calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, NOON)
        distance = distance_km(ORIGIN, ONE_DEGREE_EAST)

        assert quote.surge_multiplier == 1.0
        assert quote.distance_km == round(distance, 2)
        assert quote.price == round(distance * 0.6 + 0.99, 2)
        assert quote.price == 67.71

    def test_rush_hour_adds_twenty_percent(self):
        quote = self.calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, EIGHT_AM)
        assert quote.surge_multiplier == 1.2

    def test_rush_hour_and_high_demand_stack(self):
        quote = self.calc.quote(ORIGIN, ONE_DEGREE_EAST, 2, 5, EIGHT_AM)
        assert quote.surge_multiplier == 1.5
        assert quote.price == 101.07

    @pytest.mark.parametrize(
        "drivers, requests, surge",
        [(2, 5, 1.3), (4, 5, 1.1), (0, 3, 1.5)],
    )
    def test_demand_adjustments(self, drivers, requests, surge):
        quote = self.calc.quote(ORIGIN, ONE_DEGREE_EAST, drivers, requests, NOON)
        assert quote.surge_multiplier == surge

    def test_volatility_is_added_to_surge(self):
        calc = FareCalculator(volatility=FixedVolatility(0.15))
        quote = calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, NOON)
        assert quote.surge_multiplier == 1.15

    def test_minimum_fare(self):
        # ~1.43 km -> raw price ~1.85
        quote = self.calc.quote(GeoPoint(53.3498, -6.2603), GeoPoint(53.3599, -6.2470), 10, 5, NOON)
        assert quote.price == 5.00
        assert 1.4 < quote.distance_km < 1.6

    def test_minimum_fare_leaves_surge_alone(self):
        quote = self.calc.quote(ORIGIN, ORIGIN, 0, 3, EIGHT_AM)
        assert quote.price == 5.00
        assert quote.distance_km == 0.0
        assert quote.surge_multiplier == 1.7

    def test_same_inputs_same_quote(self):
        a = FareCalculator(volatility=RandomVolatility(rng=random.Random(7)))
        b = FareCalculator(volatility=RandomVolatility(rng=random.Random(7)))
        args = (ORIGIN, ONE_DEGREE_EAST, 3, 5, NOON)
        assert a.quote(*args) == b.quote(*args)

    def test_custom_rates(self):
        calc = FareCalculator(
            volatility=FixedVolatility(0.0),
            base_rate_per_km=1.0,
            platform_fee=0.0,
            minimum_fare=0.0,
        )
        quote = calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, NOON)
        assert quote.price == 111.19

    def test_clock_supplies_now(self):
        clock = FixedClock(EIGHT_AM)
        quote = self.calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, clock.now())
        assert quote.surge_multiplier == 1.2

    def test_system_clock_is_zone_aware(self):
        now = SystemClock("Europe/Dublin").now()
        assert now.tzinfo is not None


class TestVehicleTier:
    quote = FareQuote(price=10.0, distance_km=5.0, surge_multiplier=1.0)

    def test_multipliers(self):
        assert VehicleTier.BIKE.price_multiplier == 1.0
        assert VehicleTier.CAR.price_multiplier == 1.35
        assert VehicleTier.TRUCK.price_multiplier == 2.0

    def test_tier_prices(self):
        assert price_for_tier(self.quote, VehicleTier.BIKE) == 10.0
        assert price_for_tier(self.quote, VehicleTier.CAR) == 13.5
        assert price_for_tier(self.quote, VehicleTier.TRUCK) == 20.0

    def test_tier_price_is_rounded(self):
        quote = FareQuote(price=7.01, distance_km=3.0, surge_multiplier=1.0)
        assert price_for_tier(quote, VehicleTier.CAR) == 9.46

    def test_closed_set(self):
        assert [t.value for t in VehicleTier] == ["bike", "car", "truck"]
        assert VehicleTier.TRUCK.label == "Truck"


class TestRushConfiguration:
    def test_custom_windows(self):
        calc = FareCalculator(volatility=FixedVolatility(0.0), rush_windows=((12, 13),))
        assert calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, NOON).surge_multiplier == 1.2
        assert calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, EIGHT_AM).surge_multiplier == 1.0

    def test_custom_surcharge(self):
        calc = FareCalculator(volatility=FixedVolatility(0.0), rush_surcharge=0.4)
        assert calc.quote(ORIGIN, ONE_DEGREE_EAST, 10, 5, EIGHT_AM).surge_multiplier == 1.4

    def test_service_calculator_reads_settings(self, monkeypatch):
        from ridehail.api import dependencies

        monkeypatch.setattr(dependencies.settings, "rush_hour_windows", [(6, 6)])
        monkeypatch.setattr(dependencies.settings, "rush_surcharge", 0.25)
        calc = dependencies.get_fare_calculator()

        assert calc.rush_windows == ((6, 6),)
        assert calc.rush_surcharge == 0.25


class TestCheckQuote:
    def setup_method(self):
        self.calc = FareCalculator(volatility=FixedVolatility(0.0))

    def test_max_surge(self):
        assert self.calc.max_surge == 1.7
        assert FareCalculator(volatility=RandomVolatility()).max_surge == 1.9

    @pytest.mark.parametrize(
        "drivers, requests, now",
        [(10, 5, NOON), (2, 5, EIGHT_AM), (0, 3, EIGHT_AM)],
    )
    def test_issued_quotes_pass(self, drivers, requests, now):
        quote = self.calc.quote(ORIGIN, ONE_DEGREE_EAST, drivers, requests, now)
        assert self.calc.check_quote(quote, ORIGIN, ONE_DEGREE_EAST) is quote

    def test_random_volatility_quotes_pass(self):
        calc = FareCalculator(volatility=RandomVolatility(rng=random.Random(3)))
        for _ in range(50):
            quote = calc.quote(ORIGIN, ONE_DEGREE_EAST, 0, 3, EIGHT_AM)
            calc.check_quote(quote, ORIGIN, ONE_DEGREE_EAST)

    def test_minimum_fare_quote_passes(self):
        quote = self.calc.quote(ORIGIN, ORIGIN, 10, 5, NOON)
        assert self.calc.check_quote(quote, ORIGIN, ORIGIN) is quote

    @pytest.mark.parametrize(
        "quote, message",
        [
            (FareQuote(price=0.01, distance_km=0.0, surge_multiplier=1.0), "distance"),
            (FareQuote(price=67.71, distance_km=111.0, surge_multiplier=1.0), "distance"),
            (FareQuote(price=67.71, distance_km=111.19, surge_multiplier=0.9), "Surge"),
            (FareQuote(price=67.71, distance_km=111.19, surge_multiplier=1.71), "Surge"),
            (FareQuote(price=60.00, distance_km=111.19, surge_multiplier=1.0), "does not match"),
        ],
    )
    def test_mismatched_quotes_fail(self, quote, message):
        with pytest.raises(InvalidQuote, match=message):
            self.calc.check_quote(quote, ORIGIN, ONE_DEGREE_EAST)

    def test_price_below_minimum_fails(self):
        quote = FareQuote(price=4.99, distance_km=0.0, surge_multiplier=1.0)
        with pytest.raises(InvalidQuote, match="minimum fare"):
            self.calc.check_quote(quote, ORIGIN, ORIGIN)
