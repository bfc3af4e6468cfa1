"""
Tests for the moving cost model: tier arithmetic, rounding, breakdown shares,
move classification and company recommendations.
"""

import random

import pytest

from moveease.schemas import MoveCalculationRequest
from moveease.services.estimator import (
    BASE_COSTS,
    DISTANCE_RANGES,
    MoveScope,
    RandomAvailabilityOracle,
    RandomDistanceEstimator,
    classify_move,
    cost_breakdown,
    estimate_cost,
    recommend_companies,
    round_dollars,
    tier_costs,
)


class FixedDistance:
    def __init__(self, miles: int):
        self.miles = miles

    def estimate(self, origin: str, destination: str) -> int:
        return self.miles


class Availability:
    def __init__(self, answer: bool):
        self.answer = answer
        self.asked = []

    def is_available(self, company_name: str) -> bool:
        self.asked.append(company_name)
        return self.answer


class TestTierCosts:
    @pytest.mark.parametrize("home_size", sorted(BASE_COSTS))
    def test_tiers_are_ordered_at_zero_distance(self, home_size):
        costs = tier_costs(home_size, 0)
        assert costs["diy"] < costs["hybrid"] < costs["full_service"]

    def test_distance_surcharge_per_tier(self):
        assert tier_costs("2bedroom", 10) == {"diy": 255, "hybrid": 815, "full_service": 1525}

    def test_half_dollar_rounds_up(self):
        # 250 + 5 * 0.5 = 252.5
        assert tier_costs("2bedroom", 5)["diy"] == 253
        assert round_dollars(252.5) == 253
        assert round_dollars(252.49) == 252

    def test_items_and_services_stack(self):
        costs = tier_costs("2bedroom", 0, "piano", ["packing", "cleaning"])
        assert costs == {"diy": 650, "hybrid": 1400, "full_service": 1700}

    def test_packing_is_free_for_full_service(self):
        plain = tier_costs("studio", 0)
        packed = tier_costs("studio", 0, services=["packing"])
        assert packed["full_service"] == plain["full_service"]
        assert packed["diy"] == plain["diy"] + 100
        assert packed["hybrid"] == plain["hybrid"] + 200

    def test_piano_is_free_for_full_service(self):
        plain = tier_costs("2bedroom", 0)
        with_piano = tier_costs("2bedroom", 0, "piano")
        assert with_piano["full_service"] == plain["full_service"]
        assert with_piano["diy"] == plain["diy"] + 100
        assert with_piano["hybrid"] == plain["hybrid"] + 200

    def test_repeated_service_is_charged_once(self):
        assert tier_costs("studio", 0, services=["storage", "storage"]) == tier_costs(
            "studio", 0, services=["storage"]
        )


class TestBreakdown:
    def test_round_total(self):
        breakdown = cost_breakdown(1000)
        assert (breakdown.transportation, breakdown.labor, breakdown.materials, breakdown.other) == (
            450,
            300,
            150,
            100,
        )

    @pytest.mark.parametrize("hybrid", [0, 515, 815, 1333, 4999])
    def test_parts_stay_near_total(self, hybrid):
        b = cost_breakdown(hybrid)
        parts = [b.transportation, b.labor, b.materials, b.other]
        assert all(0 <= p <= hybrid for p in parts)
        assert abs(sum(parts) - hybrid) <= 4


class TestClassifyMove:
    def test_shared_city_is_local(self):
        assert classify_move("123 Main St, New York, NY", "456 Oak Ave, New York, NY") is MoveScope.local

    def test_shared_state_token_counts_as_shared_locality(self):
        assert classify_move("1 A St, Austin, TX", "2 B St, Dallas, TX") is MoveScope.local

    def test_no_overlap_is_long_distance(self):
        assert classify_move("1 A St, Boston, MA", "2 B St, Seattle, WA") is MoveScope.long_distance

    def test_case_and_whitespace_are_ignored(self):
        assert classify_move("1 A St,  BOSTON , MA", "9 Z Rd, boston,ma") is MoveScope.local

    def test_empty_parts_do_not_match(self):
        assert classify_move("Somewhere far,", "Elsewhere entirely,") is MoveScope.long_distance

    def test_single_part_addresses_have_no_state(self):
        assert classify_move("Springfield", "Shelbyville") is MoveScope.long_distance


class TestRandomPlaceholders:
    def test_local_distance_range(self):
        estimator = RandomDistanceEstimator(random.Random(7))
        for _ in range(200):
            miles = estimator.estimate("1 Main St, Chicago, IL", "9 Elm St, Chicago, IL")
            assert 5 <= miles < 25

    def test_long_distance_range(self):
        estimator = RandomDistanceEstimator(random.Random(11))
        low, high = DISTANCE_RANGES[MoveScope.long_distance]
        for _ in range(200):
            assert low <= estimator.estimate("Boston, MA", "Seattle, WA") < high

    def test_seeded_estimator_is_reproducible(self):
        a = RandomDistanceEstimator(random.Random(3))
        b = RandomDistanceEstimator(random.Random(3))
        assert [a.estimate("X, MA", "Y, WA") for _ in range(5)] == [b.estimate("X, MA", "Y, WA") for _ in range(5)]

    def test_availability_probability_extremes(self):
        assert RandomAvailabilityOracle(probability=1.0).is_available("FastMove Pros")
        assert not RandomAvailabilityOracle(probability=0.0).is_available("FastMove Pros")


class TestRecommendations:
    def test_first_two_in_catalog_order(self):
        oracle = Availability(False)
        companies = recommend_companies(oracle)
        assert [c.name for c in companies] == ["FastMove Pros", "SmartBox Moving"]
        assert all(c.available is False for c in companies)


class TestEstimateCost:
    def test_same_city_example(self):
        request = MoveCalculationRequest(
            origin="123 Main St, New York, NY",
            destination="456 Oak Ave, New York, NY",
            homeSize="2bedroom",
            additionalItems="none",
            moveDate="2025-06-01",
            flexibility="exact",
            services=[],
        )
        result = estimate_cost(request, RandomDistanceEstimator(random.Random(1)), Availability(True))

        assert 5 <= result.distance < 25
        assert result.costs.diy == round_dollars(250 + result.distance * 0.5)
        assert result.costs.hybrid == round_dollars(800 + result.distance * 1.5)
        assert result.costs.full_service == round_dollars(1500 + result.distance * 2.5)
        b = result.breakdown
        assert abs(b.transportation + b.labor + b.materials + b.other - result.costs.hybrid) <= 4
        assert len(result.companies) == 2

    def test_response_echoes_request_and_uses_camel_case(self):
        request = MoveCalculationRequest(
            origin="1 A St, Boston, MA",
            destination="2 B St, Seattle, WA",
            home_size="studio",
            move_date="2025-09-01",
        )
        payload = estimate_cost(request, FixedDistance(1000), Availability(True)).model_dump(by_alias=True)

        assert payload["distance"] == 1000
        assert payload["homeSize"] == "studio"
        assert payload["moveDate"] == "2025-09-01"
        assert payload["costs"] == {"diy": 650, "hybrid": 2000, "fullService": 3400}
