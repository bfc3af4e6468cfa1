# moveease/services/estimator.py
"""Moving cost model: base cost by home size, per-mile surcharge, special items,
optional services, a reference breakdown and a pair of recommended movers.

Distance and mover availability are placeholders until a real geocoding /
inventory integration exists. They sit behind ``DistanceEstimator`` and
``AvailabilityOracle`` so tests (or a real integration) can swap them out
without touching the arithmetic below.
"""
from __future__ import annotations

import math
import random
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from ..schemas import (
    CompanyRecommendation,
    CostBreakdown,
    CostTiers,
    MoveCalculationRequest,
    MoveCalculationResponse,
)

TIERS = ("diy", "hybrid", "full_service")

# Base costs for different home sizes (USD)
BASE_COSTS: Dict[str, Dict[str, int]] = {
    "studio": {"diy": 150, "hybrid": 500, "full_service": 900},
    "1bedroom": {"diy": 200, "hybrid": 650, "full_service": 1200},
    "2bedroom": {"diy": 250, "hybrid": 800, "full_service": 1500},
    "3bedroom": {"diy": 300, "hybrid": 950, "full_service": 1800},
}

COST_PER_MILE: Dict[str, float] = {"diy": 0.5, "hybrid": 1.5, "full_service": 2.5}

ADDITIONAL_ITEM_COSTS: Dict[str, Dict[str, int]] = {
    "none": {"diy": 0, "hybrid": 0, "full_service": 0},
    "piano": {"diy": 100, "hybrid": 200, "full_service": 0},  # bundled with full service
    "artwork": {"diy": 50, "hybrid": 100, "full_service": 200},
    "gym": {"diy": 75, "hybrid": 150, "full_service": 250},
    "multiple": {"diy": 150, "hybrid": 300, "full_service": 400},
}

SERVICE_COSTS: Dict[str, Dict[str, int]] = {
    "packing": {"diy": 100, "hybrid": 200, "full_service": 0},  # bundled with full service
    "storage": {"diy": 150, "hybrid": 150, "full_service": 150},
    "cleaning": {"diy": 200, "hybrid": 200, "full_service": 200},
}

BREAKDOWN_SHARES: Dict[str, float] = {
    "transportation": 0.45,
    "labor": 0.30,
    "materials": 0.15,
    "other": 0.10,
}

MOVING_COMPANIES: List[Dict[str, object]] = [
    {"name": "FastMove Pros", "rating": 4.8, "description": "Local company with 15+ years experience"},
    {"name": "SmartBox Moving", "rating": 4.6, "description": "Container-based moving service"},
    {"name": "Premium Movers Inc.", "rating": 4.9, "description": "Full-service moving specialists"},
    {"name": "Budget Moving Co.", "rating": 4.4, "description": "Affordable moving solutions"},
]
RECOMMENDED_COMPANY_COUNT = 2


def round_dollars(value: float) -> int:
    """Round half up to a whole dollar (``round`` would round 252.5 down to 252)."""
    return int(math.floor(value + 0.5))


# ---------------------------
# Distance placeholder
# ---------------------------
class MoveScope(str, Enum):
    local = "local"
    in_state = "in_state"
    long_distance = "long_distance"


# [low, high) miles per scope
DISTANCE_RANGES: Dict[MoveScope, Tuple[int, int]] = {
    MoveScope.local: (5, 25),
    MoveScope.in_state: (25, 200),
    MoveScope.long_distance: (200, 3000),
}


def _address_parts(address: str) -> List[str]:
    return [p.strip() for p in (address or "").lower().split(",") if p.strip()]


def classify_move(origin: str, destination: str) -> MoveScope:
    """Bucket a move by shared locality, then shared trailing (state) token."""
    origin_parts = _address_parts(origin)
    dest_parts = _address_parts(destination)

    if set(origin_parts) & set(dest_parts):
        return MoveScope.local

    origin_state = origin_parts[-1] if len(origin_parts) > 1 else ""
    dest_state = dest_parts[-1] if len(dest_parts) > 1 else ""
    if origin_state and origin_state == dest_state:
        return MoveScope.in_state
    return MoveScope.long_distance


class DistanceEstimator(Protocol):
    def estimate(self, origin: str, destination: str) -> int: ...


class RandomDistanceEstimator:
    """Random mileage inside the range of the move's scope."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def estimate(self, origin: str, destination: str) -> int:
        low, high = DISTANCE_RANGES[classify_move(origin, destination)]
        return self._rng.randrange(low, high)


# ---------------------------
# Availability placeholder
# ---------------------------
class AvailabilityOracle(Protocol):
    def is_available(self, company_name: str) -> bool: ...


class RandomAvailabilityOracle:
    def __init__(self, probability: float = 0.7, rng: Optional[random.Random] = None):
        self.probability = probability
        self._rng = rng or random.Random()

    def is_available(self, company_name: str) -> bool:
        return self._rng.random() < self.probability


# ---------------------------
# Cost arithmetic
# ---------------------------
def tier_costs(home_size: str, distance: int, additional_items: str = "none", services=()) -> Dict[str, int]:
    """Per-tier totals: base + mileage (rounded per tier), then item and service surcharges."""
    base = BASE_COSTS[home_size]
    extras = ADDITIONAL_ITEM_COSTS[additional_items]
    totals = {}
    for tier in TIERS:
        total = round_dollars(base[tier] + distance * COST_PER_MILE[tier])
        total += extras[tier]
        total += sum(SERVICE_COSTS[service][tier] for service in dict.fromkeys(services))
        totals[tier] = total
    return totals


def cost_breakdown(hybrid_total: int) -> CostBreakdown:
    # shares of the hybrid tier; rounding drift against the total is expected
    return CostBreakdown(**{part: round_dollars(hybrid_total * share) for part, share in BREAKDOWN_SHARES.items()})


def recommend_companies(availability: AvailabilityOracle) -> List[CompanyRecommendation]:
    companies = [
        CompanyRecommendation(available=availability.is_available(str(c["name"])), **c)
        for c in MOVING_COMPANIES
    ]
    # catalog order, not sorted by availability
    return companies[:RECOMMENDED_COMPANY_COUNT]


def estimate_cost(
    request: MoveCalculationRequest,
    distance_estimator: DistanceEstimator,
    availability: AvailabilityOracle,
) -> MoveCalculationResponse:
    distance = distance_estimator.estimate(request.origin, request.destination)
    totals = tier_costs(request.home_size, distance, request.additional_items, request.services)
    return MoveCalculationResponse(
        distance=distance,
        origin=request.origin,
        destination=request.destination,
        home_size=request.home_size,
        move_date=request.move_date,
        costs=CostTiers(**totals),
        breakdown=cost_breakdown(totals["hybrid"]),
        companies=recommend_companies(availability),
    )
