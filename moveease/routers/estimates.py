from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from moveease.errors import NotFoundError
from moveease.models import User
from moveease.schemas import (
    MoveCalculationRequest,
    MoveCalculationResponse,
    MoveEstimateCreate,
    MoveEstimateRead,
    MoveEstimateSave,
)
from moveease.services.estimator import AvailabilityOracle, DistanceEstimator, estimate_cost
from moveease.storage import Storage
from moveease.utils import (
    get_availability,
    get_current_user,
    get_distance_estimator,
    get_storage,
    require_authenticated_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["estimates"])


@router.post("/calculate-moving-costs", response_model=MoveCalculationResponse)
async def calculate_moving_costs(
    payload: MoveCalculationRequest,
    user: Optional[User] = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    distance_estimator: DistanceEstimator = Depends(get_distance_estimator),
    availability: AvailabilityOracle = Depends(get_availability),
):
    result = estimate_cost(payload, distance_estimator, availability)
    estimate = await storage.create_estimate(
        MoveEstimateCreate(
            user_id=user.id if user else None,
            origin=payload.origin,
            destination=payload.destination,
            distance=result.distance,
            home_size=payload.home_size,
            additional_items=payload.additional_items,
            move_date=payload.move_date,
            flexibility=payload.flexibility,
            services=payload.services,
            cost_diy=result.costs.diy,
            cost_hybrid=result.costs.hybrid,
            cost_full_service=result.costs.full_service,
        )
    )
    logger.info("Estimate %s computed (%s miles, hybrid $%s)", estimate.id, result.distance, result.costs.hybrid)
    return result


@router.get("/moving-estimates", response_model=List[MoveEstimateRead])
async def list_moving_estimates(storage: Storage = Depends(get_storage)):
    return [MoveEstimateRead.model_validate(e) for e in await storage.list_estimates()]


@router.get("/my-estimates", response_model=List[MoveEstimateRead])
async def list_my_estimates(
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    return [MoveEstimateRead.model_validate(e) for e in await storage.list_user_estimates(user.id)]


@router.post("/save-estimate", response_model=MoveEstimateRead, status_code=status.HTTP_201_CREATED)
async def save_estimate(
    payload: MoveEstimateSave,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    estimate = await storage.create_estimate(MoveEstimateCreate(**payload.model_dump(), user_id=user.id))
    return MoveEstimateRead.model_validate(estimate)


@router.get("/estimates/{estimate_id}", response_model=MoveEstimateRead)
async def get_estimate(
    estimate_id: int,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    estimate = await storage.get_estimate(estimate_id)
    # someone else's estimate is reported as missing
    if estimate is None or estimate.user_id != user.id:
        raise NotFoundError("Estimate not found")
    return MoveEstimateRead.model_validate(estimate)
