from typing import Optional

from fastapi import Depends, Request

from .errors import NotAuthenticatedError
from .models import User
from .services.estimator import AvailabilityOracle, DistanceEstimator
from .storage import get_storage  # noqa: F401  re-exported for routers
from .users import current_optional_user


async def get_current_user(user: Optional[User] = Depends(current_optional_user)) -> Optional[User]:
    return user


async def require_authenticated_user(user: Optional[User] = Depends(current_optional_user)) -> User:
    if not user:
        raise NotAuthenticatedError("Not authenticated")
    return user


def get_distance_estimator(request: Request) -> DistanceEstimator:
    return request.app.state.distance_estimator


def get_availability(request: Request) -> AvailabilityOracle:
    return request.app.state.availability
