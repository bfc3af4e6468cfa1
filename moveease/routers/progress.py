from __future__ import annotations

from fastapi import APIRouter, Depends

from moveease.models import User
from moveease.schemas import (
    AchievementUnlockRequest,
    AchievementUnlockResponse,
    UserProgressPatch,
    UserProgressRead,
)
from moveease.services import progress as progress_service
from moveease.storage import Storage
from moveease.utils import get_storage, require_authenticated_user

router = APIRouter(prefix="/api", tags=["progress"])


@router.get("/user-progress", response_model=UserProgressRead)
async def get_user_progress(
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    progress = await progress_service.get_or_create_progress(storage, user.id)
    return UserProgressRead.model_validate(progress)


@router.patch("/user-progress", response_model=UserProgressRead)
async def patch_user_progress(
    payload: UserProgressPatch,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    progress = await progress_service.update_progress(storage, user.id, payload)
    return UserProgressRead.model_validate(progress)


@router.post("/user-progress/interaction", response_model=UserProgressRead)
async def record_user_interaction(
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    progress = await progress_service.record_interaction(storage, user.id)
    return UserProgressRead.model_validate(progress)


@router.post("/unlock-achievement", response_model=AchievementUnlockResponse)
async def unlock_achievement(
    payload: AchievementUnlockRequest,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    unlocked, progress = await progress_service.unlock_achievement(
        storage, user.id, payload.achievement_id, payload.points
    )
    return AchievementUnlockResponse(unlocked=unlocked, progress=UserProgressRead.model_validate(progress))
