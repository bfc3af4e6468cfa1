from fastapi import APIRouter, Depends

from moveease.models import User
from moveease.schemas import UserRead
from moveease.utils import require_authenticated_user

router = APIRouter(prefix="/api", tags=["users"])


@router.get("/user", response_model=UserRead)
async def current_user(user: User = Depends(require_authenticated_user)):
    return UserRead.model_validate(user, from_attributes=True)
