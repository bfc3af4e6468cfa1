import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi_users import FastAPIUsers, exceptions
from fastapi_users.authentication import AuthenticationBackend, CookieTransport, JWTStrategy
from fastapi_users.db import BaseUserDatabase
from fastapi_users.manager import BaseUserManager, IntegerIDMixin

from .models import User
from .schemas import StoredUserCreate, StoredUserUpdate, UserCreate
from .settings.config import settings
from .storage import Storage, get_storage


logger = logging.getLogger(__name__)


SECRET = (settings.SECRET or "").strip()
if not SECRET or SECRET == "CHANGE_ME_SECRET":
    raise RuntimeError(
        "SECRET environment variable must be set to a strong value; the default placeholder is not allowed."
    )


# -------------------------
# User Database over Storage
# -------------------------
class StorageUserDatabase(BaseUserDatabase[User, int]):
    """fastapi-users user table backed by whichever Storage the app runs on."""

    def __init__(self, storage: Storage):
        self.storage = storage

    async def get(self, id: int) -> Optional[User]:
        return await self.storage.get_user(id)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self.storage.get_user_by_email(email)

    async def create(self, create_dict: Dict[str, Any]) -> User:
        return await self.storage.create_user(StoredUserCreate(**create_dict))

    async def update(self, user: User, update_dict: Dict[str, Any]) -> User:
        # only the credential and account flags are mutable
        allowed = {k: v for k, v in update_dict.items() if k in StoredUserUpdate.model_fields}
        updated = await self.storage.update_user(user.id, StoredUserUpdate(**allowed))
        return updated or user

    async def delete(self, user: User) -> None:
        raise NotImplementedError("Users are never deleted")


async def get_user_db(storage: Storage = Depends(get_storage)):
    yield StorageUserDatabase(storage)


# -------------------------
# User Manager
# -------------------------
class UserManager(IntegerIDMixin, BaseUserManager[User, int]):
    reset_password_token_secret = SECRET
    verification_token_secret = SECRET

    async def create(self, user_create: UserCreate, safe: bool = False, request: Optional[Request] = None) -> User:
        # email uniqueness is checked by the base class
        if await self.user_db.storage.get_user_by_username(user_create.username) is not None:
            raise exceptions.UserAlreadyExists()
        return await super().create(user_create, safe, request)

    async def on_after_register(self, user: User, request: Optional[Request] = None):
        logger.info("User %s registered as %s", user.id, user.username)


async def get_user_manager(user_db=Depends(get_user_db)):
    yield UserManager(user_db)


# -------------------------
# Authentication Backend
# -------------------------
cookie_transport = CookieTransport(
    cookie_name="session",
    cookie_max_age=settings.AUTH_TOKEN_LIFETIME_SECONDS,
    cookie_secure=settings.COOKIE_SECURE,
    cookie_httponly=True,
)


def get_jwt_strategy() -> JWTStrategy:
    return JWTStrategy(secret=SECRET, lifetime_seconds=settings.AUTH_TOKEN_LIFETIME_SECONDS)


auth_backend = AuthenticationBackend(
    name="jwt",
    transport=cookie_transport,
    get_strategy=get_jwt_strategy,
)

# -------------------------
# FastAPI Users instance
# -------------------------
fastapi_users = FastAPIUsers[User, int](
    get_user_manager,
    [auth_backend],
)

current_optional_user = fastapi_users.current_user(active=True, optional=True)
