from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..errors import NotFoundError, ValidationError
from ..models import ChecklistItem, MoveChecklist, MoveEstimate, User, UserProgress
from ..schemas import (
    ChecklistItemCreate,
    MoveChecklistCreate,
    MoveEstimateCreate,
    StoredUserCreate,
    StoredUserUpdate,
    UserProgressCreate,
    UserProgressUpdate,
)
from .base import ItemGenerator, LevelRule, item_rows_for, now_utc, patch_values

logger = logging.getLogger(__name__)


def progress_for_update(user_id: int):
    # row lock so concurrent unlocks cannot both award the points; SQLite ignores it
    return select(UserProgress).where(UserProgress.user_id == user_id).with_for_update()


class DatabaseStorage:
    """Durable storage: every call is one session, and one transaction when it writes."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], engine: Optional[AsyncEngine] = None):
        self._sessions = session_maker
        self._engine = engine

    @property
    def engine(self) -> Optional[AsyncEngine]:
        return self._engine

    # ---------------------------
    # USERS
    # ---------------------------
    async def create_user(self, data: StoredUserCreate) -> User:
        if await self.get_user_by_email(data.email):
            raise ValidationError.for_field("email", "Email already registered")
        if await self.get_user_by_username(data.username):
            raise ValidationError.for_field("username", "Username already taken")
        async with self._sessions() as db:
            user = User(**data.model_dump())
            db.add(user)
            try:
                await db.commit()
            except IntegrityError:
                # lost a race with a concurrent registration
                await db.rollback()
                raise ValidationError(
                    [
                        {"field": "email", "message": "Email or username already registered"},
                        {"field": "username", "message": "Email or username already registered"},
                    ]
                )
            return user

    async def get_user(self, user_id: int) -> Optional[User]:
        async with self._sessions() as db:
            return await db.get(User, user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        async with self._sessions() as db:
            stmt = select(User).where(func.lower(User.email) == (email or "").lower())
            return (await db.execute(stmt)).scalars().first()

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._sessions() as db:
            return (await db.execute(select(User).where(User.username == username))).scalars().first()

    async def update_user(self, user_id: int, patch: StoredUserUpdate) -> Optional[User]:
        async with self._sessions() as db:
            user = await db.get(User, user_id)
            if user is None:
                return None
            for field, value in patch_values(patch).items():
                setattr(user, field, value)
            await db.commit()
            return user

    # ---------------------------
    # ESTIMATES
    # ---------------------------
    async def create_estimate(self, data: MoveEstimateCreate) -> MoveEstimate:
        async with self._sessions() as db:
            estimate = MoveEstimate(created_at=now_utc(), **data.model_dump())
            db.add(estimate)
            await db.commit()
            return estimate

    async def get_estimate(self, estimate_id: int) -> Optional[MoveEstimate]:
        async with self._sessions() as db:
            return await db.get(MoveEstimate, estimate_id)

    async def list_estimates(self) -> List[MoveEstimate]:
        async with self._sessions() as db:
            return list((await db.execute(select(MoveEstimate).order_by(MoveEstimate.id))).scalars().all())

    async def list_user_estimates(self, user_id: int) -> List[MoveEstimate]:
        async with self._sessions() as db:
            stmt = select(MoveEstimate).where(MoveEstimate.user_id == user_id).order_by(MoveEstimate.id)
            return list((await db.execute(stmt)).scalars().all())

    # ---------------------------
    # CHECKLISTS
    # ---------------------------
    async def create_checklist(self, data: MoveChecklistCreate) -> MoveChecklist:
        async with self._sessions() as db:
            checklist = MoveChecklist(created_at=now_utc(), **data.model_dump())
            db.add(checklist)
            await db.commit()
            return checklist

    async def create_checklist_with_items(
        self, data: MoveChecklistCreate, generate: ItemGenerator
    ) -> tuple[MoveChecklist, List[ChecklistItem]]:
        async with self._sessions() as db:
            async with db.begin():
                checklist = MoveChecklist(created_at=now_utc(), **data.model_dump())
                db.add(checklist)
                await db.flush()  # assigns checklist.id inside the transaction
                created_at = now_utc()
                items = [
                    ChecklistItem(created_at=created_at, **values)
                    for values in item_rows_for(checklist.id, generate(checklist.id, checklist.move_date))
                ]
                db.add_all(items)
            return checklist, items

    async def get_checklist(self, checklist_id: int) -> Optional[MoveChecklist]:
        async with self._sessions() as db:
            return await db.get(MoveChecklist, checklist_id)

    async def list_user_checklists(self, user_id: int) -> List[MoveChecklist]:
        async with self._sessions() as db:
            stmt = select(MoveChecklist).where(MoveChecklist.user_id == user_id).order_by(MoveChecklist.id)
            return list((await db.execute(stmt)).scalars().all())

    async def get_checklist_by_estimate(self, estimate_id: int) -> Optional[MoveChecklist]:
        async with self._sessions() as db:
            stmt = (
                select(MoveChecklist)
                .where(MoveChecklist.estimate_id == estimate_id)
                .order_by(MoveChecklist.id)
                .limit(1)
            )
            return (await db.execute(stmt)).scalars().first()

    # ---------------------------
    # CHECKLIST ITEMS
    # ---------------------------
    async def create_checklist_items(
        self, checklist_id: int, items: Sequence[ChecklistItemCreate]
    ) -> List[ChecklistItem]:
        async with self._sessions() as db:
            async with db.begin():
                # SQLite does not enforce foreign keys by default, so check explicitly
                if await db.get(MoveChecklist, checklist_id) is None:
                    raise NotFoundError(f"Checklist {checklist_id} not found")
                created_at = now_utc()
                rows = [ChecklistItem(created_at=created_at, **values) for values in item_rows_for(checklist_id, items)]
                db.add_all(rows)
            return rows

    async def get_checklist_item(self, item_id: int) -> Optional[ChecklistItem]:
        async with self._sessions() as db:
            return await db.get(ChecklistItem, item_id)

    async def list_checklist_items(self, checklist_id: int) -> List[ChecklistItem]:
        async with self._sessions() as db:
            stmt = select(ChecklistItem).where(ChecklistItem.checklist_id == checklist_id).order_by(ChecklistItem.id)
            return list((await db.execute(stmt)).scalars().all())

    async def set_item_completed(self, item_id: int, completed: bool) -> Optional[ChecklistItem]:
        async with self._sessions() as db:
            item = await db.get(ChecklistItem, item_id)
            if item is None:
                return None
            item.completed = completed
            await db.commit()
            return item

    # ---------------------------
    # PROGRESS
    # ---------------------------
    async def create_progress(self, data: UserProgressCreate) -> UserProgress:
        async with self._sessions() as db:
            now = now_utc()
            values = data.model_dump()
            values["last_interaction"] = values["last_interaction"] or now
            progress = UserProgress(created_at=now, **values)
            db.add(progress)
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                raise ValidationError.for_field("userId", "Progress already exists for this user")
            return progress

    async def get_progress(self, user_id: int) -> Optional[UserProgress]:
        async with self._sessions() as db:
            stmt = select(UserProgress).where(UserProgress.user_id == user_id)
            return (await db.execute(stmt)).scalars().first()

    async def update_progress(self, user_id: int, patch: UserProgressUpdate) -> Optional[UserProgress]:
        async with self._sessions() as db:
            stmt = select(UserProgress).where(UserProgress.user_id == user_id)
            progress = (await db.execute(stmt)).scalars().first()
            if progress is None:
                return None
            changes = patch_values(patch)
            if "achievements" in changes:
                # new list object so the JSON column is flagged dirty
                changes["achievements"] = list(changes["achievements"])
            for field, value in changes.items():
                setattr(progress, field, value)
            await db.commit()
            return progress

    async def add_achievement(
        self, user_id: int, achievement_id: str, points: int, level_for: LevelRule
    ) -> tuple[bool, Optional[UserProgress]]:
        async with self._sessions() as db:
            async with db.begin():
                progress = (await db.execute(progress_for_update(user_id))).scalars().first()
                if progress is None or achievement_id in (progress.achievements or []):
                    return False, progress
                progress.points = progress.points + points
                progress.level = level_for(progress.points)
                progress.achievements = [*(progress.achievements or []), achievement_id]
                progress.last_interaction = now_utc()
            return True, progress

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Database engine disposed")
