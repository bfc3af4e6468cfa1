from __future__ import annotations

import itertools
from typing import Dict, Iterator, List, Optional, Sequence, TypeVar

from sqlalchemy import inspect

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

T = TypeVar("T")


def _clone(obj: T, **changes) -> T:
    """Copy a mapped instance column by column, overriding ``changes``."""
    cls = type(obj)
    values = {attr.key: getattr(obj, attr.key) for attr in inspect(cls).column_attrs}
    values.update(changes)
    return cls(**values)


class MemoryStorage:
    """Volatile storage: one dict per entity kind, integer ids counting up from 1.

    Nothing survives a restart and there is no locking, so it is only safe
    inside a single process serving requests on one event loop.
    """

    def __init__(self):
        self._users: Dict[int, User] = {}
        self._estimates: Dict[int, MoveEstimate] = {}
        self._checklists: Dict[int, MoveChecklist] = {}
        self._items: Dict[int, ChecklistItem] = {}
        self._progress: Dict[int, UserProgress] = {}
        self._ids: Dict[str, Iterator[int]] = {
            kind: itertools.count(1) for kind in ("user", "estimate", "checklist", "item", "progress")
        }

    def _next_id(self, kind: str) -> int:
        return next(self._ids[kind])

    # ---------------------------
    # USERS
    # ---------------------------
    async def create_user(self, data: StoredUserCreate) -> User:
        if await self.get_user_by_email(data.email):
            raise ValidationError.for_field("email", "Email already registered")
        if await self.get_user_by_username(data.username):
            raise ValidationError.for_field("username", "Username already taken")
        user = User(id=self._next_id("user"), **data.model_dump())
        self._users[user.id] = user
        return user

    async def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        wanted = (email or "").lower()
        return next((u for u in self._users.values() if u.email.lower() == wanted), None)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._users.values() if u.username == username), None)

    async def update_user(self, user_id: int, patch: StoredUserUpdate) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        updated = _clone(user, **patch_values(patch))
        self._users[user_id] = updated
        return updated

    # ---------------------------
    # ESTIMATES
    # ---------------------------
    async def create_estimate(self, data: MoveEstimateCreate) -> MoveEstimate:
        estimate = MoveEstimate(id=self._next_id("estimate"), created_at=now_utc(), **data.model_dump())
        self._estimates[estimate.id] = estimate
        return estimate

    async def get_estimate(self, estimate_id: int) -> Optional[MoveEstimate]:
        return self._estimates.get(estimate_id)

    async def list_estimates(self) -> List[MoveEstimate]:
        return list(self._estimates.values())

    async def list_user_estimates(self, user_id: int) -> List[MoveEstimate]:
        return [e for e in self._estimates.values() if e.user_id == user_id]

    # ---------------------------
    # CHECKLISTS
    # ---------------------------
    async def create_checklist(self, data: MoveChecklistCreate) -> MoveChecklist:
        checklist = MoveChecklist(id=self._next_id("checklist"), created_at=now_utc(), **data.model_dump())
        self._checklists[checklist.id] = checklist
        return checklist

    async def create_checklist_with_items(
        self, data: MoveChecklistCreate, generate: ItemGenerator
    ) -> tuple[MoveChecklist, List[ChecklistItem]]:
        # Items go in before the checklist becomes visible; a failing generator
        # leaves nothing behind.
        checklist = MoveChecklist(id=self._next_id("checklist"), created_at=now_utc(), **data.model_dump())
        rows = item_rows_for(checklist.id, generate(checklist.id, checklist.move_date))
        items = [self._store_item(values) for values in rows]
        self._checklists[checklist.id] = checklist
        return checklist, items

    async def get_checklist(self, checklist_id: int) -> Optional[MoveChecklist]:
        return self._checklists.get(checklist_id)

    async def list_user_checklists(self, user_id: int) -> List[MoveChecklist]:
        return [c for c in self._checklists.values() if c.user_id == user_id]

    async def get_checklist_by_estimate(self, estimate_id: int) -> Optional[MoveChecklist]:
        return next((c for c in self._checklists.values() if c.estimate_id == estimate_id), None)

    # ---------------------------
    # CHECKLIST ITEMS
    # ---------------------------
    def _store_item(self, values: dict) -> ChecklistItem:
        item = ChecklistItem(id=self._next_id("item"), created_at=now_utc(), **values)
        self._items[item.id] = item
        return item

    async def create_checklist_items(
        self, checklist_id: int, items: Sequence[ChecklistItemCreate]
    ) -> List[ChecklistItem]:
        if checklist_id not in self._checklists:
            raise NotFoundError(f"Checklist {checklist_id} not found")
        return [self._store_item(values) for values in item_rows_for(checklist_id, items)]

    async def get_checklist_item(self, item_id: int) -> Optional[ChecklistItem]:
        return self._items.get(item_id)

    async def list_checklist_items(self, checklist_id: int) -> List[ChecklistItem]:
        return [i for i in self._items.values() if i.checklist_id == checklist_id]

    async def set_item_completed(self, item_id: int, completed: bool) -> Optional[ChecklistItem]:
        item = self._items.get(item_id)
        if item is None:
            return None
        updated = _clone(item, completed=completed)
        self._items[item_id] = updated
        return updated

    # ---------------------------
    # PROGRESS
    # ---------------------------
    async def create_progress(self, data: UserProgressCreate) -> UserProgress:
        if await self.get_progress(data.user_id):
            raise ValidationError.for_field("userId", "Progress already exists for this user")
        now = now_utc()
        values = data.model_dump()
        values["last_interaction"] = values["last_interaction"] or now
        progress = UserProgress(id=self._next_id("progress"), created_at=now, **values)
        self._progress[progress.id] = progress
        return progress

    async def get_progress(self, user_id: int) -> Optional[UserProgress]:
        return next((p for p in self._progress.values() if p.user_id == user_id), None)

    async def update_progress(self, user_id: int, patch: UserProgressUpdate) -> Optional[UserProgress]:
        progress = await self.get_progress(user_id)
        if progress is None:
            return None
        changes = patch_values(patch)
        if "achievements" in changes:
            changes["achievements"] = list(changes["achievements"])
        updated = _clone(progress, **changes)
        self._progress[progress.id] = updated
        return updated

    async def add_achievement(
        self, user_id: int, achievement_id: str, points: int, level_for: LevelRule
    ) -> tuple[bool, Optional[UserProgress]]:
        # no await between the check and the write
        progress = next((p for p in self._progress.values() if p.user_id == user_id), None)
        if progress is None or achievement_id in progress.achievements:
            return False, progress
        total = progress.points + points
        updated = _clone(
            progress,
            points=total,
            level=level_for(total),
            achievements=[*progress.achievements, achievement_id],
            last_interaction=now_utc(),
        )
        self._progress[progress.id] = updated
        return True, updated

    async def close(self) -> None:
        return None
