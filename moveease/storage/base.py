"""The persistence capability the rest of the app depends on.

Two implementations satisfy it: ``MemoryStorage`` (process-lifetime maps) and
``DatabaseStorage`` (SQLAlchemy tables). Both hand back the mapped classes from
``moveease.models``; lookups of missing ids return ``None`` instead of raising.
Ownership is not checked here, that is the caller's job.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, List, Optional, Protocol, Sequence, runtime_checkable

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


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


# (checklist_id, move_date) -> items to insert under that checklist
ItemGenerator = Callable[[int, str], Sequence[ChecklistItemCreate]]

# points -> level
LevelRule = Callable[[int], int]


@runtime_checkable
class Storage(Protocol):
    # users
    async def create_user(self, data: StoredUserCreate) -> User: ...
    async def get_user(self, user_id: int) -> Optional[User]: ...
    async def get_user_by_email(self, email: str) -> Optional[User]: ...
    async def get_user_by_username(self, username: str) -> Optional[User]: ...
    async def update_user(self, user_id: int, patch: StoredUserUpdate) -> Optional[User]: ...

    # estimates
    async def create_estimate(self, data: MoveEstimateCreate) -> MoveEstimate: ...
    async def get_estimate(self, estimate_id: int) -> Optional[MoveEstimate]: ...
    async def list_estimates(self) -> List[MoveEstimate]: ...
    async def list_user_estimates(self, user_id: int) -> List[MoveEstimate]: ...

    # checklists
    async def create_checklist(self, data: MoveChecklistCreate) -> MoveChecklist: ...
    async def create_checklist_with_items(
        self, data: MoveChecklistCreate, generate: ItemGenerator
    ) -> tuple[MoveChecklist, List[ChecklistItem]]: ...
    async def get_checklist(self, checklist_id: int) -> Optional[MoveChecklist]: ...
    async def list_user_checklists(self, user_id: int) -> List[MoveChecklist]: ...
    async def get_checklist_by_estimate(self, estimate_id: int) -> Optional[MoveChecklist]: ...

    # checklist items
    async def create_checklist_items(
        self, checklist_id: int, items: Sequence[ChecklistItemCreate]
    ) -> List[ChecklistItem]: ...
    async def get_checklist_item(self, item_id: int) -> Optional[ChecklistItem]: ...
    async def list_checklist_items(self, checklist_id: int) -> List[ChecklistItem]: ...
    async def set_item_completed(self, item_id: int, completed: bool) -> Optional[ChecklistItem]: ...

    # progress
    async def create_progress(self, data: UserProgressCreate) -> UserProgress: ...
    async def get_progress(self, user_id: int) -> Optional[UserProgress]: ...
    async def update_progress(self, user_id: int, patch: UserProgressUpdate) -> Optional[UserProgress]: ...
    async def add_achievement(
        self, user_id: int, achievement_id: str, points: int, level_for: LevelRule
    ) -> tuple[bool, Optional[UserProgress]]: ...

    async def close(self) -> None: ...


def item_rows_for(checklist_id: int, items: Sequence[ChecklistItemCreate]) -> List[dict]:
    """Column values for a bulk insert, every row forced under ``checklist_id``."""
    rows = []
    for item in items:
        values = item.model_dump()
        values["checklist_id"] = checklist_id
        rows.append(values)
    return rows


def patch_values(patch) -> dict:
    """Fields the caller explicitly set to a value; unset and null fields are left alone."""
    return {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}
