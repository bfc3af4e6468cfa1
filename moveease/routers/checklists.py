from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from moveease.errors import NotFoundError, ensure_owner
from moveease.models import MoveChecklist, User
from moveease.schemas import (
    ChecklistItemRead,
    ChecklistItemToggle,
    ChecklistWithItems,
    MoveChecklistRead,
    MoveChecklistRequest,
)
from moveease.services.checklist import create_checklist
from moveease.storage import Storage
from moveease.utils import get_storage, require_authenticated_user

router = APIRouter(prefix="/api", tags=["checklists"])


async def _with_items(storage: Storage, checklist: MoveChecklist) -> ChecklistWithItems:
    items = await storage.list_checklist_items(checklist.id)
    return ChecklistWithItems(
        checklist=MoveChecklistRead.model_validate(checklist),
        items=[ChecklistItemRead.model_validate(i) for i in items],
    )


@router.post("/checklists", response_model=ChecklistWithItems, status_code=status.HTTP_201_CREATED)
async def create_moving_checklist(
    payload: MoveChecklistRequest,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    checklist, items = await create_checklist(storage, user.id, payload.move_date, payload.estimate_id)
    return ChecklistWithItems(
        checklist=MoveChecklistRead.model_validate(checklist),
        items=[ChecklistItemRead.model_validate(i) for i in items],
    )


@router.get("/checklists", response_model=List[MoveChecklistRead])
async def list_my_checklists(
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    return [MoveChecklistRead.model_validate(c) for c in await storage.list_user_checklists(user.id)]


@router.get("/checklists/{checklist_id}", response_model=ChecklistWithItems)
async def get_checklist(
    checklist_id: int,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    checklist = await storage.get_checklist(checklist_id)
    if checklist is None:
        raise NotFoundError("Checklist not found")
    ensure_owner(checklist.user_id, user.id, "checklist")
    return await _with_items(storage, checklist)


@router.get("/estimates/{estimate_id}/checklist", response_model=ChecklistWithItems)
async def get_estimate_checklist(
    estimate_id: int,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    checklist = await storage.get_checklist_by_estimate(estimate_id)
    if checklist is None:
        raise NotFoundError("Checklist not found for this estimate")
    ensure_owner(checklist.user_id, user.id, "checklist")
    return await _with_items(storage, checklist)


@router.patch("/checklist-items/{item_id}", response_model=ChecklistItemRead)
async def toggle_checklist_item(
    item_id: int,
    payload: ChecklistItemToggle,
    user: User = Depends(require_authenticated_user),
    storage: Storage = Depends(get_storage),
):
    item = await storage.get_checklist_item(item_id)
    if item is None:
        raise NotFoundError("Checklist item not found")
    checklist = await storage.get_checklist(item.checklist_id)
    ensure_owner(checklist.user_id if checklist else None, user.id, "checklist item")

    updated = await storage.set_item_completed(item_id, payload.completed)
    if updated is None:
        raise NotFoundError("Checklist item not found")
    return ChecklistItemRead.model_validate(updated)
