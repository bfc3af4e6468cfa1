# moveease/services/progress.py
import logging
from datetime import datetime, timezone
from typing import Optional

from ..models import UserProgress
from ..schemas import UserProgressCreate, UserProgressPatch, UserProgressUpdate
from ..storage import Storage
from ..storage.base import now_utc

logger = logging.getLogger(__name__)

POINTS_PER_LEVEL = 100

# Points the client shell awards per achievement. The unlock endpoint still
# takes the caller's number; a mismatch is only logged.
KNOWN_ACHIEVEMENTS = {
    "complete_profile": 10,
    "first_estimate": 15,
    "first_checklist": 15,
    "streak_3": 20,
    "streak_7": 50,
    "complete_5_tasks": 25,
    "breathing_master": 10,
}


def level_for(points: int) -> int:
    return points // POINTS_PER_LEVEL + 1


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def next_streak(streak: int, last_interaction: datetime, now: datetime) -> int:
    """Same calendar day keeps the streak, the next day extends it, a longer gap restarts it."""
    gap = (_as_utc(now).date() - _as_utc(last_interaction).date()).days
    if gap <= 0:
        return max(streak, 1)
    if gap == 1:
        return streak + 1
    return 1


async def get_or_create_progress(storage: Storage, user_id: int) -> UserProgress:
    progress = await storage.get_progress(user_id)
    if progress is None:
        progress = await storage.create_progress(UserProgressCreate(user_id=user_id))
        logger.info("Progress record created for user %s", user_id)
    return progress


async def update_progress(storage: Storage, user_id: int, patch: UserProgressPatch) -> UserProgress:
    await get_or_create_progress(storage, user_id)
    changes = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "points" in changes:
        changes["level"] = level_for(changes["points"])
    return await storage.update_progress(user_id, UserProgressUpdate(**changes))


async def record_interaction(storage: Storage, user_id: int, now: Optional[datetime] = None) -> UserProgress:
    now = now or now_utc()
    progress = await get_or_create_progress(storage, user_id)
    streak = next_streak(progress.streak, progress.last_interaction, now)
    return await storage.update_progress(user_id, UserProgressUpdate(streak=streak, last_interaction=now))


async def unlock_achievement(storage: Storage, user_id: int, achievement_id: str, points: int) -> tuple[bool, UserProgress]:
    """Add ``achievement_id`` and its points once; a repeat unlock changes nothing."""
    await get_or_create_progress(storage, user_id)
    unlocked, updated = await storage.add_achievement(user_id, achievement_id, points, level_for)
    if not unlocked:
        return False, updated

    expected = KNOWN_ACHIEVEMENTS.get(achievement_id)
    if expected != points:
        logger.warning(
            "Achievement %s unlocked by user %s with client-supplied %s points (catalog: %s)",
            achievement_id, user_id, points, expected,
        )
    logger.info("User %s unlocked %s (+%s points, level %s)", user_id, achievement_id, points, updated.level)
    return True, updated
