# moveease/services/checklist.py
import logging
from typing import List, Optional

from ..errors import ValidationError
from ..models import ChecklistItem, MoveChecklist
from ..schemas import ChecklistItemCreate, MoveChecklistCreate
from ..storage import Storage

logger = logging.getLogger(__name__)

TIMEFRAMES = ("8-weeks", "4-weeks", "2-weeks", "1-week", "moving-day", "after-move")

# (timeframe, category, task, description)
CHECKLIST_TEMPLATE = [
    # planning phase
    ("8-weeks", "planning", "Create a moving budget",
     "Estimate all costs involved in your move including packing supplies, movers, transportation, etc."),
    ("8-weeks", "planning", "Research moving companies",
     "Get quotes from at least 3 different moving companies for comparison."),
    ("8-weeks", "planning", "Create a home inventory",
     "Document all your belongings and decide what to keep, sell, donate, or discard."),
    # preparation
    ("4-weeks", "packing", "Start packing non-essential items",
     "Begin with items you rarely use like seasonal decorations, books, and extra kitchen items."),
    ("4-weeks", "admin", "Notify important parties about your move",
     "Update your address with banks, insurance companies, subscription services, etc."),
    ("4-weeks", "admin", "Schedule utility disconnection and connection",
     "Arrange for utilities to be disconnected at your current home and connected at your new home."),
    # action phase
    ("2-weeks", "admin", "Confirm moving arrangements",
     "Verify date, time, and details with your moving company or rental truck service."),
    ("2-weeks", "packing", "Pack most of your belongings",
     "Leave out only essential items that you'll need in the final days."),
    ("2-weeks", "cleaning", "Clean out the refrigerator and pantry",
     "Use up perishable food items or plan to give them away before the move."),
    # final prep
    ("1-week", "packing", "Pack an essentials box",
     "Include items you'll need immediately upon arrival: toiletries, medications, change of clothes, "
     "basic kitchen supplies, etc."),
    ("1-week", "packing", "Disassemble furniture",
     "Take apart larger furniture pieces that won't fit through doors or are easier to move disassembled."),
    ("1-week", "admin", "Confirm arrival time at new residence",
     "Make sure you can access your new home when you arrive and that utilities are connected."),
    ("moving-day", "moving-day", "Conduct final walkthrough of old home",
     "Check all rooms, closets, cabinets, and storage areas to ensure nothing is left behind."),
    ("moving-day", "moving-day", "Document condition of rental property",
     "Take photos of your cleaned rental property to document its condition for your deposit return."),
    ("moving-day", "moving-day", "Supervise movers",
     "Be available to answer questions and direct movers throughout the loading process."),
    ("after-move", "unpacking", "Unpack essential items",
     "Focus on setting up the kitchen, bathroom, and bedroom areas first."),
    ("after-move", "admin", "Update your address",
     "File a change of address with the post office and update your driver's license."),
    ("after-move", "settling-in", "Meet your neighbors",
     "Introduce yourself to neighbors and begin getting familiar with the neighborhood."),
]


def generate_checklist_items(checklist_id: int, move_date: str) -> List[ChecklistItemCreate]:
    """Instantiate the fixed task template for one checklist.

    ``move_date`` is accepted for the storage callback signature only: items
    carry a timeframe label, not a calendar date.
    """
    return [
        ChecklistItemCreate(
            checklist_id=checklist_id,
            task=task,
            description=description,
            category=category,
            timeframe=timeframe,
            completed=False,
        )
        for timeframe, category, task, description in CHECKLIST_TEMPLATE
    ]


async def create_checklist(
    storage: Storage, user_id: int, move_date: str, estimate_id: Optional[int] = None
) -> tuple[MoveChecklist, List[ChecklistItem]]:
    if estimate_id is not None:
        estimate = await storage.get_estimate(estimate_id)
        if estimate is None or estimate.user_id not in (None, user_id):
            raise ValidationError.for_field("estimateId", "Unknown estimate")

    data = MoveChecklistCreate(user_id=user_id, move_date=move_date, estimate_id=estimate_id)
    checklist, items = await storage.create_checklist_with_items(data, generate_checklist_items)
    logger.info("Checklist %s created for user %s with %d items", checklist.id, user_id, len(items))
    return checklist, items
