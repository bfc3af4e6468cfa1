from datetime import datetime
from typing import List, Literal, Optional, Tuple

from fastapi_users import schemas
from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator
from pydantic.alias_generators import to_camel

HomeSize = Literal["studio", "1bedroom", "2bedroom", "3bedroom"]
AdditionalItems = Literal["none", "piano", "artwork", "gym", "multiple"]
Flexibility = Literal["exact", "1-2days", "1week", "flexible"]
Service = Literal["packing", "storage", "cleaning"]
Timeframe = Literal["8-weeks", "4-weeks", "2-weeks", "1-week", "moving-day", "after-move"]


def _collapse(values: List[str]) -> List[str]:
    # order of first appearance, duplicates dropped
    return list(dict.fromkeys(values))


class CamelModel(BaseModel):
    """JSON bodies are camelCase on the wire; snake_case is accepted on input too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# =========================
# USER SCHEMAS
# =========================
class UserRead(schemas.BaseUser[int]):
    username: str


class UserCreate(schemas.BaseUserCreate):
    username: str = Field(min_length=1)


class StoredUserCreate(BaseModel):
    email: str
    username: str = Field(min_length=1)
    hashed_password: str
    is_active: bool = True
    is_superuser: bool = False
    is_verified: bool = False


class StoredUserUpdate(BaseModel):
    """Fields the auth layer may rotate; everything else on a user is fixed."""

    hashed_password: Optional[str] = None
    is_active: Optional[bool] = None
    is_superuser: Optional[bool] = None
    is_verified: Optional[bool] = None


# =========================
# COST CALCULATION
# =========================
class MoveCalculationRequest(CamelModel):
    origin: str = Field(min_length=5)
    destination: str = Field(min_length=5)
    home_size: HomeSize
    additional_items: AdditionalItems = "none"
    move_date: str = Field(min_length=1)
    flexibility: Flexibility = "exact"
    services: List[Service] = Field(default_factory=list)

    @field_validator("services")
    @classmethod
    def collapse_services(cls, value: List[str]) -> List[str]:
        return _collapse(value)


class CostTiers(CamelModel):
    diy: int
    hybrid: int
    full_service: int


class CostBreakdown(CamelModel):
    transportation: int
    labor: int
    materials: int
    other: int


class CompanyRecommendation(CamelModel):
    name: str
    rating: float
    description: str
    available: bool


class MoveCalculationResponse(CamelModel):
    distance: int
    origin: str
    destination: str
    home_size: str
    move_date: str
    costs: CostTiers
    breakdown: CostBreakdown
    companies: List[CompanyRecommendation]


# =========================
# ESTIMATE SCHEMAS
# =========================
class MoveEstimateSave(CamelModel):
    origin: str = Field(min_length=1)
    destination: str = Field(min_length=1)
    distance: int = Field(ge=0)
    home_size: HomeSize
    additional_items: AdditionalItems = "none"
    move_date: str = Field(min_length=1)
    flexibility: Flexibility = "exact"
    services: List[Service] = Field(default_factory=list)
    cost_diy: int = Field(ge=0)
    cost_hybrid: int = Field(ge=0)
    cost_full_service: int = Field(ge=0)

    @field_validator("services")
    @classmethod
    def collapse_services(cls, value: List[str]) -> List[str]:
        return _collapse(value)


class MoveEstimateCreate(MoveEstimateSave):
    user_id: Optional[int] = None


class MoveEstimateRead(MoveEstimateCreate):
    id: int
    created_at: datetime


# =========================
# CHECKLIST SCHEMAS
# =========================
class MoveChecklistRequest(CamelModel):
    move_date: str = Field(min_length=1)
    estimate_id: Optional[int] = None


class MoveChecklistCreate(MoveChecklistRequest):
    user_id: int


class MoveChecklistRead(MoveChecklistCreate):
    id: int
    created_at: datetime


class ChecklistItemCreate(CamelModel):
    checklist_id: int
    task: str = Field(min_length=1)
    description: Optional[str] = None
    category: str
    timeframe: Timeframe
    completed: bool = False


class ChecklistItemRead(ChecklistItemCreate):
    id: int
    created_at: datetime


class ChecklistItemToggle(CamelModel):
    completed: StrictBool


class ChecklistWithItems(CamelModel):
    checklist: MoveChecklistRead
    items: List[ChecklistItemRead]


# =========================
# PROGRESS SCHEMAS
# =========================
class UserProgressCreate(CamelModel):
    user_id: int
    points: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    achievements: List[str] = Field(default_factory=list)
    streak: int = Field(default=0, ge=0)
    last_interaction: Optional[datetime] = None

    @field_validator("achievements")
    @classmethod
    def collapse_achievements(cls, value: List[str]) -> List[str]:
        return _collapse(value)


class UserProgressUpdate(CamelModel):
    """Storage-level patch: only fields explicitly set are written."""

    points: Optional[int] = Field(default=None, ge=0)
    level: Optional[int] = Field(default=None, ge=1)
    achievements: Optional[List[str]] = None
    streak: Optional[int] = Field(default=None, ge=0)
    last_interaction: Optional[datetime] = None


class UserProgressPatch(CamelModel):
    """What a client may change directly; achievements only grow through unlocks."""

    points: Optional[int] = Field(default=None, ge=0)
    streak: Optional[int] = Field(default=None, ge=0)
    last_interaction: Optional[datetime] = None


class UserProgressRead(CamelModel):
    id: int
    user_id: int
    points: int
    level: int
    achievements: List[str]
    streak: int
    last_interaction: datetime
    created_at: datetime


class AchievementUnlockRequest(CamelModel):
    achievement_id: str = Field(min_length=1)
    points: int = Field(ge=0)


class AchievementUnlockResponse(CamelModel):
    unlocked: bool
    progress: UserProgressRead


# =========================
# COST MAP
# =========================
class CostGridRow(CamelModel):
    state: str
    code: str
    coordinates: Tuple[float, float]  # (longitude, latitude)
    diy_cost: int
    hybrid_cost: int
    full_service_cost: int
    popularity: int
