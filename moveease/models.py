from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, Text, DateTime, JSON,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from .database import Base

# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONList = JSON().with_variant(JSONB(), "postgresql")


# ---------------------------
# USER MODEL
# ---------------------------
class User(Base):
    __tablename__ = "user"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_superuser = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    estimates = relationship("MoveEstimate", back_populates="user", passive_deletes=True)
    checklists = relationship("MoveChecklist", back_populates="user", passive_deletes=True)
    progress = relationship("UserProgress", back_populates="user", uselist=False, passive_deletes=True)

    def __repr__(self):
        return f"<User {self.username}>"


# ---------------------------
# ESTIMATES
# ---------------------------
class MoveEstimate(Base):
    __tablename__ = "moving_estimates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True, index=True)
    origin = Column(Text, nullable=False)
    destination = Column(Text, nullable=False)
    distance = Column(Integer, nullable=False)
    home_size = Column(String(16), nullable=False)  # studio|1bedroom|2bedroom|3bedroom
    additional_items = Column(String(16), nullable=False, default="none")
    move_date = Column(String(32), nullable=False)
    flexibility = Column(String(16), nullable=False, default="exact")
    services = Column(JSONList, nullable=False, default=list)
    cost_diy = Column(Integer, nullable=False)
    cost_hybrid = Column(Integer, nullable=False)
    cost_full_service = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="estimates")


# ---------------------------
# CHECKLISTS
# ---------------------------
class MoveChecklist(Base):
    __tablename__ = "moving_checklists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    estimate_id = Column(Integer, ForeignKey("moving_estimates.id", ondelete="SET NULL"), nullable=True, index=True)
    move_date = Column(String(32), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="checklists")
    estimate = relationship("MoveEstimate")
    items = relationship(
        "ChecklistItem",
        order_by="ChecklistItem.id.asc()",
        cascade="all, delete-orphan",
        back_populates="checklist",
    )


class ChecklistItem(Base):
    __tablename__ = "checklist_items"

    id = Column(Integer, primary_key=True, index=True)
    checklist_id = Column(Integer, ForeignKey("moving_checklists.id", ondelete="CASCADE"), nullable=False, index=True)
    task = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(32), nullable=False)
    timeframe = Column(String(16), nullable=False)  # 8-weeks|4-weeks|2-weeks|1-week|moving-day|after-move
    completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    checklist = relationship("MoveChecklist", back_populates="items")


# ---------------------------
# GAMIFICATION
# ---------------------------
class UserProgress(Base):
    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    points = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=1)
    achievements = Column(JSONList, nullable=False, default=list)
    streak = Column(Integer, nullable=False, default=0)
    last_interaction = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="progress")

    __table_args__ = (
        UniqueConstraint("user_id", name="uq_user_progress_user"),
    )
