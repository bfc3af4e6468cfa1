"""baseline schema

Revision ID: a3f0c9d41e27
Revises: 
Create Date: 2026-10-17 09:12:40.511204

"""
from typing import Sequence, Union

from alembic import op
from sqlalchemy.engine import Connection

from moveease.database import Base
from moveease import models  # noqa: F401

# revision identifiers, used by Alembic.
revision: str = "a3f0c9d41e27"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, estimates, checklists, checklist items and progress."""
    bind: Connection = op.get_bind()
    Base.metadata.create_all(bind)


def downgrade() -> None:
    bind: Connection = op.get_bind()
    Base.metadata.drop_all(bind)
