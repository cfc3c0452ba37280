"""Thread and thread membership models."""

from datetime import datetime
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, VARCHAR
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, _utcnow


class Thread(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "threads"

    title: str = Field(nullable=False)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list, sa_type=ARRAY(VARCHAR))
    created_by: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True, ondelete="CASCADE")


class ThreadMember(SQLModel, table=True):
    __tablename__ = "thread_members"

    thread_id: uuid.UUID = Field(foreign_key="threads.id", primary_key=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="profiles.id", primary_key=True, ondelete="CASCADE")
    joined_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("now()")},
        sa_type=sa.DateTime(timezone=True),
    )
