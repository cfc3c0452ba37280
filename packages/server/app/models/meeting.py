"""Meeting model. livekit_room_name is set once the meeting goes live."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, _utcnow


class Meeting(UUIDMixin, SQLModel, table=True):
    __tablename__ = "meetings"

    thread_id: uuid.UUID = Field(foreign_key="threads.id", nullable=False, index=True, ondelete="CASCADE")
    title: Optional[str] = None
    status: str = Field(nullable=False, default="scheduled")  # scheduled | active | ended
    started_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    ended_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    livekit_room_name: Optional[str] = Field(default=None, unique=True, index=True)
    created_by: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, ondelete="CASCADE")
    max_participants: int = Field(nullable=False, default=50)
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("now()")},
        sa_type=sa.DateTime(timezone=True),
    )
