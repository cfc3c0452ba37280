"""Thread message model."""

from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, UUID
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Message(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "messages"

    thread_id: uuid.UUID = Field(foreign_key="threads.id", nullable=False, index=True, ondelete="CASCADE")
    user_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True, ondelete="CASCADE")
    content: str = Field(nullable=False)
    parent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="messages.id", ondelete="SET NULL")
    is_pinned: bool = Field(nullable=False, default=False)
    is_edited: bool = Field(nullable=False, default=False)
    mentions: List[uuid.UUID] = Field(
        default_factory=list,
        sa_column=sa.Column(ARRAY(UUID(as_uuid=True)), server_default="{}"),
    )
