"""Activity log (append-only)."""

from datetime import datetime
from typing import Any, Dict
import uuid

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, _utcnow


class ActivityLog(UUIDMixin, SQLModel, table=True):
    __tablename__ = "activity_logs"

    user_id: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, index=True, ondelete="CASCADE")
    action: str = Field(nullable=False)  # created_thread | updated_profile | ...
    entity_type: str = Field(nullable=False)
    entity_id: uuid.UUID = Field(nullable=False)
    # "metadata" is reserved on declarative classes
    details: Dict[str, Any] = Field(
        default_factory=dict,
        sa_column=sa.Column("metadata", JSONB, nullable=False, server_default="{}"),
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("now()")},
        sa_type=sa.DateTime(timezone=True),
    )
