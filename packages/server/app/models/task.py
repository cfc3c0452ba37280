"""Kanban task model."""

from datetime import date
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"

    thread_id: uuid.UUID = Field(foreign_key="threads.id", nullable=False, index=True, ondelete="CASCADE")
    title: str = Field(nullable=False)
    description: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = Field(default=None, foreign_key="profiles.id", ondelete="SET NULL")
    status: str = Field(nullable=False, default="todo")  # todo | in_progress | done
    due_date: Optional[date] = None
    linked_message_id: Optional[uuid.UUID] = Field(default=None, foreign_key="messages.id", ondelete="SET NULL")
    linked_meeting_id: Optional[uuid.UUID] = Field(default=None, foreign_key="meetings.id", ondelete="SET NULL")
    created_by: uuid.UUID = Field(foreign_key="profiles.id", nullable=False, ondelete="CASCADE")
