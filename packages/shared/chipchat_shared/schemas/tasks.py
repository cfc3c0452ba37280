"""Kanban task schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, UUID4

from .common import TaskStatus


class TaskCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    assigned_to: Optional[UUID4] = None
    due_date: Optional[date] = None
    linked_message_id: Optional[UUID4] = None
    linked_meeting_id: Optional[UUID4] = None


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    assigned_to: Optional[UUID4] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None


class TaskRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    thread_id: UUID4
    title: str
    description: Optional[str] = None
    assigned_to: Optional[UUID4] = None
    status: TaskStatus
    due_date: Optional[date] = None
    linked_message_id: Optional[UUID4] = None
    linked_meeting_id: Optional[UUID4] = None
    created_by: UUID4
    created_at: datetime
    updated_at: datetime


class TaskBoard(BaseModel):
    """Tasks grouped into kanban columns."""
    todo: List[TaskRead] = Field(default_factory=list)
    in_progress: List[TaskRead] = Field(default_factory=list)
    done: List[TaskRead] = Field(default_factory=list)
