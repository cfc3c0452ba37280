"""Meeting schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, UUID4

from .common import MeetingStatus


class MeetingSchedule(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    started_at: Optional[datetime] = None


class MeetingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    thread_id: UUID4
    title: Optional[str] = None
    status: MeetingStatus
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    livekit_room_name: Optional[str] = None
    created_by: UUID4
    max_participants: int = 50
    created_at: datetime


class MeetingListResponse(BaseModel):
    data: List[MeetingRead]
