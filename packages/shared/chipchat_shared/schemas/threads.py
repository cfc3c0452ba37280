"""Thread, membership and message schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, UUID4


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------

class ThreadCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ThreadRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    title: str
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created_by: UUID4
    created_at: datetime
    updated_at: datetime


class ThreadListItem(ThreadRead):
    creator_name: Optional[str] = None
    member_count: int = 0
    is_member: bool = False


class ThreadMemberRead(BaseModel):
    user_id: UUID4
    full_name: str
    avatar_url: Optional[str] = None
    job_title: Optional[str] = None
    joined_at: datetime


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

class MessageCreate(BaseModel):
    content: str = Field(min_length=1, max_length=10000)
    parent_id: Optional[UUID4] = None


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    thread_id: UUID4
    user_id: UUID4
    content: str
    parent_id: Optional[UUID4] = None
    is_pinned: bool = False
    is_edited: bool = False
    mentions: List[UUID4] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MessageListResponse(BaseModel):
    data: List[MessageRead]
    next_cursor: Optional[datetime] = None
