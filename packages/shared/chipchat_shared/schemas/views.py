"""Page view models returned by the gated navigation routes."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .meetings import MeetingRead
from .profiles import ProfileRead
from .tasks import TaskBoard
from .threads import MessageRead, ThreadListItem, ThreadMemberRead, ThreadRead


class AuthPageView(BaseModel):
    page: str  # login | signup
    fields: List[str]
    submit_to: str


class PendingApprovalView(BaseModel):
    page: str = "pending-approval"
    email: str
    full_name: str
    is_approved: bool
    message: str


class ThreadListView(BaseModel):
    page: str = "threads"
    threads: List[ThreadListItem]


class ThreadDetailView(BaseModel):
    page: str = "thread"
    thread: ThreadRead
    creator_name: Optional[str] = None
    is_member: bool
    members: List[ThreadMemberRead]
    messages: List[MessageRead]
    tasks: TaskBoard
    meetings: List[MeetingRead]


class ProfileStats(BaseModel):
    threads_joined: int = 0
    meetings_created: int = 0
    tasks_assigned: int = 0


class ProfileView(BaseModel):
    page: str = "profile"
    profile: ProfileRead
    stats: ProfileStats


class AdminStats(BaseModel):
    total_users: int = 0
    pending_users: int = 0
    total_threads: int = 0
    total_meetings: int = 0
    active_meetings: int = 0
    total_tasks: int = 0
    completed_tasks: int = 0


class AdminDashboardView(BaseModel):
    page: str = "admin"
    stats: AdminStats
    approved_users: List[ProfileRead] = Field(default_factory=list)
    pending_users: List[ProfileRead] = Field(default_factory=list)
    threads: List[ThreadListItem] = Field(default_factory=list)
    meetings: List[MeetingRead] = Field(default_factory=list)
