"""
Read-only lookups the access-control layer depends on.

The gate middleware and the room guard only ever need three facts from the
database: a caller's profile, whether they belong to a thread, and the meeting
that owns a room. They go through ``AccessStore`` so tests can swap in a fake
via ``app.state.access_store_factory``.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Optional, Protocol

from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select
from starlette.requests import HTTPConnection

from app.core.database import Database
from app.models.meeting import Meeting
from app.models.profile import Profile
from app.models.thread import ThreadMember
from chipchat_shared.schemas.common import MeetingStatus, UserRole


class AccessProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    full_name: str = ""
    role: UserRole
    is_approved: bool


class MeetingRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID
    thread_id: uuid.UUID
    created_by: uuid.UUID
    status: MeetingStatus
    livekit_room_name: Optional[str] = None


class AccessStore(Protocol):
    async def get_profile(self, user_id: uuid.UUID) -> Optional[AccessProfile]: ...

    async def is_thread_member(self, thread_id: uuid.UUID, user_id: uuid.UUID) -> bool: ...

    async def get_meeting_by_room(self, room: str) -> Optional[MeetingRecord]: ...


AccessStoreFactory = Callable[[], AbstractAsyncContextManager[AccessStore]]


class SqlAccessStore:
    """AccessStore over an async SQLModel session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_profile(self, user_id: uuid.UUID) -> Optional[AccessProfile]:
        result = await self._session.execute(select(Profile).where(Profile.id == user_id))
        profile = result.scalar_one_or_none()
        return AccessProfile.model_validate(profile) if profile else None

    async def is_thread_member(self, thread_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = await self._session.execute(
            select(ThreadMember).where(
                ThreadMember.thread_id == thread_id,
                ThreadMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def get_meeting_by_room(self, room: str) -> Optional[MeetingRecord]:
        result = await self._session.execute(
            select(Meeting).where(Meeting.livekit_room_name == room)
        )
        meeting = result.scalar_one_or_none()
        return MeetingRecord.model_validate(meeting) if meeting else None


def sql_access_store_factory(database: Database) -> AccessStoreFactory:
    @asynccontextmanager
    async def factory() -> AsyncIterator[AccessStore]:
        async with database.session() as session:
            yield SqlAccessStore(session)

    return factory


async def get_access_store(conn: HTTPConnection) -> AsyncGenerator[AccessStore, None]:
    """FastAPI dependency: an AccessStore bound to this request."""
    async with conn.app.state.access_store_factory() as store:
        yield store
