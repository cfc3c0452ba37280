"""
Thread service: listing, creation with implicit creator membership, joining.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.activity_log import ActivityLog
from app.models.profile import Profile
from app.models.thread import Thread, ThreadMember
from chipchat_shared.schemas.threads import (
    ThreadCreate,
    ThreadListItem,
    ThreadMemberRead,
    ThreadRead,
)

log = structlog.get_logger()


async def get_thread_or_404(session: AsyncSession, thread_id: uuid.UUID) -> Thread:
    thread = await session.get(Thread, thread_id)
    if not thread:
        raise HTTPException(status_code=404, detail="Thread not found")
    return thread


async def is_member(session: AsyncSession, thread_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    membership = await session.get(ThreadMember, (thread_id, user_id))
    return membership is not None


async def require_member_or_admin(
    session: AsyncSession, thread_id: uuid.UUID, user_id: uuid.UUID, *, is_admin: bool
) -> Thread:
    """404 for a missing thread, 403 for a non-member who is not an admin."""
    thread = await get_thread_or_404(session, thread_id)
    if not is_admin and not await is_member(session, thread_id, user_id):
        raise HTTPException(status_code=403, detail="Not a member of this thread")
    return thread


async def list_threads(session: AsyncSession, viewer_id: uuid.UUID) -> list[ThreadListItem]:
    """All threads, most recently active first."""
    member_counts = (
        select(ThreadMember.thread_id, func.count().label("member_count"))
        .group_by(ThreadMember.thread_id)
        .subquery()
    )
    result = await session.execute(
        select(Thread, Profile.full_name, member_counts.c.member_count)
        .join(Profile, Profile.id == Thread.created_by, isouter=True)
        .join(member_counts, member_counts.c.thread_id == Thread.id, isouter=True)
        .order_by(Thread.updated_at.desc())
    )
    rows = result.all()

    joined = await session.execute(
        select(ThreadMember.thread_id).where(ThreadMember.user_id == viewer_id)
    )
    joined_ids = {row[0] for row in joined.all()}

    return [
        ThreadListItem(
            **ThreadRead.model_validate(thread).model_dump(),
            creator_name=creator_name,
            member_count=member_count or 0,
            is_member=thread.id in joined_ids,
        )
        for thread, creator_name, member_count in rows
    ]


async def create_thread(
    session: AsyncSession, creator_id: uuid.UUID, body: ThreadCreate
) -> Thread:
    """Create a thread; the creator becomes its first member in the same transaction."""
    thread = Thread(
        title=body.title,
        description=body.description or None,
        tags=body.tags,
        created_by=creator_id,
    )
    session.add(thread)
    await session.flush()

    session.add(ThreadMember(thread_id=thread.id, user_id=creator_id))
    session.add(
        ActivityLog(
            user_id=creator_id,
            action="created_thread",
            entity_type="thread",
            entity_id=thread.id,
            details={"title": body.title},
        )
    )
    await session.flush()
    await session.refresh(thread)

    log.info("thread.created", thread_id=str(thread.id), user_id=str(creator_id))
    return thread


async def join_thread(session: AsyncSession, thread_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    """Add a membership. Returns False when the user was already a member."""
    await get_thread_or_404(session, thread_id)
    if await is_member(session, thread_id, user_id):
        return False
    session.add(ThreadMember(thread_id=thread_id, user_id=user_id))
    await session.flush()
    log.info("thread.joined", thread_id=str(thread_id), user_id=str(user_id))
    return True


async def touch_thread(session: AsyncSession, thread: Thread) -> None:
    thread.updated_at = datetime.now(timezone.utc)
    session.add(thread)


async def list_members(session: AsyncSession, thread_id: uuid.UUID) -> list[ThreadMemberRead]:
    result = await session.execute(
        select(ThreadMember, Profile)
        .join(Profile, Profile.id == ThreadMember.user_id)
        .where(ThreadMember.thread_id == thread_id)
        .order_by(ThreadMember.joined_at)
    )
    return [
        ThreadMemberRead(
            user_id=profile.id,
            full_name=profile.full_name,
            avatar_url=profile.avatar_url,
            job_title=profile.job_title,
            joined_at=membership.joined_at,
        )
        for membership, profile in result.all()
    ]


async def delete_thread(session: AsyncSession, thread_id: uuid.UUID) -> None:
    thread = await get_thread_or_404(session, thread_id)
    await session.delete(thread)
    await session.flush()
    log.info("thread.deleted", thread_id=str(thread_id))
