"""
Admin service: account approval, role management, moderation, dashboard.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import generate_temporary_password
from app.models.meeting import Meeting
from app.models.profile import Profile
from app.models.task import Task
from app.models.thread import Thread
from app.models.user import User
from app.services.profiles import create_account, get_profile_or_404
from chipchat_shared.schemas.common import MeetingStatus, TaskStatus
from chipchat_shared.schemas.meetings import MeetingRead
from chipchat_shared.schemas.profiles import AdminUserCreate, ProfileRead
from chipchat_shared.schemas.views import AdminStats

log = structlog.get_logger()


async def list_profiles(
    session: AsyncSession, *, approved: Optional[bool] = None
) -> list[ProfileRead]:
    stmt = select(Profile)
    if approved is not None:
        stmt = stmt.where(Profile.is_approved == approved)
    result = await session.execute(stmt.order_by(Profile.created_at.desc()))
    return [ProfileRead.model_validate(p) for p in result.scalars().all()]


async def approve_user(session: AsyncSession, user_id: uuid.UUID, admin_id: uuid.UUID) -> Profile:
    profile = await get_profile_or_404(session, user_id)
    profile.is_approved = True
    session.add(profile)
    await session.flush()
    await session.refresh(profile)
    log.info("admin.user_approved", user_id=str(user_id), admin_id=str(admin_id))
    return profile


async def toggle_verified(session: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = await get_profile_or_404(session, user_id)
    profile.is_verified = not profile.is_verified
    session.add(profile)
    await session.flush()
    await session.refresh(profile)
    return profile


async def set_role(
    session: AsyncSession, user_id: uuid.UUID, role: str, admin_id: uuid.UUID
) -> Profile:
    if user_id == admin_id:
        raise HTTPException(status_code=400, detail="Cannot change your own role")
    profile = await get_profile_or_404(session, user_id)
    profile.role = role
    session.add(profile)
    await session.flush()
    await session.refresh(profile)
    log.info("admin.role_changed", user_id=str(user_id), role=role, admin_id=str(admin_id))
    return profile


async def create_user(
    session: AsyncSession, body: AdminUserCreate
) -> tuple[Profile, Optional[str]]:
    """Create a pre-approved, verified account.

    Returns the profile and the generated password when the caller did not
    supply one.
    """
    temporary = None if body.password else generate_temporary_password()
    _, profile = await create_account(
        session,
        email=body.email,
        password=body.password or temporary,
        full_name=body.full_name,
        job_title=body.job_title,
        role=body.role,
        approved=True,
    )
    await session.refresh(profile)
    log.info("admin.user_created", user_id=str(profile.id), email=body.email)
    return profile, temporary


async def delete_user(session: AsyncSession, user_id: uuid.UUID, admin_id: uuid.UUID) -> None:
    """Delete the identity; the profile and memberships cascade."""
    if user_id == admin_id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    await session.delete(user)
    await session.flush()
    log.info("admin.user_deleted", user_id=str(user_id), admin_id=str(admin_id))


async def list_all_meetings(session: AsyncSession) -> list[MeetingRead]:
    result = await session.execute(select(Meeting).order_by(Meeting.created_at.desc()))
    return [MeetingRead.model_validate(m) for m in result.scalars().all()]


async def dashboard_stats(session: AsyncSession) -> AdminStats:
    async def count(model, *where) -> int:
        stmt = select(func.count()).select_from(model)
        for clause in where:
            stmt = stmt.where(clause)
        return await session.scalar(stmt) or 0

    return AdminStats(
        total_users=await count(Profile),
        pending_users=await count(Profile, Profile.is_approved == False),  # noqa: E712
        total_threads=await count(Thread),
        total_meetings=await count(Meeting),
        active_meetings=await count(Meeting, Meeting.status == MeetingStatus.ACTIVE.value),
        total_tasks=await count(Task),
        completed_tasks=await count(Task, Task.status == TaskStatus.DONE.value),
    )
