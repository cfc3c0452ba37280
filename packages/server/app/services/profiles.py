"""
Account service: signup, credential checks, profile self-edit.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password, verify_password
from app.models.activity_log import ActivityLog
from app.models.meeting import Meeting
from app.models.profile import Profile
from app.models.task import Task
from app.models.thread import ThreadMember
from app.models.user import User
from chipchat_shared.schemas.common import UserRole
from chipchat_shared.schemas.profiles import ProfileUpdate, SignupRequest
from chipchat_shared.schemas.views import ProfileStats

log = structlog.get_logger()


async def get_profile_or_404(session: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = await session.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


async def create_account(
    session: AsyncSession,
    *,
    email: str,
    password: str,
    full_name: str,
    job_title: Optional[str] = None,
    company: str = "",
    role: UserRole = UserRole.MEMBER,
    approved: bool = False,
) -> tuple[User, Profile]:
    """Create an identity and its profile. New accounts wait for approval by default."""
    result = await session.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Email already registered")

    user = User(id=uuid.uuid4(), email=email, password_hash=hash_password(password))
    session.add(user)
    await session.flush()

    profile = Profile(
        id=user.id,
        email=email,
        full_name=full_name,
        job_title=job_title,
        company=company,
        role=role.value,
        is_approved=approved,
        is_verified=approved,
    )
    session.add(profile)
    await session.flush()
    return user, profile


async def signup(session: AsyncSession, body: SignupRequest) -> tuple[User, Profile]:
    user, profile = await create_account(
        session,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        job_title=body.job_title,
        company=body.company,
    )
    log.info("user.registered", user_id=str(user.id), email=body.email)
    return user, profile


async def authenticate(session: AsyncSession, email: str, password: str) -> tuple[User, Profile]:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not verify_password(password, user.password_hash):
        log.warning("auth.login_failure", email=email, reason="bad_password")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    profile = await session.get(Profile, user.id)
    if not profile:
        raise HTTPException(status_code=403, detail="Profile not found")

    log.info("auth.login_success", user_id=str(user.id), email=email)
    return user, profile


async def update_own_profile(
    session: AsyncSession, user_id: uuid.UUID, body: ProfileUpdate
) -> Profile:
    profile = await get_profile_or_404(session, user_id)
    changes = body.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(profile, field, value)
    session.add(profile)

    if changes:
        session.add(
            ActivityLog(
                user_id=user_id,
                action="updated_profile",
                entity_type="profile",
                entity_id=user_id,
                details={"fields": sorted(changes)},
            )
        )
    await session.flush()
    await session.refresh(profile)
    return profile


async def profile_stats(session: AsyncSession, user_id: uuid.UUID) -> ProfileStats:
    threads = await session.scalar(
        select(func.count()).select_from(ThreadMember).where(ThreadMember.user_id == user_id)
    )
    meetings = await session.scalar(
        select(func.count()).select_from(Meeting).where(Meeting.created_by == user_id)
    )
    tasks = await session.scalar(
        select(func.count()).select_from(Task).where(Task.assigned_to == user_id)
    )
    return ProfileStats(
        threads_joined=threads or 0,
        meetings_created=meetings or 0,
        tasks_assigned=tasks or 0,
    )
