"""
Admin endpoints (admin role only).

- GET /users: all profiles, optionally filtered by approval
- POST /users: create a pre-approved account
- POST /users/{user_id}/approve: approve a pending account
- POST /users/{user_id}/reject: reject a pending account (deletes it)
- POST /users/{user_id}/verify: toggle the verified badge
- PATCH /users/{user_id}/role: change role
- DELETE /users/{user_id}: delete an account
- DELETE /threads/{thread_id}, DELETE /meetings/{meeting_id}: moderation
- GET /stats: dashboard counters
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_admin
from app.core.database import get_session
from app.core.realtime import ThreadConnectionManager, get_realtime
from app.services import admin as admin_service
from app.services import meetings as meeting_service
from app.services import profiles as profile_service
from app.services import threads as thread_service
from chipchat_shared.schemas.profiles import (
    AdminUserCreate,
    AdminUserCreateResponse,
    ProfileListResponse,
    ProfileRead,
    RoleUpdate,
)
from chipchat_shared.schemas.views import AdminStats

router = APIRouter()


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=ProfileListResponse)
async def list_users_endpoint(
    approved: Optional[bool] = None,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return ProfileListResponse(data=await admin_service.list_profiles(session, approved=approved))


@router.post("/users", response_model=AdminUserCreateResponse, status_code=201)
async def create_user_endpoint(
    body: AdminUserCreate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Create an approved, verified account.

    When no password is supplied a temporary one is generated and returned
    once; it is not stored anywhere in plain text.
    """
    profile, temporary_password = await admin_service.create_user(session, body)
    return AdminUserCreateResponse(
        profile=ProfileRead.model_validate(profile),
        temporary_password=temporary_password,
    )


@router.post("/users/{user_id}/approve", response_model=ProfileRead)
async def approve_user_endpoint(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    profile = await admin_service.approve_user(session, user_id, auth.user_id)
    return ProfileRead.model_validate(profile)


@router.post("/users/{user_id}/reject", status_code=204)
async def reject_user_endpoint(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    profile = await profile_service.get_profile_or_404(session, user_id)
    if profile.is_approved:
        raise HTTPException(status_code=409, detail="User is already approved")
    await admin_service.delete_user(session, user_id, auth.user_id)


@router.post("/users/{user_id}/verify", response_model=ProfileRead)
async def toggle_verified_endpoint(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    profile = await admin_service.toggle_verified(session, user_id)
    return ProfileRead.model_validate(profile)


@router.patch("/users/{user_id}/role", response_model=ProfileRead)
async def set_role_endpoint(
    user_id: uuid.UUID,
    body: RoleUpdate,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    profile = await admin_service.set_role(session, user_id, body.role.value, auth.user_id)
    return ProfileRead.model_validate(profile)


@router.delete("/users/{user_id}", status_code=204)
async def delete_user_endpoint(
    user_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
    realtime: ThreadConnectionManager = Depends(get_realtime),
):
    await admin_service.delete_user(session, user_id, auth.user_id)
    await session.commit()
    await realtime.close_connections_for_user(user_id)


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------


@router.delete("/threads/{thread_id}", status_code=204)
async def delete_thread_endpoint(
    thread_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await thread_service.delete_thread(session, thread_id)


@router.delete("/meetings/{meeting_id}", status_code=204)
async def delete_meeting_endpoint(
    meeting_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    await meeting_service.delete_meeting(session, meeting_id)


@router.get("/stats", response_model=AdminStats)
async def stats_endpoint(
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await admin_service.dashboard_stats(session)
