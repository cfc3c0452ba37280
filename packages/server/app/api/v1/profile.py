"""
Own-profile endpoints.

Role, approval and verification are not self-editable; see the admin API.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_approved
from app.core.database import get_session
from app.services import profiles as profile_service
from chipchat_shared.schemas.profiles import ProfileRead, ProfileUpdate
from chipchat_shared.schemas.views import ProfileStats

router = APIRouter()


@router.get("/", response_model=ProfileRead)
async def get_own_profile(
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    profile = await profile_service.get_profile_or_404(session, auth.user_id)
    return ProfileRead.model_validate(profile)


@router.patch("/", response_model=ProfileRead)
async def update_own_profile(
    body: ProfileUpdate,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    profile = await profile_service.update_own_profile(session, auth.user_id, body)
    return ProfileRead.model_validate(profile)


@router.get("/stats", response_model=ProfileStats)
async def get_own_stats(
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    return await profile_service.profile_stats(session, auth.user_id)
