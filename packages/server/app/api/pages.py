"""
Navigation routes.

These are the paths the gate chain protects: by the time a handler runs, the
caller is signed in, approved where required, and an admin under /admin. The
dependencies re-check so the routes stay safe when gating is disabled.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    get_authenticated_user,
    require_admin,
    require_approved,
)
from app.core.database import get_session
from app.core.gates import ADMIN_PREFIX, LANDING_PATH, PENDING_PATH
from app.services import profiles as profile_service
from app.services import views
from chipchat_shared.schemas.views import (
    AdminDashboardView,
    PendingApprovalView,
    ProfileView,
    ThreadDetailView,
    ThreadListView,
)

router = APIRouter()


@router.get("/", include_in_schema=False)
async def landing():
    return RedirectResponse(LANDING_PATH, status_code=307)


@router.get(PENDING_PATH, response_model=PendingApprovalView)
async def pending_approval(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
    session: AsyncSession = Depends(get_session),
):
    profile = await profile_service.get_profile_or_404(session, auth.user_id)
    if profile.is_approved:
        message = "Your account has been approved."
    else:
        message = "Your account is waiting for an administrator to approve it."
    return PendingApprovalView(
        email=profile.email,
        full_name=profile.full_name,
        is_approved=profile.is_approved,
        message=message,
    )


@router.get(LANDING_PATH, response_model=ThreadListView)
async def thread_list(
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    return await views.thread_list_view(session, auth.user_id)


@router.get(LANDING_PATH + "/{thread_id}", response_model=ThreadDetailView)
async def thread_detail(
    thread_id: UUID,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    return await views.thread_detail_view(
        session, thread_id, auth.user_id, is_admin=auth.is_admin
    )


@router.get("/profile", response_model=ProfileView)
async def profile_page(
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    return await views.profile_view(session, auth.user_id)


@router.get(ADMIN_PREFIX, response_model=AdminDashboardView)
async def admin_dashboard(
    auth: AuthenticatedUser = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    return await views.admin_dashboard_view(session, auth.user_id)
