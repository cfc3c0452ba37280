"""
Page view assembly for the navigation routes.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.profile import Profile
from app.services import admin as admin_service
from app.services import meetings as meeting_service
from app.services import messages as message_service
from app.services import profiles as profile_service
from app.services import tasks as task_service
from app.services import threads as thread_service
from chipchat_shared.schemas.profiles import ProfileRead
from chipchat_shared.schemas.threads import ThreadRead
from chipchat_shared.schemas.views import (
    AdminDashboardView,
    ProfileView,
    ThreadDetailView,
    ThreadListView,
)


async def thread_list_view(session: AsyncSession, viewer_id: uuid.UUID) -> ThreadListView:
    return ThreadListView(threads=await thread_service.list_threads(session, viewer_id))


async def thread_detail_view(
    session: AsyncSession, thread_id: uuid.UUID, viewer_id: uuid.UUID, *, is_admin: bool = False
) -> ThreadDetailView:
    """Everything the thread page shows.

    Non-members see the thread header and member list so they can join;
    messages, tasks and meetings are only filled in for members and admins.
    """
    thread = await thread_service.get_thread_or_404(session, thread_id)
    members = await thread_service.list_members(session, thread_id)
    is_member = any(m.user_id == viewer_id for m in members)
    creator = await session.get(Profile, thread.created_by)

    view = ThreadDetailView(
        thread=ThreadRead.model_validate(thread),
        creator_name=creator.full_name if creator else None,
        is_member=is_member,
        members=members,
        messages=[],
        tasks=task_service.build_board([]),
        meetings=[],
    )
    if is_member or is_admin:
        view.messages, _cursor = await message_service.list_messages(session, thread_id)
        view.tasks = task_service.build_board(await task_service.list_tasks(session, thread_id))
        view.meetings = await meeting_service.list_meetings(session, thread_id)
    return view


async def profile_view(session: AsyncSession, user_id: uuid.UUID) -> ProfileView:
    profile = await profile_service.get_profile_or_404(session, user_id)
    return ProfileView(
        profile=ProfileRead.model_validate(profile),
        stats=await profile_service.profile_stats(session, user_id),
    )


async def admin_dashboard_view(session: AsyncSession, admin_id: uuid.UUID) -> AdminDashboardView:
    return AdminDashboardView(
        stats=await admin_service.dashboard_stats(session),
        approved_users=await admin_service.list_profiles(session, approved=True),
        pending_users=await admin_service.list_profiles(session, approved=False),
        threads=await thread_service.list_threads(session, admin_id),
        meetings=await admin_service.list_all_meetings(session),
    )
