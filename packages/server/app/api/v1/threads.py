"""
Thread endpoints.

- GET /: list threads (most recently active first)
- POST /: create a thread; the creator joins it
- GET /{thread_id}: thread details
- POST /{thread_id}/join: join a thread (idempotent)
- GET /{thread_id}/members: member list
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_approved
from app.core.database import get_session
from app.models.thread import Thread
from app.services import threads as thread_service
from chipchat_shared.schemas.threads import (
    ThreadCreate,
    ThreadListItem,
    ThreadMemberRead,
    ThreadRead,
)

router = APIRouter()


async def get_member_thread(
    thread_id: UUID,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
) -> Thread:
    """Dependency for thread-scoped resources: members and admins only."""
    return await thread_service.require_member_or_admin(
        session, thread_id, auth.user_id, is_admin=auth.is_admin
    )


@router.get("/", response_model=List[ThreadListItem])
async def list_threads_endpoint(
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    return await thread_service.list_threads(session, auth.user_id)


@router.post("/", response_model=ThreadRead, status_code=201)
async def create_thread_endpoint(
    body: ThreadCreate,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    thread = await thread_service.create_thread(session, auth.user_id, body)
    return ThreadRead.model_validate(thread)


@router.get("/{thread_id}", response_model=ThreadRead)
async def get_thread_endpoint(
    thread_id: UUID,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    thread = await thread_service.get_thread_or_404(session, thread_id)
    return ThreadRead.model_validate(thread)


@router.post("/{thread_id}/join")
async def join_thread_endpoint(
    thread_id: UUID,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    joined = await thread_service.join_thread(session, thread_id, auth.user_id)
    return {"thread_id": str(thread_id), "joined": joined}


@router.get("/{thread_id}/members", response_model=List[ThreadMemberRead])
async def list_members_endpoint(
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    return await thread_service.list_members(session, thread.id)
