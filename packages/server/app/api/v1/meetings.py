"""
Meeting endpoints.

- GET /: meetings of a thread, newest first
- POST /: schedule a meeting
- POST /instant: start a "Quick Meeting" right away
- POST /{meeting_id}/start: take a scheduled meeting live
- POST /{meeting_id}/end: end a meeting (creator or admin)
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.threads import get_member_thread
from app.core.auth import AuthenticatedUser, require_approved
from app.core.database import get_session
from app.core.livekit import VideoPlatform, get_video_platform
from app.models.thread import Thread
from app.services import meetings as meeting_service
from chipchat_shared.schemas.meetings import MeetingListResponse, MeetingRead, MeetingSchedule

router = APIRouter()


@router.get("/", response_model=MeetingListResponse)
async def list_meetings_endpoint(
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    return MeetingListResponse(data=await meeting_service.list_meetings(session, thread.id))


@router.post("/", response_model=MeetingRead, status_code=201)
async def schedule_meeting_endpoint(
    body: MeetingSchedule,
    thread: Thread = Depends(get_member_thread),
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    meeting = await meeting_service.schedule_meeting(session, thread.id, auth.user_id, body)
    return MeetingRead.model_validate(meeting)


@router.post("/instant", response_model=MeetingRead, status_code=201)
async def start_instant_meeting_endpoint(
    thread: Thread = Depends(get_member_thread),
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    meeting = await meeting_service.start_instant_meeting(session, thread.id, auth.user_id)
    return MeetingRead.model_validate(meeting)


@router.post("/{meeting_id}/start", response_model=MeetingRead)
async def start_meeting_endpoint(
    meeting_id: uuid.UUID,
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    meeting = await meeting_service.get_meeting_or_404(session, meeting_id, thread.id)
    meeting = await meeting_service.go_live(session, meeting)
    return MeetingRead.model_validate(meeting)


@router.post("/{meeting_id}/end", response_model=MeetingRead)
async def end_meeting_endpoint(
    meeting_id: uuid.UUID,
    thread: Thread = Depends(get_member_thread),
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
    video: Optional[VideoPlatform] = Depends(get_video_platform),
):
    """Mark the meeting ended, then tear its video room down."""
    meeting = await meeting_service.get_meeting_or_404(session, meeting_id, thread.id)
    meeting = await meeting_service.end_meeting(
        session,
        meeting,
        caller_id=auth.user_id,
        caller_is_admin=auth.is_admin,
        video=video,
    )
    return MeetingRead.model_validate(meeting)
