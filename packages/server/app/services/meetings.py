"""
Meeting service: scheduling, going live, ending.

Status moves scheduled → active → ended. A room name is assigned when a
meeting goes live, either on creation or from the scheduled state.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.livekit import VideoPlatform, delete_room_best_effort
from app.core.rooms import build_room_name
from app.models.meeting import Meeting
from chipchat_shared.schemas.common import MEETING_TRANSITIONS, MeetingStatus
from chipchat_shared.schemas.meetings import MeetingRead, MeetingSchedule

log = structlog.get_logger()

QUICK_MEETING_TITLE = "Quick Meeting"


def check_transition(current: str, target: MeetingStatus) -> None:
    if target not in MEETING_TRANSITIONS[MeetingStatus(current)]:
        raise HTTPException(
            status_code=409,
            detail=f"Cannot move meeting from {current} to {target.value}",
        )


async def get_meeting_or_404(
    session: AsyncSession, meeting_id: uuid.UUID, thread_id: uuid.UUID
) -> Meeting:
    meeting = await session.get(Meeting, meeting_id)
    if not meeting or meeting.thread_id != thread_id:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting


async def list_meetings(session: AsyncSession, thread_id: uuid.UUID) -> list[MeetingRead]:
    result = await session.execute(
        select(Meeting).where(Meeting.thread_id == thread_id).order_by(Meeting.created_at.desc())
    )
    return [MeetingRead.model_validate(m) for m in result.scalars().all()]


async def schedule_meeting(
    session: AsyncSession, thread_id: uuid.UUID, creator_id: uuid.UUID, body: MeetingSchedule
) -> Meeting:
    meeting = Meeting(
        thread_id=thread_id,
        title=body.title.strip(),
        status=MeetingStatus.SCHEDULED.value,
        started_at=body.started_at,
        created_by=creator_id,
    )
    session.add(meeting)
    await session.flush()
    await session.refresh(meeting)
    return meeting


async def start_instant_meeting(
    session: AsyncSession, thread_id: uuid.UUID, creator_id: uuid.UUID
) -> Meeting:
    meeting = Meeting(
        thread_id=thread_id,
        title=QUICK_MEETING_TITLE,
        status=MeetingStatus.ACTIVE.value,
        started_at=datetime.now(timezone.utc),
        livekit_room_name=build_room_name(thread_id),
        created_by=creator_id,
    )
    session.add(meeting)
    await session.flush()
    await session.refresh(meeting)
    log.info("meeting.started", meeting_id=str(meeting.id), room=meeting.livekit_room_name)
    return meeting


async def go_live(session: AsyncSession, meeting: Meeting) -> Meeting:
    check_transition(meeting.status, MeetingStatus.ACTIVE)
    meeting.status = MeetingStatus.ACTIVE.value
    meeting.started_at = datetime.now(timezone.utc)
    meeting.livekit_room_name = build_room_name(meeting.thread_id)
    session.add(meeting)
    await session.flush()
    await session.refresh(meeting)
    log.info("meeting.started", meeting_id=str(meeting.id), room=meeting.livekit_room_name)
    return meeting


async def end_meeting(
    session: AsyncSession,
    meeting: Meeting,
    *,
    caller_id: uuid.UUID,
    caller_is_admin: bool,
    video: Optional[VideoPlatform],
) -> Meeting:
    """Commit the ended status, then tear the SFU room down best-effort."""
    if meeting.created_by != caller_id and not caller_is_admin:
        raise HTTPException(status_code=403, detail="Forbidden: You cannot end this meeting")
    check_transition(meeting.status, MeetingStatus.ENDED)

    meeting.status = MeetingStatus.ENDED.value
    meeting.ended_at = datetime.now(timezone.utc)
    session.add(meeting)
    # The ended status is durable before the room goes away.
    await session.commit()
    await session.refresh(meeting)

    if meeting.livekit_room_name and video is not None:
        await delete_room_best_effort(video, meeting.livekit_room_name)
    elif not meeting.livekit_room_name:
        log.warning("meeting.no_room_name", meeting_id=str(meeting.id))
    return meeting


async def delete_meeting(session: AsyncSession, meeting_id: uuid.UUID) -> None:
    meeting = await session.get(Meeting, meeting_id)
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    await session.delete(meeting)
    await session.flush()
    log.info("meeting.deleted", meeting_id=str(meeting_id))
