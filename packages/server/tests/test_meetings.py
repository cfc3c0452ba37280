"""
Tests for the meeting lifecycle.

Covers:
- Status transitions (scheduled -> active -> ended, ended is terminal)
- Instant meetings get a thread-scoped room name
- Ending: creator/admin authorization and best-effort room teardown
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from app.core.livekit import VideoPlatform, delete_room_best_effort
from app.core.rooms import parse_thread_id
from app.services import meetings as meeting_service
from chipchat_shared.schemas.common import MeetingStatus

from conftest import LIVEKIT_KEY, LIVEKIT_SECRET


def _session() -> MagicMock:
    session = MagicMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    return session


def _meeting(status: MeetingStatus, *, created_by=None, room="thread-x-1") -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid.uuid4(),
        thread_id=uuid.uuid4(),
        status=status.value,
        created_by=created_by or uuid.uuid4(),
        livekit_room_name=room,
        started_at=None,
        ended_at=None,
    )


@pytest.fixture
def video() -> VideoPlatform:
    platform = VideoPlatform(LIVEKIT_KEY, LIVEKIT_SECRET, "wss://chipchat-test.livekit.cloud")
    platform.delete_room = AsyncMock()
    return platform


# ---------------------------------------------------------------------------
# Unit Tests: Transitions
# ---------------------------------------------------------------------------

class TestTransitions:
    @pytest.mark.parametrize(
        "current,target",
        [
            ("scheduled", MeetingStatus.ACTIVE),
            ("scheduled", MeetingStatus.ENDED),
            ("active", MeetingStatus.ENDED),
        ],
    )
    def test_allowed(self, current, target):
        meeting_service.check_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            ("active", MeetingStatus.SCHEDULED),
            ("active", MeetingStatus.ACTIVE),
            ("ended", MeetingStatus.ACTIVE),
            ("ended", MeetingStatus.ENDED),
        ],
    )
    def test_rejected(self, current, target):
        with pytest.raises(HTTPException) as exc_info:
            meeting_service.check_transition(current, target)
        assert exc_info.value.status_code == 409


class TestStartMeetings:
    async def test_instant_meeting_is_live(self):
        thread_id = uuid.uuid4()
        session = _session()

        meeting = await meeting_service.start_instant_meeting(session, thread_id, uuid.uuid4())

        assert meeting.status == MeetingStatus.ACTIVE.value
        assert meeting.title == "Quick Meeting"
        assert parse_thread_id(meeting.livekit_room_name) == thread_id
        session.add.assert_called_once_with(meeting)

    async def test_go_live_assigns_room(self):
        meeting = _meeting(MeetingStatus.SCHEDULED, room=None)
        await meeting_service.go_live(_session(), meeting)
        assert meeting.status == "active"
        assert meeting.started_at is not None
        assert parse_thread_id(meeting.livekit_room_name) == meeting.thread_id

    async def test_go_live_twice_conflicts(self):
        with pytest.raises(HTTPException) as exc_info:
            await meeting_service.go_live(_session(), _meeting(MeetingStatus.ACTIVE))
        assert exc_info.value.status_code == 409


# ---------------------------------------------------------------------------
# Unit Tests: Ending
# ---------------------------------------------------------------------------

class TestEndMeeting:
    async def test_creator_ends_and_room_deleted(self, video):
        creator = uuid.uuid4()
        meeting = _meeting(MeetingStatus.ACTIVE, created_by=creator)

        await meeting_service.end_meeting(
            _session(), meeting, caller_id=creator, caller_is_admin=False, video=video
        )

        assert meeting.status == "ended"
        assert meeting.ended_at is not None
        video.delete_room.assert_awaited_once_with("thread-x-1")

    async def test_commits_before_room_teardown(self, video):
        creator = uuid.uuid4()
        meeting = _meeting(MeetingStatus.ACTIVE, created_by=creator)
        session = _session()
        calls = MagicMock()
        calls.attach_mock(session.commit, "commit")
        calls.attach_mock(video.delete_room, "delete_room")

        await meeting_service.end_meeting(
            session, meeting, caller_id=creator, caller_is_admin=False, video=video
        )

        assert [c[0] for c in calls.mock_calls] == ["commit", "delete_room"]

    async def test_commit_failure_skips_room_teardown(self, video):
        creator = uuid.uuid4()
        meeting = _meeting(MeetingStatus.ACTIVE, created_by=creator)
        session = _session()
        session.commit.side_effect = ConnectionError("db gone")

        with pytest.raises(ConnectionError):
            await meeting_service.end_meeting(
                session, meeting, caller_id=creator, caller_is_admin=False, video=video
            )
        video.delete_room.assert_not_awaited()

    async def test_admin_may_end_others_meeting(self, video):
        meeting = _meeting(MeetingStatus.ACTIVE)
        await meeting_service.end_meeting(
            _session(), meeting, caller_id=uuid.uuid4(), caller_is_admin=True, video=video
        )
        assert meeting.status == "ended"

    async def test_other_member_forbidden(self, video):
        meeting = _meeting(MeetingStatus.ACTIVE)
        with pytest.raises(HTTPException) as exc_info:
            await meeting_service.end_meeting(
                _session(), meeting, caller_id=uuid.uuid4(), caller_is_admin=False, video=video
            )
        assert exc_info.value.status_code == 403
        assert meeting.status == "active"
        video.delete_room.assert_not_awaited()

    async def test_room_teardown_failure_still_ends(self, video):
        creator = uuid.uuid4()
        meeting = _meeting(MeetingStatus.ACTIVE, created_by=creator)
        video.delete_room.side_effect = ConnectionError("sfu unreachable")

        await meeting_service.end_meeting(
            _session(), meeting, caller_id=creator, caller_is_admin=False, video=video
        )
        assert meeting.status == "ended"

    async def test_unconfigured_video_skips_teardown(self):
        creator = uuid.uuid4()
        meeting = _meeting(MeetingStatus.ACTIVE, created_by=creator)
        await meeting_service.end_meeting(
            _session(), meeting, caller_id=creator, caller_is_admin=False, video=None
        )
        assert meeting.status == "ended"

    async def test_ended_meeting_cannot_end_again(self, video):
        creator = uuid.uuid4()
        meeting = _meeting(MeetingStatus.ENDED, created_by=creator)
        with pytest.raises(HTTPException) as exc_info:
            await meeting_service.end_meeting(
                _session(), meeting, caller_id=creator, caller_is_admin=False, video=video
            )
        assert exc_info.value.status_code == 409


class TestDeleteRoomBestEffort:
    async def test_reports_success(self, video):
        assert await delete_room_best_effort(video, "room-1") is True

    async def test_swallows_failure(self, video):
        video.delete_room.side_effect = RuntimeError("404 room not found")
        assert await delete_room_best_effort(video, "room-1") is False

    def test_http_url_for_room_service(self, video):
        assert video.http_url == "https://chipchat-test.livekit.cloud"
