"""
Validation tests for the shared request/response schemas.
"""

import uuid

import pytest
from pydantic import ValidationError

from chipchat_shared.schemas.common import MEETING_TRANSITIONS, MeetingStatus, TaskStatus
from chipchat_shared.schemas.livekit import EndRoomRequest
from chipchat_shared.schemas.meetings import MeetingSchedule
from chipchat_shared.schemas.profiles import AdminUserCreate, SignupRequest
from chipchat_shared.schemas.tasks import TaskBoard, TaskUpdate
from chipchat_shared.schemas.threads import MessageCreate, ThreadCreate


class TestAuthSchemas:
    def test_signup_minimum_password(self):
        with pytest.raises(ValidationError):
            SignupRequest(email="ada@example.com", password="12345", full_name="Ada")
        ok = SignupRequest(email="ada@example.com", password="123456", full_name="Ada")
        assert ok.company == ""

    def test_signup_rejects_bad_email(self):
        with pytest.raises(ValidationError):
            SignupRequest(email="not-an-email", password="secret1", full_name="Ada")

    def test_admin_create_password_optional(self):
        assert AdminUserCreate(email="ada@example.com", full_name="Ada").password is None


class TestContentSchemas:
    def test_thread_title_required(self):
        with pytest.raises(ValidationError):
            ThreadCreate(title="")

    def test_message_content_required(self):
        with pytest.raises(ValidationError):
            MessageCreate(content="")

    def test_meeting_title_required(self):
        with pytest.raises(ValidationError):
            MeetingSchedule(title="")

    def test_task_update_unknown_status(self):
        with pytest.raises(ValidationError):
            TaskUpdate(status="blocked")

    def test_board_columns_match_statuses(self):
        assert set(TaskBoard.model_fields) == {s.value for s in TaskStatus}

    def test_end_room_room_optional(self):
        assert EndRoomRequest.model_validate({}).room is None


class TestMeetingTransitions:
    def test_every_status_has_entry(self):
        assert set(MEETING_TRANSITIONS) == set(MeetingStatus)

    def test_ended_is_terminal(self):
        assert MEETING_TRANSITIONS[MeetingStatus.ENDED] == set()

    def test_no_way_back_to_scheduled(self):
        for targets in MEETING_TRANSITIONS.values():
            assert MeetingStatus.SCHEDULED not in targets


def test_uuid4_enforced_on_message_parent():
    with pytest.raises(ValidationError):
        MessageCreate(content="hi", parent_id=uuid.uuid1())
