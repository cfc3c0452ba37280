"""
Tests for room naming and the room authorization guard.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.core.auth import Identity
from app.core.rooms import (
    MeetingNotFound,
    RoomAuthorizationGuard,
    RoomForbidden,
    RoomUnauthorized,
    build_room_name,
    parse_thread_id,
)
from chipchat_shared.schemas.common import UserRole

from conftest import FakeAccessStore


def _identity(user_id: uuid.UUID) -> Identity:
    return Identity(
        user_id=user_id,
        email=None,
        jti="jti",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )


# ---------------------------------------------------------------------------
# Unit Tests: Room names
# ---------------------------------------------------------------------------

class TestRoomNames:
    def test_build_and_parse(self):
        thread_id = uuid.uuid4()
        room = build_room_name(thread_id, now_ms=1700000000123)
        assert room == f"thread-{thread_id}-1700000000123"
        assert parse_thread_id(room) == thread_id

    def test_build_uses_current_time(self):
        room = build_room_name(uuid.uuid4())
        assert room.rsplit("-", 1)[1].isdigit()

    def test_uppercase_uuid_parses(self):
        thread_id = uuid.uuid4()
        assert parse_thread_id(f"thread-{str(thread_id).upper()}-1") == thread_id

    def test_prefix_must_be_at_start(self):
        assert parse_thread_id(f"my-thread-{uuid.uuid4()}-1") is None

    def test_unscoped_names(self):
        for room in ("lobby", "thread-", "thread-1234", "thread-not-a-uuid-at-all-really-1"):
            assert parse_thread_id(room) is None


# ---------------------------------------------------------------------------
# Unit Tests: Guard
# ---------------------------------------------------------------------------

class TestAuthorizeJoin:
    async def test_anonymous_rejected(self):
        guard = RoomAuthorizationGuard(FakeAccessStore())
        with pytest.raises(RoomUnauthorized) as exc_info:
            await guard.authorize_join(None, "lobby")
        assert exc_info.value.status_code == 401

    async def test_member_allowed(self):
        store = FakeAccessStore()
        profile = store.add_profile()
        thread_id = uuid.uuid4()
        store.add_member(thread_id, profile.id)

        guard = RoomAuthorizationGuard(store)
        result = await guard.authorize_join(_identity(profile.id), build_room_name(thread_id, 1))
        assert result == profile

    async def test_non_member_forbidden(self):
        store = FakeAccessStore()
        profile = store.add_profile(role=UserRole.MANAGER)
        guard = RoomAuthorizationGuard(store)
        with pytest.raises(RoomForbidden) as exc_info:
            await guard.authorize_join(_identity(profile.id), build_room_name(uuid.uuid4(), 1))
        assert exc_info.value.message == "Not a member of this thread"

    async def test_admin_allowed_without_membership(self):
        store = FakeAccessStore()
        admin = store.add_profile(role=UserRole.ADMIN)
        guard = RoomAuthorizationGuard(store)
        assert await guard.authorize_join(_identity(admin.id), build_room_name(uuid.uuid4(), 1)) == admin

    async def test_missing_profile_needs_membership(self):
        store = FakeAccessStore()
        user_id = uuid.uuid4()
        thread_id = uuid.uuid4()
        guard = RoomAuthorizationGuard(store)

        with pytest.raises(RoomForbidden):
            await guard.authorize_join(_identity(user_id), build_room_name(thread_id, 1))

        store.add_member(thread_id, user_id)
        assert await guard.authorize_join(_identity(user_id), build_room_name(thread_id, 1)) is None

    async def test_unscoped_room_policy(self):
        store = FakeAccessStore()
        profile = store.add_profile()

        assert await RoomAuthorizationGuard(store).authorize_join(_identity(profile.id), "lobby") == profile
        with pytest.raises(RoomForbidden):
            await RoomAuthorizationGuard(store, allow_unscoped=False).authorize_join(
                _identity(profile.id), "lobby"
            )


class TestAuthorizeEnd:
    async def test_anonymous_rejected(self):
        with pytest.raises(RoomUnauthorized):
            await RoomAuthorizationGuard(FakeAccessStore()).authorize_end(None, "lobby")

    async def test_unknown_room(self):
        store = FakeAccessStore()
        profile = store.add_profile(role=UserRole.ADMIN)
        with pytest.raises(MeetingNotFound) as exc_info:
            await RoomAuthorizationGuard(store).authorize_end(_identity(profile.id), "lobby")
        assert exc_info.value.status_code == 404

    async def test_creator_allowed_without_profile_lookup(self):
        store = FakeAccessStore()
        creator = store.add_profile()
        meeting = store.add_meeting("room-1", uuid.uuid4(), creator.id)
        lookups_before = store.profile_lookups

        result = await RoomAuthorizationGuard(store).authorize_end(_identity(creator.id), "room-1")
        assert result == meeting
        assert store.profile_lookups == lookups_before

    async def test_admin_allowed(self):
        store = FakeAccessStore()
        creator = store.add_profile()
        admin = store.add_profile(role=UserRole.ADMIN)
        store.add_meeting("room-1", uuid.uuid4(), creator.id)
        await RoomAuthorizationGuard(store).authorize_end(_identity(admin.id), "room-1")

    async def test_other_user_forbidden(self):
        store = FakeAccessStore()
        creator = store.add_profile()
        other = store.add_profile(role=UserRole.MANAGER)
        store.add_meeting("room-1", uuid.uuid4(), creator.id)
        with pytest.raises(RoomForbidden) as exc_info:
            await RoomAuthorizationGuard(store).authorize_end(_identity(other.id), "room-1")
        assert exc_info.value.message == "Forbidden: You cannot end this meeting"
