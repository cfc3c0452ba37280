"""
Room authorization for the video endpoints.

Room names follow ``thread-<thread uuid>-<ms timestamp>``. A room whose name
carries a thread id is scoped to that thread: only its members and admins may
join. Any other name is an unscoped (ad-hoc) room, governed by the
``unscoped_rooms_allowed`` policy.
"""

from __future__ import annotations

import re
import time
import uuid
from typing import Optional

import structlog

from app.core.access import AccessProfile, AccessStore, MeetingRecord
from app.core.auth import Identity
from chipchat_shared.schemas.common import UserRole

log = structlog.get_logger()

THREAD_ROOM_PATTERN = re.compile(
    r"^thread-([0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12})"
)


def parse_thread_id(room: str) -> Optional[uuid.UUID]:
    """Thread id embedded in a room name, or None for an unscoped room."""
    match = THREAD_ROOM_PATTERN.match(room)
    if not match:
        return None
    return uuid.UUID(match.group(1))


def build_room_name(thread_id: uuid.UUID, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"thread-{thread_id}-{now_ms}"


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class RoomAccessError(Exception):
    status_code = 403

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RoomUnauthorized(RoomAccessError):
    status_code = 401


class RoomForbidden(RoomAccessError):
    status_code = 403


class MeetingNotFound(RoomAccessError):
    status_code = 404


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------

class RoomAuthorizationGuard:
    """Authorization decisions for joining and ending rooms. Read-only."""

    def __init__(self, store: AccessStore, *, allow_unscoped: bool = True) -> None:
        self._store = store
        self._allow_unscoped = allow_unscoped

    async def authorize_join(
        self, identity: Optional[Identity], room: str
    ) -> Optional[AccessProfile]:
        """Check the caller may join ``room``. Returns their profile, if any."""
        if identity is None:
            raise RoomUnauthorized("Unauthorized")

        profile = await self._store.get_profile(identity.user_id)
        thread_id = parse_thread_id(room)

        if thread_id is None:
            if not self._allow_unscoped:
                log.warning("livekit.token_denied", user_id=str(identity.user_id), room=room, reason="unscoped")
                raise RoomForbidden("Room is not attached to a thread")
            return profile

        if profile is not None and profile.role == UserRole.ADMIN:
            return profile

        if not await self._store.is_thread_member(thread_id, identity.user_id):
            log.warning(
                "livekit.token_denied",
                user_id=str(identity.user_id),
                thread_id=str(thread_id),
                reason="not_member",
            )
            raise RoomForbidden("Not a member of this thread")
        return profile

    async def authorize_end(self, identity: Optional[Identity], room: str) -> MeetingRecord:
        """Check the caller may end ``room``: its meeting's creator or an admin."""
        if identity is None:
            raise RoomUnauthorized("Unauthorized")

        meeting = await self._store.get_meeting_by_room(room)
        if meeting is None:
            raise MeetingNotFound("Meeting not found")

        if meeting.created_by == identity.user_id:
            return meeting

        profile = await self._store.get_profile(identity.user_id)
        if profile is None or profile.role != UserRole.ADMIN:
            log.warning("livekit.end_room_forbidden", user_id=str(identity.user_id), room=room)
            raise RoomForbidden("Forbidden: You cannot end this meeting")
        return meeting
