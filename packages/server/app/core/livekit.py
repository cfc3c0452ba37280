"""LiveKit access tokens and room teardown."""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import structlog
from livekit import api
from starlette.requests import HTTPConnection

from app.core.config import Settings

log = structlog.get_logger()


class VideoPlatform:
    """Server-side LiveKit credentials and the two calls we make with them."""

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        url: str,
        *,
        token_ttl: timedelta = timedelta(hours=6),
    ) -> None:
        self.api_key = api_key
        self.api_secret = api_secret
        self.url = url
        self.token_ttl = token_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["VideoPlatform"]:
        """None when any credential is missing; callers must fail closed."""
        if not settings.livekit_configured:
            return None
        return cls(
            settings.livekit_api_key,
            settings.livekit_api_secret,
            settings.livekit_url,
            token_ttl=timedelta(minutes=settings.livekit_token_ttl_minutes),
        )

    @property
    def http_url(self) -> str:
        """RoomService speaks HTTP(S); clients are handed the WebSocket URL."""
        return self.url.replace("wss://", "https://").replace("ws://", "http://")

    def mint_join_token(self, room: str, identity: str, name: str) -> str:
        grants = api.VideoGrants(
            room_join=True,
            room=room,
            can_publish=True,
            can_subscribe=True,
        )
        return (
            api.AccessToken(self.api_key, self.api_secret)
            .with_identity(identity)
            .with_name(name)
            .with_ttl(self.token_ttl)
            .with_grants(grants)
            .to_jwt()
        )

    async def delete_room(self, room: str) -> None:
        lkapi = api.LiveKitAPI(url=self.http_url, api_key=self.api_key, api_secret=self.api_secret)
        try:
            await lkapi.room.delete_room(api.DeleteRoomRequest(room=room))
        finally:
            await lkapi.aclose()


def get_video_platform(conn: HTTPConnection) -> Optional[VideoPlatform]:
    """FastAPI dependency: configured video platform, or None."""
    return conn.app.state.video_platform


async def delete_room_best_effort(video: VideoPlatform, room: str) -> bool:
    """Tear the remote room down, logging rather than raising on failure.

    The meeting record is the system of record; the SFU room may already be gone.
    """
    log.info("livekit.terminating_room", room=room, host=video.http_url)
    try:
        await video.delete_room(room)
    except Exception as exc:
        log.error("livekit.delete_room_failed", room=room, error=str(exc))
        return False
    log.info("livekit.room_deleted", room=room)
    return True
