"""
Video room endpoints.

- GET /token: mint a LiveKit join token for a room
- POST /end-room: tear a meeting's room down (creator or admin)

Both are called out-of-band by the browser with a runtime room name, so they
resolve the caller and check authorization themselves. Errors are returned as
``{"error": "<message>"}``.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from app.core.auth import resolve_identity
from app.core.livekit import delete_room_best_effort, get_video_platform
from app.core.rooms import RoomAccessError, RoomAuthorizationGuard
from chipchat_shared.schemas.livekit import (
    EndRoomRequest,
    EndRoomResponse,
    ErrorResponse,
    TokenResponse,
)

log = structlog.get_logger()
router = APIRouter()

ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 500)
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _guard(request: Request, store) -> RoomAuthorizationGuard:
    settings = request.app.state.settings
    return RoomAuthorizationGuard(store, allow_unscoped=settings.unscoped_rooms_allowed)


@router.get("/token", response_model=TokenResponse, responses=ERROR_RESPONSES)
async def issue_token(
    request: Request,
    room: Optional[str] = None,
    username: Optional[str] = None,
):
    """Mint a join token scoped to exactly ``room``.

    The token identity is the caller's user id. ``username`` is only used as
    the display name when the profile has none.
    """
    if not room:
        return _error(400, 'Missing "room" query parameter')
    if not username:
        return _error(400, 'Missing "username" query parameter')

    video = get_video_platform(request)
    if video is None:
        log.error("livekit.misconfigured")
        return _error(500, "Server misconfigured")

    try:
        identity = await resolve_identity(request)
        async with request.app.state.access_store_factory() as store:
            profile = await _guard(request, store).authorize_join(identity, room)

        name = profile.full_name if profile is not None and profile.full_name else username
        token = video.mint_join_token(room, identity=str(identity.user_id), name=name)
    except RoomAccessError as exc:
        return _error(exc.status_code, exc.message)
    except Exception:
        log.exception("livekit.token_error", room=room)
        return _error(500, "Internal server error")

    log.info("livekit.token_issued", user_id=str(identity.user_id), room=room)
    return TokenResponse(token=token)


@router.post("/end-room", response_model=EndRoomResponse, responses=ERROR_RESPONSES)
async def end_room(request: Request):
    """Delete the remote room for a meeting.

    The remote call is best-effort: once the caller is authorized the
    response is ``{"success": true}`` whether or not the SFU still had it.
    """
    try:
        body = EndRoomRequest.model_validate(await request.json())
    except ValueError:  # includes ValidationError and UnicodeDecodeError
        return _error(400, 'Missing "room" parameter')

    if not body.room:
        return _error(400, 'Missing "room" parameter')

    video = get_video_platform(request)
    if video is None:
        log.error("livekit.misconfigured")
        return _error(500, "Server misconfigured")

    try:
        identity = await resolve_identity(request)
        async with request.app.state.access_store_factory() as store:
            await _guard(request, store).authorize_end(identity, body.room)

        await delete_room_best_effort(video, body.room)
    except RoomAccessError as exc:
        return _error(exc.status_code, exc.message)
    except Exception:
        log.exception("livekit.end_room_error", room=body.room)
        return _error(500, "Internal server error")

    return EndRoomResponse()
