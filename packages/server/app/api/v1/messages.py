"""
Thread message endpoints.

- GET /messages: cursor-paginated history, oldest first within a page
- POST /messages: post a message (members only), fanned out over WebSocket
- POST /messages/{message_id}/pin: toggle the pinned flag
- WS /ws: cookie-authenticated live feed of the thread

Mentions: ``@word`` tokens are matched against member names.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.threads import get_member_thread
from app.core.auth import AuthenticatedUser, require_approved, resolve_identity
from app.core.database import get_session
from app.core.realtime import ThreadConnectionManager, get_realtime
from app.models.thread import Thread
from app.services import messages as message_service
from app.services import threads as thread_service
from chipchat_shared.schemas.common import UserRole
from chipchat_shared.schemas.threads import MessageCreate, MessageListResponse, MessageRead

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/messages", response_model=MessageListResponse)
async def list_messages_endpoint(
    before: Optional[datetime] = Query(None, description="Return messages older than this timestamp"),
    limit: int = Query(message_service.DEFAULT_PAGE_SIZE, ge=1, le=message_service.MAX_PAGE_SIZE),
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    data, next_cursor = await message_service.list_messages(
        session, thread.id, before=before, limit=limit
    )
    return MessageListResponse(data=data, next_cursor=next_cursor)


@router.post("/messages", response_model=MessageRead, status_code=201)
async def post_message_endpoint(
    body: MessageCreate,
    thread_id: UUID,
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
    realtime: ThreadConnectionManager = Depends(get_realtime),
):
    """Post a message. Admins must join the thread first, like anyone else."""
    thread = await thread_service.get_thread_or_404(session, thread_id)
    if not await thread_service.is_member(session, thread_id, auth.user_id):
        raise HTTPException(status_code=403, detail="Not a member of this thread")

    message = await message_service.post_message(session, thread, auth.user_id, body)
    await session.commit()
    read = MessageRead.model_validate(message)

    try:
        await realtime.publish(
            thread.id,
            {"type": "message.created", "message": read.model_dump(mode="json")},
        )
    except RedisError as exc:
        # Persisted; live clients pick it up on their next history fetch.
        logger.warning("Realtime publish failed for thread %s: %s", thread.id, exc)
    return read


@router.post("/messages/{message_id}/pin", response_model=MessageRead)
async def toggle_pin_endpoint(
    message_id: UUID,
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    message = await message_service.toggle_pin(session, thread.id, message_id)
    return MessageRead.model_validate(message)


# --- WebSocket Endpoint ---


@router.websocket("/ws")
async def thread_websocket(websocket: WebSocket, thread_id: UUID):
    """
    Live feed of a thread for its approved members.

    Authenticates from the session cookie. Close codes: 4001 no session,
    4003 not approved or not a member. Supports ``ping`` → ``pong``.
    """
    identity = await resolve_identity(websocket)
    if identity is None:
        await websocket.close(code=4001, reason="authentication_failed")
        return

    async with websocket.app.state.access_store_factory() as store:
        profile = await store.get_profile(identity.user_id)
        allowed = (
            profile is not None
            and profile.is_approved
            and (
                profile.role == UserRole.ADMIN
                or await store.is_thread_member(thread_id, identity.user_id)
            )
        )
    if not allowed:
        await websocket.close(code=4003, reason="access_denied")
        return

    realtime: ThreadConnectionManager = websocket.app.state.realtime
    conn_info = await realtime.connect(websocket, thread_id, identity.user_id)
    try:
        while True:
            data = await websocket.receive_text()
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_text(json.dumps({
                    "type": "error",
                    "code": "INVALID_JSON",
                    "message": "Could not parse message as JSON.",
                }))
                continue

            if isinstance(frame, dict) and frame.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        logger.debug("WebSocket closed by client: thread=%s user=%s", thread_id, identity.user_id)
    finally:
        await realtime.disconnect(conn_info)
