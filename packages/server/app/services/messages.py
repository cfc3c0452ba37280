"""
Message service: history, posting with mention resolution, pinning.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.message import Message
from app.models.thread import Thread
from app.services import threads as thread_service
from chipchat_shared.schemas.threads import MessageCreate, MessageRead, ThreadMemberRead

MENTION_PATTERN = re.compile(r"@(\w+)")

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


def parse_mention_tokens(content: str) -> list[str]:
    """Words following an ``@`` in message content."""
    return MENTION_PATTERN.findall(content)


def resolve_mentions(content: str, members: Iterable[ThreadMemberRead]) -> list[uuid.UUID]:
    """Members whose full name contains any mentioned word, case-insensitive."""
    tokens = [t.lower() for t in parse_mention_tokens(content)]
    if not tokens:
        return []
    return [
        m.user_id
        for m in members
        if any(token in m.full_name.lower() for token in tokens)
    ]


async def list_messages(
    session: AsyncSession,
    thread_id: uuid.UUID,
    *,
    before: Optional[datetime] = None,
    limit: int = DEFAULT_PAGE_SIZE,
) -> tuple[list[MessageRead], Optional[datetime]]:
    """A page of history, oldest first. The cursor points at the oldest item returned."""
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    stmt = select(Message).where(Message.thread_id == thread_id)
    if before is not None:
        stmt = stmt.where(Message.created_at < before)
    stmt = stmt.order_by(Message.created_at.desc()).limit(limit + 1)

    result = await session.execute(stmt)
    rows = list(result.scalars().all())
    has_more = len(rows) > limit
    rows = rows[:limit]
    rows.reverse()

    next_cursor = rows[0].created_at if has_more and rows else None
    return [MessageRead.model_validate(m) for m in rows], next_cursor


async def post_message(
    session: AsyncSession,
    thread: Thread,
    user_id: uuid.UUID,
    body: MessageCreate,
) -> Message:
    if body.parent_id is not None:
        parent = await session.get(Message, body.parent_id)
        if not parent or parent.thread_id != thread.id:
            raise HTTPException(status_code=422, detail="Reply target is not in this thread")

    members = await thread_service.list_members(session, thread.id)
    message = Message(
        thread_id=thread.id,
        user_id=user_id,
        content=body.content.strip(),
        parent_id=body.parent_id,
        mentions=resolve_mentions(body.content, members),
    )
    session.add(message)
    await thread_service.touch_thread(session, thread)
    await session.flush()
    await session.refresh(message)
    return message


async def toggle_pin(session: AsyncSession, thread_id: uuid.UUID, message_id: uuid.UUID) -> Message:
    message = await session.get(Message, message_id)
    if not message or message.thread_id != thread_id:
        raise HTTPException(status_code=404, detail="Message not found")
    message.is_pinned = not message.is_pinned
    session.add(message)
    await session.flush()
    await session.refresh(message)
    return message
