"""
Task endpoints: the per-thread kanban board.

Status columns: To Do → In Progress → Done. Any column may move to any other.
Assignees must be members of the thread.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.threads import get_member_thread
from app.core.auth import AuthenticatedUser, require_approved
from app.core.database import get_session
from app.models.thread import Thread
from app.services import tasks as task_service
from chipchat_shared.schemas.tasks import TaskBoard, TaskCreate, TaskRead, TaskUpdate

router = APIRouter()


# ---------------------------------------------------------------------------
# Task CRUD
# ---------------------------------------------------------------------------


@router.get("/", response_model=TaskBoard)
async def task_board_endpoint(
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    """Tasks for a thread, grouped by status column."""
    return task_service.build_board(await task_service.list_tasks(session, thread.id))


@router.post("/", response_model=TaskRead, status_code=201)
async def create_task_endpoint(
    body: TaskCreate,
    thread: Thread = Depends(get_member_thread),
    auth: AuthenticatedUser = Depends(require_approved),
    session: AsyncSession = Depends(get_session),
):
    task = await task_service.create_task(session, thread.id, auth.user_id, body)
    return TaskRead.model_validate(task)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task_endpoint(
    task_id: uuid.UUID,
    body: TaskUpdate,
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    """Partial update; moving a card between columns is a status change."""
    task = await task_service.update_task(session, thread.id, task_id, body)
    return TaskRead.model_validate(task)


@router.delete("/{task_id}", status_code=204)
async def delete_task_endpoint(
    task_id: uuid.UUID,
    thread: Thread = Depends(get_member_thread),
    session: AsyncSession = Depends(get_session),
):
    await task_service.delete_task(session, thread.id, task_id)
