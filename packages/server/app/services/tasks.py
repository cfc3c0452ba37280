"""
Task service: the per-thread kanban board.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.task import Task
from app.services import threads as thread_service
from chipchat_shared.schemas.common import TaskStatus
from chipchat_shared.schemas.tasks import TaskBoard, TaskCreate, TaskRead, TaskUpdate


async def get_task_or_404(
    session: AsyncSession, task_id: uuid.UUID, thread_id: uuid.UUID
) -> Task:
    task = await session.get(Task, task_id)
    if not task or task.thread_id != thread_id:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


def build_board(tasks: Iterable[TaskRead]) -> TaskBoard:
    board = TaskBoard()
    for task in tasks:
        getattr(board, task.status.value).append(task)
    return board


async def list_tasks(session: AsyncSession, thread_id: uuid.UUID) -> list[TaskRead]:
    result = await session.execute(
        select(Task).where(Task.thread_id == thread_id).order_by(Task.created_at.desc())
    )
    return [TaskRead.model_validate(t) for t in result.scalars().all()]


async def _check_assignee(
    session: AsyncSession, thread_id: uuid.UUID, assignee: uuid.UUID | None
) -> None:
    if assignee is not None and not await thread_service.is_member(session, thread_id, assignee):
        raise HTTPException(status_code=422, detail="Assignee is not a member of this thread")


async def create_task(
    session: AsyncSession, thread_id: uuid.UUID, creator_id: uuid.UUID, body: TaskCreate
) -> Task:
    await _check_assignee(session, thread_id, body.assigned_to)
    task = Task(
        thread_id=thread_id,
        title=body.title.strip(),
        description=body.description or None,
        assigned_to=body.assigned_to,
        due_date=body.due_date,
        linked_message_id=body.linked_message_id,
        linked_meeting_id=body.linked_meeting_id,
        status=TaskStatus.TODO.value,
        created_by=creator_id,
    )
    session.add(task)
    await session.flush()
    await session.refresh(task)
    return task


async def update_task(
    session: AsyncSession, thread_id: uuid.UUID, task_id: uuid.UUID, body: TaskUpdate
) -> Task:
    task = await get_task_or_404(session, task_id, thread_id)
    changes = body.model_dump(exclude_unset=True)
    # title and status are NOT NULL; an explicit null leaves them unchanged
    for required in ("title", "status"):
        if changes.get(required, "") is None:
            del changes[required]
    if "assigned_to" in changes:
        await _check_assignee(session, thread_id, changes["assigned_to"])
    if "status" in changes:
        changes["status"] = TaskStatus(changes["status"]).value
    for field, value in changes.items():
        setattr(task, field, value)
    session.add(task)
    await session.flush()
    await session.refresh(task)
    return task


async def delete_task(session: AsyncSession, thread_id: uuid.UUID, task_id: uuid.UUID) -> None:
    task = await get_task_or_404(session, task_id, thread_id)
    await session.delete(task)
    await session.flush()
