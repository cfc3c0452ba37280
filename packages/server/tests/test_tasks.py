"""
Tests for the thread kanban board.

Tests cover:
- Grouping tasks into board columns
- Partial updates, including explicit nulls on required fields
- Assignee membership validation
- Thread scoping of task lookups
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException

from app.services import tasks as task_service
from chipchat_shared.schemas.common import TaskStatus
from chipchat_shared.schemas.tasks import TaskCreate, TaskRead, TaskUpdate


def _read(status: TaskStatus, title: str = "t") -> TaskRead:
    now = datetime.now(timezone.utc)
    return TaskRead(
        id=uuid.uuid4(),
        thread_id=uuid.uuid4(),
        title=title,
        status=status,
        created_by=uuid.uuid4(),
        created_at=now,
        updated_at=now,
    )


def _session_with(task=None) -> MagicMock:
    session = MagicMock()
    session.get = AsyncMock(return_value=task)
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    return session


# ---------------------------------------------------------------------------
# Unit tests: Board
# ---------------------------------------------------------------------------


class TestBoard:
    def test_groups_by_status(self):
        tasks = [
            _read(TaskStatus.TODO, "a"),
            _read(TaskStatus.DONE, "b"),
            _read(TaskStatus.IN_PROGRESS, "c"),
            _read(TaskStatus.TODO, "d"),
        ]
        board = task_service.build_board(tasks)
        assert [t.title for t in board.todo] == ["a", "d"]
        assert [t.title for t in board.in_progress] == ["c"]
        assert [t.title for t in board.done] == ["b"]

    def test_empty_board(self):
        board = task_service.build_board([])
        assert board.todo == board.in_progress == board.done == []


# ---------------------------------------------------------------------------
# Unit tests: Create / update / delete
# ---------------------------------------------------------------------------


class TestTaskService:
    async def test_create_starts_in_todo(self):
        session = _session_with()
        task = await task_service.create_task(
            session, uuid.uuid4(), uuid.uuid4(), TaskCreate(title="  Write notes  ")
        )
        assert task.status == TaskStatus.TODO.value
        assert task.title == "Write notes"

    async def test_assignee_must_be_member(self):
        with patch("app.services.threads.is_member", AsyncMock(return_value=False)):
            with pytest.raises(HTTPException) as exc_info:
                await task_service.create_task(
                    _session_with(),
                    uuid.uuid4(),
                    uuid.uuid4(),
                    TaskCreate(title="x", assigned_to=uuid.uuid4()),
                )
        assert exc_info.value.status_code == 422

    async def test_update_moves_column(self):
        thread_id = uuid.uuid4()
        task = SimpleNamespace(thread_id=thread_id, title="x", status="todo", description=None)

        await task_service.update_task(
            _session_with(task), thread_id, uuid.uuid4(), TaskUpdate(status=TaskStatus.DONE)
        )
        assert task.status == "done"
        assert task.title == "x"

    async def test_explicit_null_title_ignored(self):
        thread_id = uuid.uuid4()
        task = SimpleNamespace(thread_id=thread_id, title="keep", status="todo", description="d")

        await task_service.update_task(
            _session_with(task),
            thread_id,
            uuid.uuid4(),
            TaskUpdate.model_validate({"title": None, "description": None}),
        )
        assert task.title == "keep"
        assert task.description is None

    async def test_task_from_other_thread_is_404(self):
        task = SimpleNamespace(thread_id=uuid.uuid4())
        with pytest.raises(HTTPException) as exc_info:
            await task_service.delete_task(_session_with(task), uuid.uuid4(), uuid.uuid4())
        assert exc_info.value.status_code == 404

    async def test_delete(self):
        thread_id = uuid.uuid4()
        task = SimpleNamespace(thread_id=thread_id)
        session = _session_with(task)
        await task_service.delete_task(session, thread_id, uuid.uuid4())
        session.delete.assert_awaited_once_with(task)
