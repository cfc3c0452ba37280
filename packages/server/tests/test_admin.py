"""
Tests for admin operations.

Covers:
- Self-protection on role change and deletion
- Pre-approved account creation with generated passwords
- Admin-only access to /api/v1/admin
- The setup_admin command line
"""

from __future__ import annotations

import uuid
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from app.core.database import get_session
from app.scripts.setup_admin import DEFAULT_FULL_NAME, build_parser
from app.services import admin as admin_service
from chipchat_shared.schemas.common import UserRole
from chipchat_shared.schemas.profiles import AdminUserCreate

from conftest import CSRF_VALUE


# ---------------------------------------------------------------------------
# Unit Tests: Admin service
# ---------------------------------------------------------------------------

class TestSelfProtection:
    async def test_cannot_change_own_role(self):
        me = uuid.uuid4()
        with pytest.raises(HTTPException) as exc_info:
            await admin_service.set_role(MagicMock(), me, UserRole.MEMBER.value, me)
        assert exc_info.value.status_code == 400

    async def test_cannot_delete_self(self):
        me = uuid.uuid4()
        with pytest.raises(HTTPException) as exc_info:
            await admin_service.delete_user(MagicMock(), me, me)
        assert exc_info.value.status_code == 400

    async def test_delete_unknown_user(self):
        session = MagicMock()
        session.get = AsyncMock(return_value=None)
        with pytest.raises(HTTPException) as exc_info:
            await admin_service.delete_user(session, uuid.uuid4(), uuid.uuid4())
        assert exc_info.value.status_code == 404


class TestCreateUser:
    async def test_generates_password_when_missing(self):
        profile = SimpleNamespace(id=uuid.uuid4())
        session = MagicMock()
        session.refresh = AsyncMock()
        create = AsyncMock(return_value=(SimpleNamespace(), profile))

        with patch("app.services.admin.create_account", create):
            result, temporary = await admin_service.create_user(
                session, AdminUserCreate(email="new@example.com", full_name="New User")
            )

        assert result is profile
        assert temporary
        assert create.await_args.kwargs["password"] == temporary
        assert create.await_args.kwargs["approved"] is True

    async def test_supplied_password_not_echoed(self):
        session = MagicMock()
        session.refresh = AsyncMock()
        create = AsyncMock(return_value=(SimpleNamespace(), SimpleNamespace(id=uuid.uuid4())))

        with patch("app.services.admin.create_account", create):
            _, temporary = await admin_service.create_user(
                session,
                AdminUserCreate(email="new@example.com", full_name="New User", password="secret1"),
            )

        assert temporary is None
        assert create.await_args.kwargs["password"] == "secret1"


# ---------------------------------------------------------------------------
# Integration Tests: Admin API
# ---------------------------------------------------------------------------

class TestAdminAPI:
    @pytest.fixture
    def db_session(self, app):
        session = MagicMock()
        session.commit = AsyncMock()

        async def fake_session():
            yield session

        app.dependency_overrides[get_session] = fake_session
        yield session
        app.dependency_overrides.clear()

    @pytest.mark.parametrize("role", [UserRole.MANAGER, UserRole.MEMBER])
    def test_non_admin_forbidden(self, app, store, cookies_for, db_session, role):
        profile = store.add_profile(role=role)
        resp = TestClient(app, cookies=cookies_for(profile.id)).get("/api/v1/admin/users")
        assert resp.status_code == 403

    def test_delete_user_closes_sockets(self, app, store, cookies_for, db_session):
        admin = store.add_profile(role=UserRole.ADMIN)
        target = uuid.uuid4()
        app.state.realtime = MagicMock()
        app.state.realtime.close_connections_for_user = AsyncMock()

        with patch("app.services.admin.delete_user", AsyncMock()) as delete:
            resp = TestClient(app, cookies=cookies_for(admin.id)).delete(
                f"/api/v1/admin/users/{target}", headers={"X-CSRF-Token": CSRF_VALUE}
            )

        assert resp.status_code == 204
        delete.assert_awaited_once()
        db_session.commit.assert_awaited_once()
        app.state.realtime.close_connections_for_user.assert_awaited_once_with(target)


# ---------------------------------------------------------------------------
# Unit Tests: setup_admin command line
# ---------------------------------------------------------------------------

class TestSetupAdminParser:
    def test_defaults(self):
        args = build_parser().parse_args(["--email", "a@example.com", "--password", "secret1"])
        assert args.full_name == DEFAULT_FULL_NAME
        assert args.init_db is False

    def test_email_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--password", "secret1"])
