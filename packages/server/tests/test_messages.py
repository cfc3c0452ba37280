"""
Tests for thread messages.

Covers:
- Mention parsing and resolution against thread members
- Reply-target validation
- Posting through the API: membership check, commit, realtime publish
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from redis.exceptions import RedisError

from app.core.database import get_session
from app.services.messages import parse_mention_tokens, post_message, resolve_mentions
from chipchat_shared.schemas.threads import MessageCreate, ThreadMemberRead

from conftest import CSRF_VALUE


def _member(name: str) -> ThreadMemberRead:
    return ThreadMemberRead(
        user_id=uuid.uuid4(), full_name=name, joined_at=datetime.now(timezone.utc)
    )


# ---------------------------------------------------------------------------
# Unit Tests: Mentions
# ---------------------------------------------------------------------------

class TestMentions:
    def test_tokens(self):
        assert parse_mention_tokens("hey @ada and @grace_h, see @ada") == ["ada", "grace_h", "ada"]

    def test_no_tokens(self):
        assert parse_mention_tokens("email me at nobody") == []

    def test_resolve_case_insensitive_substring(self):
        ada = _member("Ada Lovelace")
        grace = _member("Grace Hopper")
        assert resolve_mentions("thanks @lovelace", [ada, grace]) == [ada.user_id]
        assert resolve_mentions("@ADA @hopper", [ada, grace]) == [ada.user_id, grace.user_id]

    def test_resolve_without_mentions(self):
        assert resolve_mentions("plain text", [_member("Ada")]) == []

    def test_unknown_name_matches_nobody(self):
        assert resolve_mentions("@linus", [_member("Ada Lovelace")]) == []


class TestReplyTarget:
    async def test_parent_in_other_thread_rejected(self):
        thread = SimpleNamespace(id=uuid.uuid4())
        session = MagicMock()
        session.get = AsyncMock(return_value=SimpleNamespace(thread_id=uuid.uuid4()))

        with pytest.raises(HTTPException) as exc_info:
            await post_message(
                session, thread, uuid.uuid4(), MessageCreate(content="hi", parent_id=uuid.uuid4())
            )
        assert exc_info.value.status_code == 422


# ---------------------------------------------------------------------------
# Integration Tests: POST /messages
# ---------------------------------------------------------------------------

def _stored_message(thread_id: uuid.UUID, user_id: uuid.UUID) -> SimpleNamespace:
    now = datetime.now(timezone.utc)
    return SimpleNamespace(
        id=uuid.uuid4(),
        thread_id=thread_id,
        user_id=user_id,
        content="hello",
        parent_id=None,
        is_pinned=False,
        is_edited=False,
        mentions=[],
        created_at=now,
        updated_at=now,
    )


class TestPostMessageEndpoint:
    @pytest.fixture
    def db_session(self, app):
        session = MagicMock()
        session.commit = AsyncMock()

        async def fake_session():
            yield session

        app.dependency_overrides[get_session] = fake_session
        yield session
        app.dependency_overrides.clear()

    def _post(self, app, cookies, thread_id):
        client = TestClient(app, cookies=cookies)
        return client.post(
            f"/api/v1/threads/{thread_id}/messages",
            json={"content": "hello"},
            headers={"X-CSRF-Token": CSRF_VALUE},
        )

    def test_member_posts_and_publishes(self, app, store, mock_redis, cookies_for, db_session):
        profile = store.add_profile()
        thread = SimpleNamespace(id=uuid.uuid4())
        stored = _stored_message(thread.id, profile.id)

        with patch("app.services.threads.get_thread_or_404", AsyncMock(return_value=thread)), \
                patch("app.services.threads.is_member", AsyncMock(return_value=True)), \
                patch("app.services.messages.post_message", AsyncMock(return_value=stored)):
            resp = self._post(app, cookies_for(profile.id), thread.id)

        assert resp.status_code == 201
        assert resp.json()["id"] == str(stored.id)
        db_session.commit.assert_awaited_once()
        channel, _payload = mock_redis.publish.await_args.args
        assert channel == f"cc:thread:{thread.id}"

    def test_non_member_forbidden(self, app, store, mock_redis, cookies_for, db_session):
        profile = store.add_profile()
        thread = SimpleNamespace(id=uuid.uuid4())

        with patch("app.services.threads.get_thread_or_404", AsyncMock(return_value=thread)), \
                patch("app.services.threads.is_member", AsyncMock(return_value=False)):
            resp = self._post(app, cookies_for(profile.id), thread.id)

        assert resp.status_code == 403
        mock_redis.publish.assert_not_awaited()

    def test_publish_failure_still_returns_message(self, app, store, mock_redis, cookies_for, db_session):
        profile = store.add_profile()
        thread = SimpleNamespace(id=uuid.uuid4())
        mock_redis.publish.side_effect = RedisError("down")

        with patch("app.services.threads.get_thread_or_404", AsyncMock(return_value=thread)), \
                patch("app.services.threads.is_member", AsyncMock(return_value=True)), \
                patch("app.services.messages.post_message",
                      AsyncMock(return_value=_stored_message(thread.id, profile.id))):
            resp = self._post(app, cookies_for(profile.id), thread.id)

        assert resp.status_code == 201

    def test_unapproved_forbidden(self, app, store, cookies_for, db_session):
        profile = store.add_profile(approved=False)
        resp = self._post(app, cookies_for(profile.id), uuid.uuid4())
        assert resp.status_code == 403
