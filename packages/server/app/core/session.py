"""
Session resolution from the ``cc_session`` cookie.

Resolution never raises: a missing, malformed, expired or revoked token and an
unreachable revocation store all come back as an anonymous session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from redis.exceptions import RedisError
from starlette.requests import HTTPConnection, cookie_parser
from starlette.responses import Response

from app.core.auth import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    Identity,
    SessionRevocations,
    create_jwt,
    decode_jwt,
)
from app.core.config import Settings

log = structlog.get_logger()


@dataclass(frozen=True)
class SessionState:
    identity: Optional[Identity] = None
    refreshed_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None


ANONYMOUS = SessionState()


class SessionResolver:
    """Turns request cookies into an Identity, refreshing tokens near expiry."""

    def __init__(self, settings: Settings, revocations: SessionRevocations) -> None:
        self._settings = settings
        self._revocations = revocations

    async def resolve(self, conn: HTTPConnection, *, allow_refresh: bool = True) -> SessionState:
        token = conn.cookies.get(SESSION_COOKIE)
        if not token:
            return ANONYMOUS

        try:
            payload = decode_jwt(token, settings=self._settings)
            identity = Identity.from_claims(payload)
        except (jwt.PyJWTError, KeyError, ValueError, TypeError):
            return ANONYMOUS

        try:
            if identity.jti and await self._revocations.is_revoked(identity.jti):
                return ANONYMOUS
        except (RedisError, OSError) as exc:
            log.warning("session.revocation_check_failed", error=str(exc))
            return ANONYMOUS

        if allow_refresh and self._needs_refresh(identity):
            new_token, _jti = create_jwt(identity.user_id, identity.email, settings=self._settings)
            refreshed = Identity.from_claims(decode_jwt(new_token, settings=self._settings))
            log.debug("session.refreshed", user_id=str(identity.user_id))
            return SessionState(identity=refreshed, refreshed_token=new_token)

        return SessionState(identity=identity)

    def _needs_refresh(self, identity: Identity) -> bool:
        remaining = identity.expires_at - datetime.now(timezone.utc)
        return remaining <= timedelta(minutes=self._settings.jwt_refresh_threshold_minutes)

    async def revoke(self, identity: Identity) -> None:
        if not identity.jti:
            return
        ttl = int((identity.expires_at - datetime.now(timezone.utc)).total_seconds())
        await self._revocations.revoke(identity.jti, ttl_seconds=ttl)


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------

def session_cookie_kwargs(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": not settings.debug,  # allow non-HTTPS in dev
        "samesite": "lax",
        "path": "/",
        "max_age": settings.jwt_expire_minutes * 60,
    }


def set_session_cookies(
    response: Response, settings: Settings, token: str, csrf: Optional[str] = None
) -> None:
    """Set the session JWT (and optionally a fresh CSRF cookie) on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **session_cookie_kwargs(settings))
    if csrf is not None:
        response.set_cookie(
            key=CSRF_COOKIE,
            value=csrf,
            httponly=False,  # JS must read this
            secure=not settings.debug,
            samesite="lax",
            path="/",
            max_age=settings.jwt_expire_minutes * 60,
        )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")


def replace_request_cookie(scope: dict, name: str, value: str) -> None:
    """Rewrite the Cookie header in an ASGI scope so later reads see ``value``."""
    cookies: dict[str, str] = {}
    headers = []
    for key, raw in scope.get("headers", []):
        if key == b"cookie":
            cookies.update(cookie_parser(raw.decode("latin-1")))
        else:
            headers.append((key, raw))
    cookies[name] = value
    cookie_header = "; ".join(f"{k}={v}" for k, v in cookies.items())
    headers.append((b"cookie", cookie_header.encode("latin-1")))
    scope["headers"] = headers
