"""
Authentication and Authorization for ChipChat.

Supports:
- Email/Password login with bcrypt hashes
- JWT cookie sessions with a Redis revocation list
- Identity resolution shared by the gate middleware and API dependencies
- Approval and role-based authorization dependencies
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import redis.asyncio as redis
import structlog
from fastapi import Depends, HTTPException, Request
from starlette.requests import HTTPConnection

from app.core.access import AccessProfile, AccessStore, get_access_store
from app.core.config import Settings, get_settings
from chipchat_shared.schemas.common import UserRole

log = structlog.get_logger()

SESSION_COOKIE = "cc_session"
CSRF_COOKIE = "cc_csrf"

_UNSET = object()

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


def generate_temporary_password() -> str:
    return secrets.token_urlsafe(9)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    email: str | None,
    *,
    settings: Settings | None = None,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session JWT. Returns (token, jti)."""
    settings = settings or get_settings()
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str, *, settings: Settings | None = None) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    settings = settings or get_settings()
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


@dataclass(frozen=True)
class Identity:
    """The authenticated caller as carried by the session token."""

    user_id: uuid.UUID
    email: Optional[str]
    jti: Optional[str]
    expires_at: datetime

    @classmethod
    def from_claims(cls, payload: dict) -> "Identity":
        """Raises KeyError/ValueError/TypeError on malformed claims."""
        return cls(
            user_id=uuid.UUID(payload["sub"]),
            email=payload.get("email"),
            jti=payload.get("jti"),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

class SessionRevocations:
    """Revoked session ids, kept until the token would have expired anyway."""

    KEY_PREFIX = "cc:session:revoked:"

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    async def revoke(self, jti: str, ttl_seconds: int = 3600) -> None:
        await self._redis.setex(f"{self.KEY_PREFIX}{jti}", max(ttl_seconds, 1), "1")

    async def is_revoked(self, jti: str) -> bool:
        return await self._redis.exists(f"{self.KEY_PREFIX}{jti}") > 0


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Identity resolution
# ---------------------------------------------------------------------------

async def resolve_identity(conn: HTTPConnection) -> Optional[Identity]:
    """Resolve the caller once per request; the gate middleware may already have."""
    state = getattr(conn.state, "session", None)
    if state is None:
        # Refresh only happens in the middleware, which owns the response cookies.
        state = await conn.app.state.session_resolver.resolve(conn, allow_refresh=False)
        conn.state.session = state
    return state.identity


class AuthenticatedUser:
    """Container for an authenticated identity + its profile."""

    def __init__(self, identity: Identity, profile: AccessProfile):
        self.identity = identity
        self.profile = profile
        self.user_id = identity.user_id
        self.role = profile.role

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def load_profile_once(
    conn: HTTPConnection, store: AccessStore, user_id: uuid.UUID
) -> Optional[AccessProfile]:
    """Profile lookup cached on the request so gates and handlers share it."""
    cached = getattr(conn.state, "profile", _UNSET)
    if cached is not _UNSET:
        return cached
    profile = await store.get_profile(user_id)
    conn.state.profile = profile
    return profile


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

async def require_identity(request: Request) -> Identity:
    identity = await resolve_identity(request)
    if identity is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return identity


async def get_authenticated_user(
    request: Request,
    identity: Identity = Depends(require_identity),
    store: AccessStore = Depends(get_access_store),
) -> AuthenticatedUser:
    profile = await load_profile_once(request, store, identity.user_id)
    if profile is None:
        raise HTTPException(status_code=403, detail="Profile not found")
    return AuthenticatedUser(identity=identity, profile=profile)


# ---------------------------------------------------------------------------
# Authorization dependencies (approval + role checks)
# ---------------------------------------------------------------------------

async def require_approved(
    auth: AuthenticatedUser = Depends(get_authenticated_user),
) -> AuthenticatedUser:
    """Any approved account can access this endpoint."""
    if not auth.profile.is_approved:
        raise HTTPException(status_code=403, detail="Account pending approval")
    return auth


async def require_admin(
    auth: AuthenticatedUser = Depends(require_approved),
) -> AuthenticatedUser:
    """Requires the admin role."""
    if not auth.is_admin:
        log.warning("auth.admin_required", user_id=str(auth.user_id), role=auth.role.value)
        raise HTTPException(status_code=403, detail="Administrator access required")
    return auth
