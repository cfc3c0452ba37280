"""
Navigation gates: session → approval → role redirects.

``evaluate_gate_chain`` is the pure rule sequence. ``SessionGateMiddleware``
resolves the session (refreshing the cookie when needed), runs the chain for
navigation paths and either redirects or lets the request through.

Rule order, each short-circuiting:

1. anonymous, not on an auth page           → /login
2. signed in, on an auth page               → /threads
3. signed in, not approved (outside the auth and pending pages) → /pending-approval
4. signed in, under /admin, role is not admin → /threads
5. allow
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog
from pydantic import ValidationError
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from app.core.access import AccessProfile
from app.core.auth import SESSION_COOKIE, Identity, load_profile_once
from app.core.config import Settings
from app.core.session import SessionState, replace_request_cookie, set_session_cookies
from chipchat_shared.schemas.common import UserRole

log = structlog.get_logger()

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
PENDING_PATH = "/pending-approval"
ADMIN_PREFIX = "/admin"
LANDING_PATH = "/threads"

AUTH_PAGE_PREFIXES = (LOGIN_PATH, SIGNUP_PATH)

# Self-authenticating surfaces; they answer 401/403 instead of redirecting.
UNGATED_PREFIXES = ("/api", "/health", "/ready", "/docs", "/redoc", "/openapi.json")


class GateOutcome(str, Enum):
    ALLOWED = "allowed"
    TO_LOGIN = "redirected-to-login"
    TO_APP = "redirected-to-app"
    TO_PENDING = "redirected-to-pending"
    TO_APP_FROM_ADMIN = "redirected-to-app-from-admin"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    location: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.ALLOWED


ALLOW = GateDecision(GateOutcome.ALLOWED)

ProfileLoader = Callable[[], Awaitable[Optional[AccessProfile]]]


def is_auth_page(path: str) -> bool:
    return path.startswith(AUTH_PAGE_PREFIXES)


def is_gated_path(path: str) -> bool:
    return not path.startswith(UNGATED_PREFIXES)


async def evaluate_gate_chain(
    path: str,
    identity: Optional[Identity],
    load_profile: ProfileLoader,
) -> GateDecision:
    auth_page = is_auth_page(path)

    if identity is None:
        if auth_page:
            return ALLOW
        return GateDecision(GateOutcome.TO_LOGIN, LOGIN_PATH)

    if auth_page:
        return GateDecision(GateOutcome.TO_APP, LANDING_PATH)

    if path.startswith(PENDING_PATH):
        return ALLOW

    try:
        profile = await load_profile()
    except (SQLAlchemyError, ValidationError, RedisError, OSError) as exc:
        # Fail closed: an unreadable profile is treated as not yet approved.
        log.warning("gate.profile_lookup_failed", user_id=str(identity.user_id), error=str(exc))
        return GateDecision(GateOutcome.TO_PENDING, PENDING_PATH)

    if profile is not None and not profile.is_approved:
        return GateDecision(GateOutcome.TO_PENDING, PENDING_PATH)

    if path.startswith(ADMIN_PREFIX) and (profile is None or profile.role != UserRole.ADMIN):
        return GateDecision(GateOutcome.TO_APP_FROM_ADMIN, LANDING_PATH)

    return ALLOW


class SessionGateMiddleware(BaseHTTPMiddleware):
    """Resolve the session cookie and apply the navigation gates."""

    async def dispatch(self, request: Request, call_next) -> Response:
        app_state = request.app.state
        settings = app_state.settings

        if settings.gating_disabled:
            return await call_next(request)

        session = await app_state.session_resolver.resolve(request)
        request.state.session = session
        if session.refreshed_token:
            replace_request_cookie(request.scope, SESSION_COOKIE, session.refreshed_token)

        path = request.url.path
        if is_gated_path(path):
            decision = await evaluate_gate_chain(
                path, session.identity, lambda: self._load_profile(request, session.identity)
            )
            if not decision.allowed:
                log.debug("gate.redirect", path=path, outcome=decision.outcome.value)
                response: Response = RedirectResponse(
                    str(request.url.replace(path=decision.location)), status_code=307
                )
                self._propagate(response, session, settings)
                return response

        response = await call_next(request)
        self._propagate(response, session, settings)
        return response

    @staticmethod
    async def _load_profile(request: Request, identity: Identity) -> Optional[AccessProfile]:
        async with request.app.state.access_store_factory() as store:
            return await load_profile_once(request, store, identity.user_id)

    @staticmethod
    def _propagate(response: Response, session: SessionState, settings: Settings) -> None:
        if session.refreshed_token:
            set_session_cookies(response, settings, session.refreshed_token)
