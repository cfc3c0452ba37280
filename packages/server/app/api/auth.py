"""
Authentication endpoints.

- Auth pages: GET/POST /login, GET/POST /signup
- Session management under /api/auth: current session, logout
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request, Response
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    AuthenticatedUser,
    create_jwt,
    generate_csrf_token,
    get_authenticated_user,
    resolve_identity,
)
from app.core.database import get_session
from app.core.gates import LANDING_PATH, LOGIN_PATH, PENDING_PATH, SIGNUP_PATH
from app.core.session import clear_session_cookies, set_session_cookies
from app.services import profiles as profile_service
from chipchat_shared.schemas.profiles import AuthResponse, LoginRequest, SignupRequest
from chipchat_shared.schemas.views import AuthPageView

log = structlog.get_logger()

# Mounted at the root: the auth pages are navigation paths under the gate chain.
router = APIRouter()

# Mounted at /api/auth.
api_router = APIRouter()


def _start_session(request: Request, response: Response, profile) -> None:
    settings = request.app.state.settings
    token, _jti = create_jwt(profile.id, profile.email, settings=settings)
    set_session_cookies(response, settings, token, csrf=generate_csrf_token())


def _landing_for(profile) -> str:
    return LANDING_PATH if profile.is_approved else PENDING_PATH


# ---------------------------------------------------------------------------
# Auth pages
# ---------------------------------------------------------------------------

@router.get(LOGIN_PATH, response_model=AuthPageView)
async def login_page():
    return AuthPageView(page="login", fields=["email", "password"], submit_to=LOGIN_PATH)


@router.get(SIGNUP_PATH, response_model=AuthPageView)
async def signup_page():
    return AuthPageView(
        page="signup",
        fields=["email", "password", "full_name", "job_title", "company"],
        submit_to=SIGNUP_PATH,
    )


@router.post(SIGNUP_PATH, response_model=AuthResponse, status_code=201)
async def signup(
    body: SignupRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Register with email/password. The account waits for admin approval."""
    user, profile = await profile_service.signup(session, body)
    _start_session(request, response, profile)
    return AuthResponse(
        user_id=str(user.id),
        email=user.email,
        is_approved=profile.is_approved,
        redirect_to=_landing_for(profile),
        message="Registration successful",
    )


@router.post(LOGIN_PATH, response_model=AuthResponse)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and receive a cookie session."""
    user, profile = await profile_service.authenticate(session, body.email, body.password)
    _start_session(request, response, profile)
    return AuthResponse(
        user_id=str(user.id),
        email=user.email,
        is_approved=profile.is_approved,
        redirect_to=_landing_for(profile),
        message="Login successful",
    )


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@api_router.get("/session")
async def current_session(auth: AuthenticatedUser = Depends(get_authenticated_user)):
    """Who the cookie session belongs to."""
    return {
        "user_id": str(auth.user_id),
        "email": auth.identity.email,
        "role": auth.role.value,
        "is_approved": auth.profile.is_approved,
        "expires_at": auth.identity.expires_at.isoformat(),
    }


@api_router.post("/logout")
async def logout(request: Request, response: Response):
    """Invalidate the current session."""
    identity = await resolve_identity(request)
    if identity is not None:
        try:
            await request.app.state.session_resolver.revoke(identity)
            log.info("auth.logout", user_id=str(identity.user_id))
        except RedisError as exc:
            # Cookies are still cleared; the token expires on its own.
            log.warning("auth.revoke_failed", user_id=str(identity.user_id), error=str(exc))

    clear_session_cookies(response)
    return {"message": "Logged out"}
