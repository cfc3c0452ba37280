"""
Response hardening and double-submit CSRF checks for cookie sessions.
"""

from __future__ import annotations

import secrets

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE

CSRF_HEADER = "X-CSRF-Token"
CSRF_ERROR = "Invalid or missing CSRF token"
UNCHECKED_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Meetings capture camera and microphone on our own origin and reach the SFU.
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(self), microphone=(self), display-capture=(self), geolocation=()",
    "Content-Security-Policy": "; ".join([
        "default-src 'self'",
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
        "img-src 'self' data: blob:",
        "media-src 'self' blob:",
        "connect-src 'self' wss://*.livekit.cloud https://*.livekit.cloud",
        "frame-ancestors 'none'",
    ]),
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response


def csrf_token_matches(request: Request) -> bool:
    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    if not cookie_token or not header_token:
        return False
    return secrets.compare_digest(cookie_token.encode(), header_token.encode())


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Unsafe methods carrying a session cookie must echo the CSRF cookie in
    ``X-CSRF-Token``. Requests without a session (login and signup forms,
    non-browser clients) pass through.

    Rejections use the ``{"error": "<message>"}`` body of the video endpoints.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        needs_check = (
            request.method not in UNCHECKED_METHODS
            and SESSION_COOKIE in request.cookies
        )
        if needs_check and not csrf_token_matches(request):
            return JSONResponse(status_code=403, content={"error": CSRF_ERROR})
        return await call_next(request)
