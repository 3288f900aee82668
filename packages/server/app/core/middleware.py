"""
Security middleware for browser sessions.

SecurityHeadersMiddleware stamps hardening headers on every response;
CSRFMiddleware enforces the double-submit cookie on cookie-authenticated writes.
"""

from __future__ import annotations

from typing import Iterable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.auth import CSRF_COOKIE, SESSION_COOKIE, csrf_tokens_match, is_bearer_request

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
CSRF_HEADER = "X-CSRF-Token"

# Form posts that carry their own csrf_token field
CSRF_FORM_PATHS = frozenset({"/auth/logout", "/orgs/new"})

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:; "
        "form-action 'self'; "
        "frame-ancestors 'none';"
    ),
}

HSTS_HEADER = ("Strict-Transport-Security", "max-age=63072000; includeSubDomains")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers without clobbering values a route already set."""

    def __init__(self, app: ASGIApp, *, hsts: bool = True):
        super().__init__(app)
        self.headers = dict(SECURITY_HEADERS)
        if hsts:
            self.headers[HSTS_HEADER[0]] = HSTS_HEADER[1]

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response


def _csrf_error() -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={
            "error": {
                "code": "CSRF_VALIDATION_FAILED",
                "message": "Invalid or missing CSRF token.",
                "status": 403,
            }
        },
    )


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit cookie CSRF protection.

    Only cookie-authenticated writes are checked: the X-CSRF-Token header must
    equal the CSRF cookie. Bearer-token requests never carry ambient
    credentials and pass through.
    """

    def __init__(self, app: ASGIApp, *, form_paths: Optional[Iterable[str]] = None):
        super().__init__(app)
        self.form_paths = frozenset(form_paths) if form_paths is not None else CSRF_FORM_PATHS

    def _exempt(self, request: Request) -> bool:
        return (
            request.method in SAFE_METHODS
            or is_bearer_request(request)
            or SESSION_COOKIE not in request.cookies
            or request.url.path in self.form_paths
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        if self._exempt(request):
            return await call_next(request)

        if not csrf_tokens_match(request.cookies.get(CSRF_COOKIE), request.headers.get(CSRF_HEADER)):
            return _csrf_error()

        return await call_next(request)
