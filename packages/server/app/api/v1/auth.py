"""
Authentication endpoints.

- OAuth sign-in triggers (Google/GitHub) delegated to the identity backend
- OAuth callback: code exchange and session cookies
- Sign-out
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from fastapi.responses import RedirectResponse

from app.core.auth import (
    CSRF_COOKIE,
    PKCE_COOKIE,
    SESSION_COOKIE,
    csrf_tokens_match,
    generate_csrf_token,
)
from app.core.config import get_settings
from app.core.identity import IdentityClient, IdentityError, get_identity_client
from tenant_shared.schemas.common import OAuthProvider

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

PKCE_COOKIE_MAX_AGE = 10 * 60


def _cookie_kwargs(max_age: int, *, httponly: bool = True) -> dict:
    return {
        "httponly": httponly,
        "secure": not settings.debug,  # allow non-HTTPS in dev
        "samesite": "lax",
        "path": "/",
        "max_age": max_age,
    }


def _set_session_cookies(response: Response, token: str, csrf: str, max_age: int) -> None:
    """Set the session token and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, **_cookie_kwargs(max_age))
    # Templates and JS read the CSRF cookie
    response.set_cookie(key=CSRF_COOKIE, value=csrf, **_cookie_kwargs(max_age, httponly=False))


def _origin(request: Request) -> str:
    return str(request.base_url).rstrip("/")


# ---------------------------------------------------------------------------
# OAuth sign-in
# ---------------------------------------------------------------------------

@router.get("/login/{provider}")
async def oauth_login(
    provider: str,
    request: Request,
    identity: IdentityClient = Depends(get_identity_client),
):
    """Start the OAuth flow for a provider. Failures go back to the login page, no retry."""
    if provider not in {p.value for p in OAuthProvider}:
        raise HTTPException(status_code=400, detail="Unsupported OAuth provider")

    try:
        redirect = await identity.sign_in_with_oauth(
            provider, redirect_to=f"{_origin(request)}/auth/callback"
        )
    except IdentityError as exc:
        log.error("auth.oauth_error", provider=provider, error=str(exc))
        return RedirectResponse("/login", status_code=302)

    response = RedirectResponse(redirect.url, status_code=302)
    response.set_cookie(
        key=PKCE_COOKIE,
        value=redirect.code_verifier,
        **_cookie_kwargs(PKCE_COOKIE_MAX_AGE),
    )
    log.info("auth.oauth_started", provider=provider)
    return response


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    identity: IdentityClient = Depends(get_identity_client),
):
    """Exchange the authorization code for a session and land on the dashboard."""
    verifier = request.cookies.get(PKCE_COOKIE)
    if not code or not verifier:
        log.warning("auth.callback_failed", reason="missing_code_or_verifier")
        return RedirectResponse("/login", status_code=302)

    try:
        session = await identity.exchange_code_for_session(code, verifier)
    except IdentityError as exc:
        log.warning("auth.callback_failed", reason="exchange_failed", error=str(exc))
        return RedirectResponse("/login", status_code=302)

    response = RedirectResponse("/dashboard", status_code=302)
    _set_session_cookies(response, session.access_token, generate_csrf_token(), session.expires_in)
    response.delete_cookie(PKCE_COOKIE, path="/")

    log.info("auth.login_success", user_id=str(session.user_id))
    return response


# ---------------------------------------------------------------------------
# Session Management
# ---------------------------------------------------------------------------

@router.post("/logout")
async def logout(
    request: Request,
    csrf_token: str = Form(""),
    identity: IdentityClient = Depends(get_identity_client),
):
    """Invalidate the current session and return to the login page."""
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        if not csrf_tokens_match(request.cookies.get(CSRF_COOKIE), csrf_token):
            raise HTTPException(status_code=403, detail="Invalid or missing CSRF token")
        try:
            await identity.sign_out(token)
        except IdentityError as exc:
            # Local cookies are cleared regardless
            log.warning("auth.sign_out_failed", error=str(exc))

    response = RedirectResponse("/login", status_code=303)
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return response
