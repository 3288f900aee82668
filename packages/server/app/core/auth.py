"""
Authentication and Authorization.

Supports:
- Session lookup from the identity backend's access token (cookie or Bearer header)
- Local JWT verification of that token
- CSRF token generation for cookie-authenticated writes
- Org-scoping and role-based authorization dependencies
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.models.membership import Membership
from app.models.organization import Organization
from app.services import access
from tenant_shared.schemas.common import Role, role_at_least

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "tb_session"
CSRF_COOKIE = "tb_csrf"
PKCE_COOKIE = "tb_pkce_verifier"

# ---------------------------------------------------------------------------
# Access tokens
# ---------------------------------------------------------------------------

def decode_access_token(token: str) -> dict:
    """Decode and verify an access token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        options={"require": ["exp", "sub"]},
    )


# ---------------------------------------------------------------------------
# CSRF Token
# ---------------------------------------------------------------------------

def generate_csrf_token() -> str:
    """Generate a random CSRF token."""
    return secrets.token_urlsafe(32)


def csrf_tokens_match(cookie_token: Optional[str], submitted: Optional[str]) -> bool:
    if not cookie_token or not submitted:
        return False
    return secrets.compare_digest(cookie_token, submitted)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionUser:
    user_id: uuid.UUID
    email: Optional[str]
    access_token: str


def is_bearer_request(request: Request) -> bool:
    return request.headers.get("Authorization", "").startswith("Bearer ")


def _token_from_request(request: Request) -> Optional[str]:
    """Bearer token if given; the session cookie only when no Authorization header is sent."""
    auth_header = request.headers.get("Authorization")
    if auth_header is not None:
        if is_bearer_request(request):
            return auth_header[7:].strip() or None
        return None
    return request.cookies.get(SESSION_COOKIE)


def get_session_user(request: Request) -> Optional[SessionUser]:
    """Resolve the signed-in user, or None. A missing session is not an error."""
    token = _token_from_request(request)
    if not token:
        return None

    try:
        payload = decode_access_token(token)
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError) as exc:
        log.debug("auth.session_invalid", reason=type(exc).__name__)
        return None

    return SessionUser(user_id=user_id, email=payload.get("email"), access_token=token)


async def require_session_user(
    user: Optional[SessionUser] = Depends(get_session_user),
) -> SessionUser:
    """API dependency: 401 when nobody is signed in."""
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


# ---------------------------------------------------------------------------
# Org-scoped authorization
# ---------------------------------------------------------------------------

@dataclass
class OrgContext:
    """An authenticated user plus their membership in the addressed org."""

    user: SessionUser
    org: Organization
    membership: Membership

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.user_id

    @property
    def org_id(self) -> uuid.UUID:
        return self.org.id

    @property
    def role(self) -> Role:
        return Role(self.membership.role)


async def _resolve_org(org_slug: str, session: AsyncSession) -> Organization:
    """Resolve an org by slug, raise 404 if not found."""
    result = await session.execute(
        select(Organization).where(Organization.slug == org_slug)
    )
    org = result.scalar_one_or_none()
    if not org:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


async def get_org_context(
    orgSlug: str,
    user: SessionUser = Depends(require_session_user),
    session: AsyncSession = Depends(get_session),
) -> OrgContext:
    """Main org dependency. Non-members get the same 404 as a missing org."""
    org = await _resolve_org(orgSlug, session)
    membership = await access.get_membership(user.user_id, org.id, session)
    if membership is None:
        log.info("auth.not_a_member", user_id=str(user.user_id), org_id=str(org.id))
        raise HTTPException(status_code=404, detail="Organization not found")
    return OrgContext(user=user, org=org, membership=membership)


def _require_role(min_role: Role):
    async def dependency(ctx: OrgContext = Depends(get_org_context)) -> OrgContext:
        if not role_at_least(ctx.role, min_role):
            log.info(
                "auth.role_denied",
                user_id=str(ctx.user_id),
                org_id=str(ctx.org_id),
                role=ctx.role.value,
                required=min_role.value,
            )
            raise HTTPException(
                status_code=403, detail=f"{min_role.value.capitalize()} access required"
            )
        return ctx

    return dependency


# Any membership (viewer and up) passes get_org_context.
require_member = _require_role(Role.MEMBER)
require_admin = _require_role(Role.ADMIN)
