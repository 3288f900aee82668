"""
Server-rendered pages.

GET /           - Landing page (redirects signed-in users to the dashboard)
GET /login      - Sign-in triggers for the configured OAuth providers
GET /dashboard  - Profile summary and organization memberships
GET /orgs/new  - Organization creation form
POST /orgs/new - Create an organization from the form (CSRF form field)
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

import structlog
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import CSRF_COOKIE, SessionUser, csrf_tokens_match, get_session_user
from app.core.database import get_session
from app.models.user import User
from app.services import organizations as org_service
from app.services import users as user_service
from tenant_shared.schemas.common import OAuthProvider
from tenant_shared.schemas.memberships import MembershipWithOrganization
from tenant_shared.schemas.organizations import OrgCreateRequest

log = structlog.get_logger()

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

router = APIRouter()

ROLE_BADGE_COLORS = {
    "owner": "primary",
    "admin": "secondary",
    "member": "success",
}

PROVIDER_LABELS = {
    OAuthProvider.GOOGLE: "Google",
    OAuthProvider.GITHUB: "GitHub",
}


def role_badge_color(role: str) -> str:
    return ROLE_BADGE_COLORS.get(getattr(role, "value", role), "default")


def _format_date(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return value.strftime("%B %d, %Y")


def build_dashboard_context(
    user: SessionUser,
    profile: Optional[User],
    memberships: Sequence[MembershipWithOrganization],
) -> dict:
    """
    Everything the dashboard template needs, as plain values.

    A missing profile row renders as blank fields; the email falls back
    to the one carried in the session token.
    """
    orgs = [
        {
            "id": str(m.organization.id),
            "name": m.organization.name,
            "handle": f"@{m.organization.slug}",
            "role": m.role.value,
            "badge": role_badge_color(m.role.value),
        }
        for m in memberships
    ]
    return {
        "display_name": (profile.full_name if profile else None) or "User",
        "email": (profile.email if profile else None) or user.email or "",
        "avatar_url": profile.avatar_url if profile else None,
        "member_since": _format_date(profile.created_at if profile else None),
        "org_count": len(orgs),
        "orgs": orgs,
    }


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, user: Optional[SessionUser] = Depends(get_session_user)):
    if user is not None:
        return RedirectResponse(url="/dashboard", status_code=302)
    return templates.TemplateResponse(request, "home.html", {})


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request):
    providers = [
        {"slug": p.value, "label": PROVIDER_LABELS[p]} for p in OAuthProvider
    ]
    return templates.TemplateResponse(request, "login.html", {"providers": providers})


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard(
    request: Request,
    user: Optional[SessionUser] = Depends(get_session_user),
    session: AsyncSession = Depends(get_session),
):
    if user is None:
        return RedirectResponse(url="/login", status_code=302)

    profile = await user_service.get_user_profile(user.user_id, session)
    if profile is None:
        log.warning("dashboard.profile_missing", user_id=str(user.user_id))
    memberships = await org_service.list_user_memberships(user.user_id, session)

    context = build_dashboard_context(user, profile, memberships)
    context["csrf_token"] = request.cookies.get(CSRF_COOKIE, "")
    return templates.TemplateResponse(request, "dashboard.html", context)


def _new_org_page(
    request: Request,
    *,
    name: str = "",
    slug: str = "",
    error: Optional[str] = None,
    status_code: int = 200,
):
    context = {
        "csrf_token": request.cookies.get(CSRF_COOKIE, ""),
        "name": name,
        "slug": slug,
        "error": error,
    }
    return templates.TemplateResponse(request, "org_new.html", context, status_code=status_code)


@router.get("/orgs/new", response_class=HTMLResponse)
async def new_org_form(request: Request, user: Optional[SessionUser] = Depends(get_session_user)):
    if user is None:
        return RedirectResponse(url="/login", status_code=302)
    return _new_org_page(request)


@router.post("/orgs/new", response_class=HTMLResponse)
async def create_org_from_form(
    request: Request,
    name: str = Form(""),
    slug: str = Form(""),
    csrf_token: str = Form(""),
    user: Optional[SessionUser] = Depends(get_session_user),
    session: AsyncSession = Depends(get_session),
):
    if user is None:
        return RedirectResponse(url="/login", status_code=303)
    if not csrf_tokens_match(request.cookies.get(CSRF_COOKIE), csrf_token):
        raise HTTPException(status_code=403, detail="Invalid or missing CSRF token")

    try:
        req = OrgCreateRequest(name=name.strip(), slug=slug.strip())
    except ValidationError:
        return _new_org_page(
            request,
            name=name,
            slug=slug,
            error="Enter a name and a slug of lowercase letters, digits and hyphens.",
            status_code=400,
        )

    try:
        await org_service.create_org(req, user.user_id, session)
    except HTTPException as exc:
        return _new_org_page(
            request, name=name, slug=slug, error=exc.detail, status_code=exc.status_code
        )
    return RedirectResponse(url="/dashboard", status_code=303)
