"""
Organization API endpoints.

GET    /api/v1/orgs                              - List orgs for authenticated user
POST   /api/v1/orgs                              - Create a new org (caller becomes owner)
GET    /api/v1/orgs/{orgSlug}                    - Get org details
PATCH  /api/v1/orgs/{orgSlug}                    - Update org name/settings (admin)
GET    /api/v1/orgs/{orgSlug}/stats              - Member/project/event counts
GET    /api/v1/orgs/{orgSlug}/members            - List members
POST   /api/v1/orgs/{orgSlug}/members            - Add an existing user (admin)
PATCH  /api/v1/orgs/{orgSlug}/members/{userId}   - Change a member's role (admin)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import (
    OrgContext,
    SessionUser,
    get_org_context,
    require_admin,
    require_session_user,
)
from app.core.database import get_session
from app.services import memberships as membership_service
from app.services import organizations as org_service
from tenant_shared.schemas.memberships import (
    MemberAddRequest,
    MemberListResponse,
    MemberResponse,
    MemberUpdateRequest,
)
from tenant_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgListResponse,
    OrgResponse,
    OrgStats,
    OrgUpdateRequest,
)

# ---------------------------------------------------------------------------
# Non-org-scoped routes (no orgSlug in path)
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.get("/orgs", response_model=OrgListResponse, tags=["Organizations"])
async def list_orgs(
    user: SessionUser = Depends(require_session_user),
    session: AsyncSession = Depends(get_session),
):
    """List orgs the authenticated user belongs to. No memberships is an empty list."""
    items = await org_service.list_user_orgs(user.user_id, session)
    return OrgListResponse(data=items)


@router_global.post("/orgs", response_model=OrgResponse, status_code=201, tags=["Organizations"])
async def create_org(
    body: OrgCreateRequest,
    user: SessionUser = Depends(require_session_user),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its owner."""
    org = await org_service.create_org(body, user.user_id, session)
    return OrgResponse.model_validate(org)


# ---------------------------------------------------------------------------
# Org-scoped routes (orgSlug in path)
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=OrgResponse)
async def get_org(ctx: OrgContext = Depends(get_org_context)):
    """Get org details including settings."""
    return OrgResponse.model_validate(ctx.org)


@router_scoped.patch("", response_model=OrgResponse)
async def update_org(
    body: OrgUpdateRequest,
    ctx: OrgContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Update org name or settings (Admin or Owner). Settings are deep-merged."""
    org = await org_service.update_org(ctx.org, body, ctx.user_id, session)
    return OrgResponse.model_validate(org)


@router_scoped.get("/stats", response_model=OrgStats)
async def get_org_stats(
    ctx: OrgContext = Depends(get_org_context),
    session: AsyncSession = Depends(get_session),
):
    return await org_service.get_org_stats(ctx.org_id, session)


@router_scoped.get("/members", response_model=MemberListResponse)
async def list_members(
    ctx: OrgContext = Depends(get_org_context),
    session: AsyncSession = Depends(get_session),
):
    items = await membership_service.list_members(ctx.org_id, session)
    return MemberListResponse(data=items)


@router_scoped.post("/members", response_model=MemberResponse, status_code=201)
async def add_member(
    body: MemberAddRequest,
    ctx: OrgContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Add an existing user to the org. Granting owner requires an owner."""
    return await membership_service.add_member(ctx.org_id, body, ctx.user_id, session)


@router_scoped.patch("/members/{userId}", response_model=MemberResponse)
async def update_member(
    userId: uuid.UUID,
    body: MemberUpdateRequest,
    ctx: OrgContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    """Change a member's role. Changes involving owner require an owner."""
    return await membership_service.update_member_role(
        ctx.org_id, userId, body, ctx.user_id, session
    )
