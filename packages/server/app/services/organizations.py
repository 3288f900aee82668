"""
Organization service: business logic for org CRUD, membership listing and stats.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.event import Event
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.project import Project
from app.models.user import User
from app.services.events import record_event

from tenant_shared.schemas.common import ProjectStatus, Role
from tenant_shared.schemas.memberships import MembershipWithOrganization, OrganizationSummary
from tenant_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgStats,
    OrgUpdateRequest,
)

log = structlog.get_logger()


def _deep_merge(base: dict, patch: dict) -> dict:
    """JSON Merge Patch style deep merge."""
    result = base.copy()
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


async def list_user_memberships(
    user_id: uuid.UUID, session: AsyncSession
) -> list[MembershipWithOrganization]:
    """All memberships of a user, each joined with its organization."""
    result = await session.execute(
        select(Membership, Organization)
        .join(Organization, Membership.organization_id == Organization.id)
        .where(Membership.user_id == user_id)
        .order_by(Organization.name)
    )
    return [
        MembershipWithOrganization(
            id=membership.id,
            organization_id=membership.organization_id,
            user_id=membership.user_id,
            role=membership.role,
            invited_by=membership.invited_by,
            created_at=membership.created_at,
            updated_at=membership.updated_at,
            organization=OrganizationSummary.model_validate(org),
        )
        for membership, org in result.all()
    ]


async def list_user_orgs(
    user_id: uuid.UUID, session: AsyncSession
) -> list[dict]:
    """List all orgs a user belongs to, with their role."""
    memberships = await list_user_memberships(user_id, session)
    return [
        {
            "id": m.organization.id,
            "name": m.organization.name,
            "slug": m.organization.slug,
            "role": m.role,
        }
        for m in memberships
    ]


async def create_org(
    req: OrgCreateRequest,
    creator_id: uuid.UUID,
    session: AsyncSession,
) -> Organization:
    """Create an org and make the creator its owner."""
    result = await session.execute(select(User).where(User.id == creator_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="User profile not found")

    existing = await session.execute(
        select(Organization).where(Organization.slug == req.slug)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="Org slug already taken")

    org = Organization(name=req.name, slug=req.slug, settings=req.settings)
    session.add(org)
    await session.flush()

    membership = Membership(
        organization_id=org.id,
        user_id=creator_id,
        role=Role.OWNER.value,
    )
    session.add(membership)
    await session.flush()

    await record_event(
        session,
        org_id=org.id,
        user_id=creator_id,
        event_type="organization.created",
        entity_type="organization",
        entity_id=org.id,
        metadata={"slug": org.slug},
    )

    log.info("org.created", org_id=str(org.id), slug=req.slug, creator=str(creator_id))
    return org


async def update_org(
    org: Organization,
    req: OrgUpdateRequest,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> Organization:
    """Update org name and/or settings (deep merge). The slug never changes."""
    changed: list[str] = []
    if req.name is not None and req.name != org.name:
        org.name = req.name
        changed.append("name")

    if req.settings is not None:
        org.settings = _deep_merge(org.settings or {}, req.settings)
        changed.append("settings")

    org.updated_at = utcnow()
    session.add(org)
    await session.flush()

    await record_event(
        session,
        org_id=org.id,
        user_id=actor_id,
        event_type="organization.updated",
        entity_type="organization",
        entity_id=org.id,
        metadata={"fields": changed},
    )

    log.info("org.updated", org_id=str(org.id), slug=org.slug, fields=changed)
    return org


async def get_org_stats(org_id: uuid.UUID, session: AsyncSession) -> OrgStats:
    """Member, project, active project and event counts for an org."""

    async def _count(stmt) -> int:
        result = await session.execute(stmt)
        return int(result.scalar_one())

    return OrgStats(
        member_count=await _count(
            select(func.count()).select_from(Membership).where(Membership.organization_id == org_id)
        ),
        project_count=await _count(
            select(func.count()).select_from(Project).where(Project.organization_id == org_id)
        ),
        active_project_count=await _count(
            select(func.count())
            .select_from(Project)
            .where(
                Project.organization_id == org_id,
                Project.status == ProjectStatus.ACTIVE.value,
            )
        ),
        event_count=await _count(
            select(func.count()).select_from(Event).where(Event.organization_id == org_id)
        ),
    )
