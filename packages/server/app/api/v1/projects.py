"""
Project API endpoints (org-scoped).

GET    /api/v1/orgs/{orgSlug}/projects               - List/search projects
POST   /api/v1/orgs/{orgSlug}/projects               - Create a project (member)
GET    /api/v1/orgs/{orgSlug}/projects/{projectId}   - Get a project
PATCH  /api/v1/orgs/{orgSlug}/projects/{projectId}   - Update (project owner or admin)
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import OrgContext, get_org_context, require_member
from app.core.database import get_session
from app.services import projects as project_service
from tenant_shared.schemas.common import Role, role_at_least
from tenant_shared.schemas.projects import (
    ProjectCreate,
    ProjectListResponse,
    ProjectRead,
    ProjectUpdate,
)

router = APIRouter()


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    q: Optional[str] = Query(None, max_length=200, description="Search name and description"),
    include_deleted: bool = False,
    ctx: OrgContext = Depends(get_org_context),
    session: AsyncSession = Depends(get_session),
):
    projects = await project_service.list_projects(
        ctx.org_id, session, query=q, include_deleted=include_deleted
    )
    return ProjectListResponse(data=[ProjectRead.model_validate(p) for p in projects])


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    ctx: OrgContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.create_project(ctx.org_id, body, ctx.user_id, session)
    return ProjectRead.model_validate(project)


@router.get("/{projectId}", response_model=ProjectRead)
async def get_project(
    projectId: UUID,
    ctx: OrgContext = Depends(get_org_context),
    session: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project(ctx.org_id, projectId, session)
    return ProjectRead.model_validate(project)


@router.patch("/{projectId}", response_model=ProjectRead)
async def update_project(
    projectId: UUID,
    body: ProjectUpdate,
    ctx: OrgContext = Depends(require_member),
    session: AsyncSession = Depends(get_session),
):
    """Members may edit their own projects; admins and owners may edit any."""
    project = await project_service.get_project(ctx.org_id, projectId, session)
    if project.owner_id != ctx.user_id and not role_at_least(ctx.role, Role.ADMIN):
        raise HTTPException(status_code=403, detail="Only the project owner or an admin can edit")
    project = await project_service.update_project(project, body, ctx.user_id, session)
    return ProjectRead.model_validate(project)
