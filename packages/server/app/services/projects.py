"""
Project service: CRUD and search within an organization.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import HTTPException
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.project import Project
from app.services.events import record_event
from tenant_shared.schemas import projects as project_schemas
from tenant_shared.schemas.common import ProjectStatus
from tenant_shared.schemas.projects import ProjectCreate, ProjectUpdate, validate_status_transition

log = structlog.get_logger()


def _escape_like(term: str) -> str:
    """Make LIKE metacharacters in a search term match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_projects(
    org_id: uuid.UUID,
    session: AsyncSession,
    *,
    query: Optional[str] = None,
    include_deleted: bool = False,
) -> list[Project]:
    """Projects of an org, optionally filtered by a case-insensitive search term."""
    stmt = select(Project).where(Project.organization_id == org_id)
    if not include_deleted:
        stmt = stmt.where(Project.status != ProjectStatus.DELETED.value)
    if query:
        pattern = f"%{_escape_like(query.lower())}%"
        stmt = stmt.where(
            or_(
                func.lower(Project.name).like(pattern, escape="\\"),
                func.lower(func.coalesce(Project.description, "")).like(pattern, escape="\\"),
            )
        )
    stmt = stmt.order_by(Project.created_at.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_project(
    org_id: uuid.UUID, project_id: uuid.UUID, session: AsyncSession
) -> Project:
    """A project of this org; 404 if it does not exist or belongs elsewhere."""
    result = await session.execute(
        select(Project).where(
            Project.id == project_id,
            Project.organization_id == org_id,
        )
    )
    project = result.scalar_one_or_none()
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


async def create_project(
    org_id: uuid.UUID,
    req: ProjectCreate,
    owner_id: uuid.UUID,
    session: AsyncSession,
) -> Project:
    project = Project(
        organization_id=org_id,
        name=req.name,
        description=req.description,
        status=req.status.value,
        owner_id=owner_id,
        settings=req.settings,
    )
    session.add(project)
    await session.flush()

    await record_event(
        session,
        org_id=org_id,
        user_id=owner_id,
        event_type="project.created",
        entity_type="project",
        entity_id=project.id,
        metadata={"name": project.name, "status": project.status},
    )

    log.info("project.created", project_id=str(project.id), org_id=str(org_id))
    return project


async def update_project(
    project: Project,
    req: ProjectUpdate,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> Project:
    """Apply a partial update. Status changes go through the transition hook."""
    metadata: dict = {}

    if req.status is not None:
        current = ProjectStatus(project.status)
        valid, message = validate_status_transition(
            current, req.status, project_schemas.PROJECT_STATUS_TRANSITIONS
        )
        if not valid:
            raise HTTPException(status_code=409, detail=message)
        if req.status != current:
            metadata["status"] = {"from": current.value, "to": req.status.value}
            project.status = req.status.value

    if req.name is not None:
        project.name = req.name
    if req.description is not None:
        project.description = req.description
    if req.settings is not None:
        project.settings = req.settings

    metadata["fields"] = sorted(req.model_dump(exclude_unset=True).keys())
    project.updated_at = utcnow()
    session.add(project)
    await session.flush()

    await record_event(
        session,
        org_id=project.organization_id,
        user_id=actor_id,
        event_type="project.updated",
        entity_type="project",
        entity_id=project.id,
        metadata=metadata,
    )

    log.info("project.updated", project_id=str(project.id), fields=metadata["fields"])
    return project
