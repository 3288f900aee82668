"""
Audit event endpoints (read-only).

GET /api/v1/orgs/{orgSlug}/events - newest-first audit trail (admin)
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import OrgContext, require_admin
from app.core.database import get_session
from app.services import events as event_service
from tenant_shared.schemas.events import EventListResponse

router = APIRouter()


@router.get("", response_model=EventListResponse)
async def list_events(
    limit: int = Query(50, ge=1, le=event_service.MAX_EVENT_PAGE),
    entity_type: Optional[str] = None,
    ctx: OrgContext = Depends(require_admin),
    session: AsyncSession = Depends(get_session),
):
    events = await event_service.list_events(
        ctx.org_id, session, limit=limit, entity_type=entity_type
    )
    return EventListResponse(data=[event_service.to_event_dict(e) for e in events])
