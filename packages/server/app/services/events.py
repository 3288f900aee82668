"""
Audit event service. Events are append-only: there is no update or delete path.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.event import Event

log = structlog.get_logger()

MAX_EVENT_PAGE = 200


async def record_event(
    session: AsyncSession,
    *,
    org_id: uuid.UUID,
    event_type: str,
    entity_type: str,
    user_id: Optional[uuid.UUID] = None,
    entity_id: Optional[uuid.UUID] = None,
    metadata: Optional[dict] = None,
) -> Event:
    """Append an audit event. ``user_id=None`` marks a system event."""
    event = Event(
        organization_id=org_id,
        user_id=user_id,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata or {},
    )
    session.add(event)
    await session.flush()

    log.info(
        "event.recorded",
        event_type=event_type,
        org_id=str(org_id),
        entity_id=str(entity_id) if entity_id else None,
    )
    return event


async def list_events(
    org_id: uuid.UUID,
    session: AsyncSession,
    *,
    limit: int = 50,
    entity_type: Optional[str] = None,
) -> list[Event]:
    """Newest-first audit events for an org."""
    stmt = select(Event).where(Event.organization_id == org_id)
    if entity_type:
        stmt = stmt.where(Event.entity_type == entity_type)
    stmt = stmt.order_by(Event.created_at.desc()).limit(min(limit, MAX_EVENT_PAGE))
    result = await session.execute(stmt)
    return list(result.scalars().all())


def to_event_dict(event: Event) -> dict:
    return {
        "id": event.id,
        "organization_id": event.organization_id,
        "user_id": event.user_id,
        "event_type": event.event_type,
        "entity_type": event.entity_type,
        "entity_id": event.entity_id,
        "metadata": event.event_metadata,
        "created_at": event.created_at,
    }
