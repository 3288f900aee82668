"""Audit event schemas (events are append-only)."""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from .common import UTCDateTime


class EventRead(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    event_type: str
    entity_type: str
    entity_id: Optional[uuid.UUID] = None
    metadata: dict = Field(default_factory=dict)
    created_at: UTCDateTime


class EventListResponse(BaseModel):
    data: list[EventRead]
