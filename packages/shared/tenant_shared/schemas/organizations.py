"""
Organization-related Pydantic schemas.

Covers: org create/update requests, org responses, the per-user org list and
org statistics.
"""

from __future__ import annotations

import uuid
from typing import Optional

from pydantic import BaseModel, Field

from .common import Role, UTCDateTime


SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]*[a-z0-9]$"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    slug: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=SLUG_PATTERN,
        description="URL-safe org identifier",
    )
    settings: dict = Field(default_factory=dict, description="Free-form settings map")


class OrgUpdateRequest(BaseModel):
    """Slugs are immutable, so only the name and settings can change."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    settings: Optional[dict] = Field(
        None,
        description="Partial settings update (deep-merged via JSON Merge Patch)",
    )

    model_config = {"extra": "forbid"}


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    settings: dict
    created_at: UTCDateTime
    updated_at: UTCDateTime

    model_config = {"from_attributes": True}


class OrgListItem(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    role: Role  # the requesting user's role in this org

    model_config = {"from_attributes": True}


class OrgListResponse(BaseModel):
    data: list[OrgListItem]


class OrgStats(BaseModel):
    member_count: int = 0
    project_count: int = 0
    active_project_count: int = 0
    event_count: int = 0
