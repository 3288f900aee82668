"""User profile schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, UUID4

from .common import UTCDateTime


class UserProfileResponse(BaseModel):
    """Application-level profile mirroring the identity-provider account."""
    id: UUID4
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    metadata: dict = Field(default_factory=dict)
    created_at: UTCDateTime
    updated_at: UTCDateTime
