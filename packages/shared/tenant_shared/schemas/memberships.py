"""
Membership schemas and the access predicates built on them.

The predicates are pure functions over membership-like objects (anything with
``user_id``, ``organization_id`` and ``role`` attributes) so that the same
rules can be checked against ORM rows, API payloads or test fixtures.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel, EmailStr, Field

from .common import Role, UTCDateTime, role_at_least


class MembershipLike(Protocol):
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: str


# ---------------------------------------------------------------------------
# Access predicates
# ---------------------------------------------------------------------------

def _matching(
    memberships: Iterable[MembershipLike], user_id: uuid.UUID, org_id: uuid.UUID
) -> list[MembershipLike]:
    return [
        m for m in memberships
        if m.user_id == user_id and m.organization_id == org_id
    ]


def is_member(
    memberships: Iterable[MembershipLike], user_id: uuid.UUID, org_id: uuid.UUID
) -> bool:
    return bool(_matching(memberships, user_id, org_id))


def role_of(
    memberships: Iterable[MembershipLike], user_id: uuid.UUID, org_id: uuid.UUID
) -> Optional[Role]:
    """Role of the user in the org, or None if there is no membership.

    Raises ValueError if more than one membership matches the pair.
    """
    found = _matching(memberships, user_id, org_id)
    if not found:
        return None
    if len(found) > 1:
        raise ValueError(
            f"Duplicate memberships for user {user_id} in organization {org_id}"
        )
    return Role(found[0].role)


def has_role_or_higher(
    memberships: Iterable[MembershipLike],
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    min_role: Role | str,
) -> bool:
    role = role_of(list(memberships), user_id, org_id)
    return role is not None and role_at_least(role, min_role)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class MemberAddRequest(BaseModel):
    """Add an existing user (by email) to the org."""
    email: EmailStr
    role: Role = Role.MEMBER


class MemberUpdateRequest(BaseModel):
    role: Role


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrganizationSummary(BaseModel):
    id: uuid.UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}


class MembershipWithOrganization(BaseModel):
    """A membership row joined with its organization (dashboard shape)."""
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    role: Role
    invited_by: Optional[uuid.UUID] = None
    created_at: UTCDateTime
    updated_at: UTCDateTime
    organization: OrganizationSummary


class MemberResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Role
    invited_by: Optional[uuid.UUID] = None
    created_at: UTCDateTime


class MemberListResponse(BaseModel):
    data: list[MemberResponse] = Field(default_factory=list)
