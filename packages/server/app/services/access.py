"""
Access service: the membership/role predicates evaluated against the database.

Every org-scoped read and write goes through these checks; the store itself
is not trusted to filter rows by caller. The rules themselves live in
``tenant_shared.schemas.memberships`` and run here over the fetched rows.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.membership import Membership
from tenant_shared.schemas import memberships as rules
from tenant_shared.schemas.common import Role


async def _memberships_for(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> list[Membership]:
    result = await session.execute(
        select(Membership).where(
            Membership.user_id == user_id,
            Membership.organization_id == org_id,
        )
    )
    return list(result.scalars().all())


async def get_membership(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Optional[Membership]:
    """The unique membership for (user, org), or None."""
    rows = await _memberships_for(user_id, org_id, session)
    if rules.role_of(rows, user_id, org_id) is None:
        return None
    return rows[0]


async def is_member(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> bool:
    rows = await _memberships_for(user_id, org_id, session)
    return rules.is_member(rows, user_id, org_id)


async def role_of(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Optional[Role]:
    rows = await _memberships_for(user_id, org_id, session)
    return rules.role_of(rows, user_id, org_id)


async def has_role_or_higher(
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    min_role: Role,
    session: AsyncSession,
) -> bool:
    rows = await _memberships_for(user_id, org_id, session)
    return rules.has_role_or_higher(rows, user_id, org_id, min_role)
