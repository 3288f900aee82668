"""
Membership service: listing members, adding existing users, changing roles.

Role rules:
- Admins and owners manage memberships.
- Only an owner may grant the owner role or change an owner's role.
- An organization always keeps at least one owner.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.base import utcnow
from app.models.membership import Membership
from app.models.user import User
from app.services import access
from app.services.events import record_event
from tenant_shared.schemas.common import Role
from tenant_shared.schemas.memberships import MemberAddRequest, MemberUpdateRequest

log = structlog.get_logger()


def _member_dict(membership: Membership, user: User | None) -> dict:
    return {
        "id": membership.id,
        "user_id": membership.user_id,
        "email": user.email if user else None,
        "full_name": user.full_name if user else None,
        "role": membership.role,
        "invited_by": membership.invited_by,
        "created_at": membership.created_at,
    }


async def list_members(org_id: uuid.UUID, session: AsyncSession) -> list[dict]:
    """All memberships of an org with the member's profile fields."""
    result = await session.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id, isouter=True)
        .where(Membership.organization_id == org_id)
        .order_by(Membership.created_at)
    )
    return [_member_dict(membership, user) for membership, user in result.all()]


async def _ensure_can_touch_owner(
    actor_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> None:
    if not await access.has_role_or_higher(actor_id, org_id, Role.OWNER, session):
        raise HTTPException(
            status_code=403, detail="Only an owner can grant or change the owner role"
        )


async def add_member(
    org_id: uuid.UUID,
    req: MemberAddRequest,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> dict:
    """Add an existing user (looked up by email) to the org."""
    if req.role == Role.OWNER:
        await _ensure_can_touch_owner(actor_id, org_id, session)

    result = await session.execute(select(User).where(User.email == req.email))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if await access.is_member(user.id, org_id, session):
        raise HTTPException(status_code=409, detail="User is already a member of this org")

    membership = Membership(
        organization_id=org_id,
        user_id=user.id,
        role=req.role.value,
        invited_by=actor_id,
    )
    session.add(membership)
    await session.flush()

    await record_event(
        session,
        org_id=org_id,
        user_id=actor_id,
        event_type="membership.created",
        entity_type="membership",
        entity_id=membership.id,
        metadata={"member_id": str(user.id), "role": req.role.value},
    )

    log.info("membership.created", org_id=str(org_id), user_id=str(user.id), role=req.role.value)
    return _member_dict(membership, user)


async def update_member_role(
    org_id: uuid.UUID,
    member_user_id: uuid.UUID,
    req: MemberUpdateRequest,
    actor_id: uuid.UUID,
    session: AsyncSession,
) -> dict:
    """Change a member's role."""
    membership = await access.get_membership(member_user_id, org_id, session)
    if membership is None:
        raise HTTPException(status_code=404, detail="Member not found")

    previous = Role(membership.role)
    if Role.OWNER in (previous, req.role):
        await _ensure_can_touch_owner(actor_id, org_id, session)

    if previous == Role.OWNER and req.role != Role.OWNER:
        owners = await session.execute(
            select(func.count())
            .select_from(Membership)
            .where(
                Membership.organization_id == org_id,
                Membership.role == Role.OWNER.value,
            )
        )
        if owners.scalar_one() <= 1:
            raise HTTPException(status_code=409, detail="An organization must keep an owner")

    membership.role = req.role.value
    membership.updated_at = utcnow()
    session.add(membership)
    await session.flush()

    await record_event(
        session,
        org_id=org_id,
        user_id=actor_id,
        event_type="membership.updated",
        entity_type="membership",
        entity_id=membership.id,
        metadata={"from": previous.value, "to": req.role.value},
    )

    result = await session.execute(select(User).where(User.id == member_user_id))
    user = result.scalar_one_or_none()

    log.info(
        "membership.updated",
        org_id=str(org_id),
        user_id=str(member_user_id),
        role=req.role.value,
    )
    return _member_dict(membership, user)
