"""
User profile service. Profiles are read-only from this application's side.
"""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.user import User


async def get_user_profile(
    user_id: uuid.UUID, session: AsyncSession
) -> Optional[User]:
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


def to_profile_dict(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "avatar_url": user.avatar_url,
        "metadata": user.profile_metadata,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }
