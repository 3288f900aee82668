"""
User endpoints.

GET /api/v1/users/me - the caller's profile
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import SessionUser, require_session_user
from app.core.database import get_session
from app.services import users as user_service
from tenant_shared.schemas.users import UserProfileResponse

router = APIRouter()


@router.get("/me", response_model=UserProfileResponse)
async def get_me(
    user: SessionUser = Depends(require_session_user),
    session: AsyncSession = Depends(get_session),
):
    profile = await user_service.get_user_profile(user.user_id, session)
    if profile is None:
        raise HTTPException(status_code=404, detail="User profile not found")
    return user_service.to_profile_dict(profile)
