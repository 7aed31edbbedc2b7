"""
User endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.auth import AuthContext, get_current_session
from workforce.core.database import get_session
from workforce.services import users as user_service

router = APIRouter()


@router.get("/profile")
async def get_profile(
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    """The current user with their active organization memberships."""
    profile = await user_service.get_profile(auth.user_id, session)
    return {"success": True, "data": profile}
