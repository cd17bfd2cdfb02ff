from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.services.dashboard import dashboard_service
from app.auth.models import User
from app.core.auth import get_current_active_user
from app.core.database import get_session

router = APIRouter()


@router.get("/stats", response_model=Dict[str, Any])
async def get_dashboard_stats(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    """Activity counts and the derived career readiness score"""
    return await dashboard_service.stats(current_user, session)


@router.get("/recent-activity", response_model=List[Dict[str, Any]])
async def get_recent_activity(
    limit: int = Query(default=10, ge=1, le=50),
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await dashboard_service.recent_activity(current_user, limit, session)


@router.get("/user-progress", response_model=Dict[str, Any])
async def get_user_progress(
    session: AsyncSession = Depends(get_session),
    current_user: User = Depends(get_current_active_user),
):
    return await dashboard_service.user_progress(current_user, session)
