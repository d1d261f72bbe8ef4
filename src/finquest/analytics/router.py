"""Analytics and dashboard endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.analytics.schemas import AnalyticsResponse, DashboardResponse
from finquest.analytics.service import get_analytics, get_dashboard
from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.profiles.router import profile_response

router = APIRouter(prefix="/api/v1", tags=["Analytics"])


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> AnalyticsResponse:
    """Category breakdown, monthly trend and insights."""
    return AnalyticsResponse(**await get_analytics(db, profile))


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    summary = await get_dashboard(db, profile)
    return DashboardResponse(profile=profile_response(profile), **summary)
