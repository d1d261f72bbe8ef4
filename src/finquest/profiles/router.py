"""Profile router: /api/v1/me endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.dependencies import get_redis_dep
from finquest.gamification.levels import level_title
from finquest.gamification.streak_service import record_daily_login
from finquest.profiles.schemas import DailyLoginResponse, ProfileResponse, ProfileUpdateRequest
from finquest.profiles.service import update_profile

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Profile"])


def profile_response(profile: Profile) -> ProfileResponse:
    """Build a ProfileResponse from a Profile model."""
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        xp=profile.xp,
        level=profile.level,
        level_title=level_title(profile.level),
        coins=profile.coins,
        streak_days=profile.streak_days,
        last_login_date=profile.last_login_date,
        monthly_budget=profile.monthly_budget,
        currency=profile.currency,
        created_at=profile.created_at,
    )


@router.get("/me", response_model=ProfileResponse)
async def get_me(profile: Profile = Depends(get_current_profile)) -> ProfileResponse:
    """Get own profile (created on first request)."""
    return profile_response(profile)


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    body: ProfileUpdateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> ProfileResponse:
    """Update display name, avatar, monthly budget or currency."""
    await update_profile(db, profile, **body.model_dump(exclude_unset=True))
    await db.commit()
    await db.refresh(profile)
    return profile_response(profile)


@router.post("/me/daily-login", response_model=DailyLoginResponse)
async def daily_login(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> DailyLoginResponse:
    """Record today's session start: streak update and +20 XP once per day."""
    result = await record_daily_login(db, profile.id, redis=redis)
    await db.commit()
    if result["awarded"]:
        logger.info("daily_login_awarded", user_id=str(profile.id), streak=result["streak_days"])
    return DailyLoginResponse(**result)
