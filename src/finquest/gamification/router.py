"""Gamification API endpoints: achievements and levels."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.gamification.achievement_service import list_achievements
from finquest.gamification.levels import level_progress, level_table
from finquest.gamification.schemas import (
    AchievementListResponse,
    AchievementResponse,
    LevelProgressResponse,
    LevelsResponse,
    LevelThreshold,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


@router.get("/achievements", response_model=AchievementListResponse)
async def get_achievements(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> AchievementListResponse:
    """Full catalog with the caller's unlock state."""
    items = await list_achievements(db, profile.id)
    return AchievementListResponse(
        achievements=[AchievementResponse(**item) for item in items],
        total_available=len(items),
        total_unlocked=sum(1 for item in items if item["unlocked"]),
    )


@router.get("/levels", response_model=LevelsResponse)
async def get_levels(
    max_level: int = Query(10, ge=1, le=100),
    profile: Profile = Depends(get_current_profile),
) -> LevelsResponse:
    """Caller's level progress and the level thresholds."""
    return LevelsResponse(
        current=LevelProgressResponse(**level_progress(profile.xp)),
        levels=[LevelThreshold(**row) for row in level_table(max_level)],
    )
