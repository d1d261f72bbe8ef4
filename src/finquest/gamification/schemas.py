"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class AchievementResponse(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None = None
    icon: str | None = None
    category: str | None = None
    rarity: str
    xp_reward: int
    coin_reward: int
    unlocked: bool
    unlocked_at: datetime | None = None


class AchievementListResponse(BaseModel):
    achievements: list[AchievementResponse]
    total_available: int
    total_unlocked: int


class LevelProgressResponse(BaseModel):
    level: int
    title: str
    xp: int
    xp_into_level: int
    xp_for_level: int
    xp_to_next_level: int
    progress_percent: float
    next_level: int


class LevelThreshold(BaseModel):
    level: int
    title: str
    xp_required: int


class LevelsResponse(BaseModel):
    current: LevelProgressResponse
    levels: list[LevelThreshold]
