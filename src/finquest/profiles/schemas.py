"""Request/response models for profile endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    id: uuid.UUID
    email: str | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    xp: int
    level: int
    level_title: str
    coins: int
    streak_days: int
    last_login_date: date | None = None
    monthly_budget: Decimal
    currency: str
    created_at: datetime | None = None


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=128)
    avatar_url: str | None = Field(None, max_length=2048)
    monthly_budget: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(None, min_length=3, max_length=8)


class DailyLoginResponse(BaseModel):
    awarded: bool
    streak_days: int
    xp_awarded: int
    celebrated: bool
    achievements_unlocked: list[str] = []
