"""Request/response models for savings goal endpoints."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class GoalCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    target_amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    icon: str | None = Field(None, max_length=16)
    deadline: date | None = None


class ContributionRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)


class GoalResponse(BaseModel):
    id: uuid.UUID
    name: str
    icon: str | None = None
    target_amount: Decimal
    current_amount: Decimal
    progress_percent: float
    deadline: date | None = None
    completed: bool
    created_at: datetime | None = None


class GoalCreateResponse(BaseModel):
    goal: GoalResponse
    xp_awarded: int


class ContributionResponse(BaseModel):
    goal: GoalResponse
    just_completed: bool
    xp_awarded: int
    coins_awarded: int
    achievements_unlocked: list[str] = []


class GoalListResponse(BaseModel):
    goals: list[GoalResponse]
    total_saved: Decimal
