"""Response models for analytics and dashboard endpoints."""

from __future__ import annotations

from pydantic import BaseModel

from finquest.gamification.schemas import LevelProgressResponse
from finquest.profiles.schemas import ProfileResponse


class MonthlyBucket(BaseModel):
    month: str
    amount: float


class CategoryBucket(BaseModel):
    category: str
    name: str
    amount: float


class AnalyticsResponse(BaseModel):
    total_spent: float
    avg_daily: float
    highest_category: str
    trend: float
    transaction_count: int
    monthly: list[MonthlyBucket]
    categories: list[CategoryBucket]
    insights: list[str]


class DashboardResponse(BaseModel):
    profile: ProfileResponse
    progress: LevelProgressResponse
    coins: int
    streak_days: int
    monthly_budget: float
    total_expenses: float
    goals_count: int
    total_saved: float
