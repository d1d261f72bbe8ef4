"""Request/response models for budget endpoints."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class BudgetUpsertRequest(BaseModel):
    allocated_amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    period: str = Field("monthly", min_length=1, max_length=16)


class BudgetLine(BaseModel):
    category: str
    label: str
    icon: str | None = None
    period: str = "monthly"
    allocated: float
    spent: float
    utilization: float
    over_budget: bool
    recommended_percent: int | None = None
    recommended_amount: float | None = None


class BudgetOverviewResponse(BaseModel):
    monthly_budget: float
    total_allocated: float
    total_spent: float
    utilization: float
    over_budget: bool
    lines: list[BudgetLine]


class BudgetUpsertResponse(BaseModel):
    line: BudgetLine
    achievements_unlocked: list[str] = []


class ApplyRecommendedResponse(BaseModel):
    applied: int
    overview: BudgetOverviewResponse
    achievements_unlocked: list[str] = []
