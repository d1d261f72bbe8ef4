"""Budget endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.budgets.schemas import (
    ApplyRecommendedResponse,
    BudgetLine,
    BudgetOverviewResponse,
    BudgetUpsertRequest,
    BudgetUpsertResponse,
)
from finquest.budgets.service import (
    apply_recommended,
    budget_line,
    budget_overview,
    category_spent,
    upsert_budget,
)
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.dependencies import get_redis_dep

router = APIRouter(prefix="/api/v1", tags=["Budgets"])


@router.get("/budgets", response_model=BudgetOverviewResponse)
async def get_budgets(
    period: str = Query("monthly", max_length=16),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> BudgetOverviewResponse:
    """Allocated vs. spent per category."""
    return BudgetOverviewResponse(**await budget_overview(db, profile, period))


@router.put("/budgets/{category}", response_model=BudgetUpsertResponse)
async def put_budget(
    body: BudgetUpsertRequest,
    category: str = Path(..., min_length=1, max_length=64),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> BudgetUpsertResponse:
    """Create or replace one category's allocation."""
    budget, unlocked = await upsert_budget(
        db, profile.id, category, body.allocated_amount, body.period, redis=redis
    )
    spent = await category_spent(db, profile.id, budget.category)
    await db.commit()
    line = budget_line(budget.category, budget.allocated_amount, spent, budget.period, profile.monthly_budget)
    return BudgetUpsertResponse(line=BudgetLine(**line), achievements_unlocked=unlocked)


@router.post("/budgets/apply-recommended", response_model=ApplyRecommendedResponse)
async def post_apply_recommended(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> ApplyRecommendedResponse:
    """Split the monthly budget by the recommended percentages."""
    applied, unlocked = await apply_recommended(db, profile, redis=redis)
    await db.commit()
    overview = await budget_overview(db, profile)
    return ApplyRecommendedResponse(
        applied=applied,
        overview=BudgetOverviewResponse(**overview),
        achievements_unlocked=unlocked,
    )
