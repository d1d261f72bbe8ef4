"""Budget allocation upserts and the per-category overview."""

from __future__ import annotations

import logging
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.analytics.aggregates import budget_utilization, display_category
from finquest.db.models import Budget, Expense, Profile
from finquest.db.upsert import insert_for
from finquest.errors import ValidationError
from finquest.expenses.service import CATEGORIES
from finquest.gamification.achievement_service import evaluate_achievements

logger = logging.getLogger(__name__)

# Share of the monthly budget per category, in percent
RECOMMENDED_ALLOCATIONS: dict[str, int] = {
    "food": 15,
    "transport": 10,
    "shopping": 10,
    "entertainment": 5,
    "bills": 25,
    "health": 10,
    "education": 5,
    "savings": 20,
}

_CENT = Decimal("0.01")


def recommended_amount(monthly_budget: Decimal, percent: int) -> Decimal:
    return (Decimal(monthly_budget) * percent / 100).quantize(_CENT, rounding=ROUND_HALF_UP)


async def _evaluate_budget_achievements(db: AsyncSession, user_id: uuid.UUID, redis: Any | None) -> list[str]:
    try:
        return await evaluate_achievements(db, user_id, "budget", redis=redis)
    except Exception:
        logger.warning("Budget achievement evaluation failed for %s", user_id, exc_info=True)
        return []


async def _upsert(
    db: AsyncSession,
    user_id: uuid.UUID,
    category: str,
    allocated: Decimal,
    period: str,
) -> None:
    stmt = insert_for(db, Budget).values(
        id=uuid.uuid4(),
        user_id=user_id,
        category=category,
        allocated_amount=allocated,
        period=period,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "category", "period"],
        set_={"allocated_amount": stmt.excluded.allocated_amount},
    )
    await db.execute(stmt)


async def upsert_budget(
    db: AsyncSession,
    user_id: uuid.UUID,
    category: str,
    allocated: Decimal,
    period: str = "monthly",
    redis: Any | None = None,
) -> tuple[Budget, list[str]]:
    """Create or replace the allocation for (user, category, period).

    Raises:
        ValidationError: If the amount is negative or the category is blank.
    """
    if allocated < 0:
        raise ValidationError("Allocated amount must be non-negative")
    category = category.strip().lower()
    if not category:
        raise ValidationError("Budget category is required")

    await _upsert(db, user_id, category, allocated, period)
    result = await db.execute(
        select(Budget)
        .where(Budget.user_id == user_id, Budget.category == category, Budget.period == period)
        .execution_options(populate_existing=True)
    )
    budget = result.scalar_one()
    unlocked = await _evaluate_budget_achievements(db, user_id, redis)
    return budget, unlocked


async def apply_recommended(
    db: AsyncSession,
    profile: Profile,
    redis: Any | None = None,
) -> tuple[int, list[str]]:
    """Split the profile's monthly budget across the recommended categories.

    Raises:
        ValidationError: If no monthly budget is set.
    """
    monthly_budget = Decimal(profile.monthly_budget or 0)
    if monthly_budget <= 0:
        raise ValidationError("Set a monthly budget before applying recommended allocations")

    for category, percent in RECOMMENDED_ALLOCATIONS.items():
        await _upsert(db, profile.id, category, recommended_amount(monthly_budget, percent), "monthly")
    logger.info("Applied recommended budget split for %s", profile.id)
    unlocked = await _evaluate_budget_achievements(db, profile.id, redis)
    return len(RECOMMENDED_ALLOCATIONS), unlocked


async def category_spent(db: AsyncSession, user_id: uuid.UUID, category: str) -> Decimal:
    """All-time spend in one category."""
    result = await db.execute(
        select(func.coalesce(func.sum(Expense.amount), 0)).where(
            Expense.user_id == user_id, Expense.category == category
        )
    )
    return Decimal(str(result.scalar_one()))


def budget_line(
    category: str,
    allocated: Decimal | float,
    spent: Decimal | float,
    period: str = "monthly",
    monthly_budget: Decimal | None = None,
) -> dict:
    utilization, over_budget = budget_utilization(spent, allocated)
    meta = CATEGORIES.get(category, {})
    percent = RECOMMENDED_ALLOCATIONS.get(category)
    return {
        "category": category,
        "label": meta.get("label", display_category(category)),
        "icon": meta.get("icon"),
        "period": period,
        "allocated": float(allocated),
        "spent": float(spent),
        "utilization": utilization,
        "over_budget": over_budget,
        "recommended_percent": percent,
        "recommended_amount": (
            float(recommended_amount(monthly_budget, percent))
            if percent is not None and monthly_budget is not None
            else None
        ),
    }


async def budget_overview(db: AsyncSession, profile: Profile, period: str = "monthly") -> dict:
    """Allocated vs. spent per category plus totals.

    Spend is summed over all of the user's expenses. Categories: the
    recommended set first, then any other budgeted or spent category.
    """
    budgets = (
        await db.execute(select(Budget).where(Budget.user_id == profile.id, Budget.period == period))
    ).scalars().all()
    allocated = {b.category: b.allocated_amount for b in budgets}

    spent_rows = await db.execute(
        select(Expense.category, func.sum(Expense.amount))
        .where(Expense.user_id == profile.id)
        .group_by(Expense.category)
    )
    spent = {category: Decimal(str(total)) for category, total in spent_rows.all()}

    categories = list(RECOMMENDED_ALLOCATIONS)
    categories += sorted(c for c in {*allocated, *spent} if c not in RECOMMENDED_ALLOCATIONS)

    monthly_budget = Decimal(profile.monthly_budget or 0)
    lines = [
        budget_line(c, allocated.get(c, Decimal("0")), spent.get(c, Decimal("0")), period, monthly_budget)
        for c in categories
    ]
    total_allocated = sum(allocated.values(), Decimal("0"))
    total_spent = sum(spent.values(), Decimal("0"))
    utilization, over_budget = budget_utilization(total_spent, total_allocated)
    return {
        "monthly_budget": float(monthly_budget),
        "total_allocated": float(total_allocated),
        "total_spent": float(total_spent),
        "utilization": utilization,
        "over_budget": over_budget,
        "lines": lines,
    }
