"""Analytics and dashboard read models."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.analytics.aggregates import spending_summary
from finquest.db.models import Expense, Profile, SavingsGoal
from finquest.expenses.service import list_expenses
from finquest.gamification.levels import level_progress


async def get_analytics(db: AsyncSession, profile: Profile) -> dict:
    """Spending summary over all of the user's expenses."""
    expenses = await list_expenses(db, profile.id)
    return spending_summary(expenses)


async def get_dashboard(db: AsyncSession, profile: Profile) -> dict:
    """Headline numbers for the home view."""
    total_expenses = (
        await db.execute(
            select(func.coalesce(func.sum(Expense.amount), 0)).where(Expense.user_id == profile.id)
        )
    ).scalar_one()
    goals = (
        await db.execute(
            select(func.count(), func.coalesce(func.sum(SavingsGoal.current_amount), 0)).where(
                SavingsGoal.user_id == profile.id
            )
        )
    ).one()
    return {
        "progress": level_progress(profile.xp),
        "coins": profile.coins,
        "streak_days": profile.streak_days,
        "monthly_budget": float(profile.monthly_budget or 0),
        "total_expenses": float(total_expenses),
        "goals_count": goals[0],
        "total_saved": float(goals[1]),
    }
