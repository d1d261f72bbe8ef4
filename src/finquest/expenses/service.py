"""Expense logging with XP and achievement side effects."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Expense
from finquest.errors import NotFoundError, ValidationError
from finquest.gamification.achievement_service import evaluate_achievements
from finquest.gamification.xp_service import EXPENSE_XP, safe_award_xp

logger = logging.getLogger(__name__)

CATEGORIES: dict[str, dict[str, str]] = {
    "food": {"label": "Food & Dining", "icon": "\U0001f354"},
    "transport": {"label": "Transportation", "icon": "\U0001f697"},
    "shopping": {"label": "Shopping", "icon": "\U0001f6cd️"},
    "entertainment": {"label": "Entertainment", "icon": "\U0001f3ac"},
    "bills": {"label": "Bills & Utilities", "icon": "\U0001f4c4"},
    "health": {"label": "Healthcare", "icon": "\U0001f3e5"},
    "education": {"label": "Education", "icon": "\U0001f4da"},
    "other": {"label": "Other", "icon": "\U0001f4cc"},
}


async def add_expense(
    db: AsyncSession,
    user_id: uuid.UUID,
    amount: Decimal,
    category: str,
    *,
    expense_date: date | None = None,
    subcategory: str | None = None,
    description: str | None = None,
    payment_method: str | None = None,
    tags: list[str] | None = None,
    is_recurring: bool = False,
    recurring_frequency: str | None = None,
    redis: Any | None = None,
) -> tuple[Expense, int, list[str]]:
    """Insert an expense, award +10 XP and evaluate expense achievements.

    Returns ``(expense, xp_awarded, achievements_unlocked)``. The XP award and
    the achievement check never fail the insert.

    Raises:
        ValidationError: If the amount is not positive or the category is blank.
    """
    if amount <= 0:
        raise ValidationError("Expense amount must be positive")
    category = category.strip().lower()
    if not category:
        raise ValidationError("Expense category is required")

    expense = Expense(
        user_id=user_id,
        amount=amount,
        category=category,
        subcategory=subcategory,
        description=description,
        payment_method=payment_method,
        date=expense_date or date.today(),
        tags=tags or [],
        is_recurring=is_recurring,
        recurring_frequency=recurring_frequency if is_recurring else None,
    )
    db.add(expense)
    await db.flush()

    award = await safe_award_xp(db, user_id, EXPENSE_XP, reason="expense_logged", redis=redis)

    unlocked: list[str] = []
    try:
        unlocked = await evaluate_achievements(db, user_id, "expense", redis=redis)
    except Exception:
        logger.warning("Expense achievement evaluation failed for %s", user_id, exc_info=True)

    return expense, (EXPENSE_XP if award is not None else 0), unlocked


async def list_expenses(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int | None = None,
    category: str | None = None,
) -> list[Expense]:
    """Newest first (by expense date, then insertion time)."""
    query = select(Expense).where(Expense.user_id == user_id)
    if category:
        query = query.where(Expense.category == category.lower())
    query = query.order_by(Expense.date.desc(), Expense.created_at.desc())
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def delete_expense(db: AsyncSession, user_id: uuid.UUID, expense_id: uuid.UUID) -> None:
    """Hard delete, scoped to the owner.

    Raises:
        NotFoundError: If no such expense belongs to the user.
    """
    result = await db.execute(
        delete(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Expense not found")
