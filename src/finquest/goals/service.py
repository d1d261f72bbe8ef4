"""Savings goals: creation, contributions and completion rewards."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import SavingsGoal
from finquest.errors import NotFoundError, ValidationError
from finquest.gamification.achievement_service import evaluate_achievements
from finquest.gamification.xp_service import (
    GOAL_COMPLETED_COINS,
    GOAL_COMPLETED_XP,
    GOAL_CONTRIBUTION_XP,
    GOAL_CREATED_COINS,
    GOAL_CREATED_XP,
    safe_award_xp,
)

logger = logging.getLogger(__name__)


def progress_percent(goal: SavingsGoal) -> float:
    if not goal.target_amount:
        return 0.0
    return min(float(goal.current_amount) / float(goal.target_amount) * 100, 100.0)


async def get_goal(db: AsyncSession, user_id: uuid.UUID, goal_id: uuid.UUID) -> SavingsGoal:
    result = await db.execute(
        select(SavingsGoal)
        .where(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    goal = result.scalar_one_or_none()
    if goal is None:
        raise NotFoundError("Savings goal not found")
    return goal


async def list_goals(db: AsyncSession, user_id: uuid.UUID) -> list[SavingsGoal]:
    result = await db.execute(
        select(SavingsGoal).where(SavingsGoal.user_id == user_id).order_by(SavingsGoal.created_at.desc())
    )
    return list(result.scalars().all())


async def create_goal(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    target_amount: Decimal,
    icon: str | None = None,
    deadline: date | None = None,
    redis: Any | None = None,
) -> tuple[SavingsGoal, int]:
    """Create a goal (+50 XP, +10 coins). Returns ``(goal, xp_awarded)``.

    Raises:
        ValidationError: If the target is not positive or the name is blank.
    """
    if target_amount <= 0:
        raise ValidationError("Target amount must be positive")
    if not name.strip():
        raise ValidationError("Goal name is required")

    goal = SavingsGoal(
        user_id=user_id,
        name=name.strip(),
        icon=icon,
        target_amount=target_amount,
        current_amount=Decimal("0"),
        deadline=deadline,
        completed=False,
    )
    db.add(goal)
    await db.flush()

    award = await safe_award_xp(
        db, user_id, GOAL_CREATED_XP, coins=GOAL_CREATED_COINS, reason="goal_created", redis=redis
    )
    return goal, (GOAL_CREATED_XP if award is not None else 0)


async def add_to_goal(
    db: AsyncSession,
    user_id: uuid.UUID,
    goal_id: uuid.UUID,
    amount: Decimal,
    redis: Any | None = None,
) -> tuple[SavingsGoal, dict]:
    """Add money to a goal.

    ``completed`` flips to true on the add that reaches the target and is
    never reset afterwards. The flip is a conditional update, so exactly one
    add earns the completion reward (+200 XP, +50 coins, "Savings Hero");
    every other add earns +10 XP.

    Raises:
        ValidationError: If the amount is not positive.
        NotFoundError: If the goal is not the user's.
    """
    if amount <= 0:
        raise ValidationError("Contribution must be positive")

    result = await db.execute(
        update(SavingsGoal)
        .where(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
        .values(current_amount=SavingsGoal.current_amount + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("Savings goal not found")

    flipped = await db.execute(
        update(SavingsGoal)
        .where(
            SavingsGoal.id == goal_id,
            SavingsGoal.completed.is_(False),
            SavingsGoal.current_amount >= SavingsGoal.target_amount,
        )
        .values(completed=True)
        .execution_options(synchronize_session=False)
    )
    just_completed = flipped.rowcount == 1

    outcome: dict[str, Any] = {
        "just_completed": just_completed,
        "xp_awarded": 0,
        "coins_awarded": 0,
        "achievements_unlocked": [],
    }
    if just_completed:
        logger.info("Savings goal %s completed by %s", goal_id, user_id)
        award = await safe_award_xp(
            db, user_id, GOAL_COMPLETED_XP, coins=GOAL_COMPLETED_COINS, reason="goal_completed", redis=redis
        )
        if award is not None:
            outcome["xp_awarded"] = GOAL_COMPLETED_XP
            outcome["coins_awarded"] = GOAL_COMPLETED_COINS
        try:
            outcome["achievements_unlocked"] = await evaluate_achievements(db, user_id, "goal", redis=redis)
        except Exception:
            logger.warning("Goal achievement evaluation failed for %s", user_id, exc_info=True)
    else:
        award = await safe_award_xp(db, user_id, GOAL_CONTRIBUTION_XP, reason="goal_contribution", redis=redis)
        if award is not None:
            outcome["xp_awarded"] = GOAL_CONTRIBUTION_XP

    goal = await get_goal(db, user_id, goal_id)
    return goal, outcome


async def delete_goal(db: AsyncSession, user_id: uuid.UUID, goal_id: uuid.UUID) -> None:
    result = await db.execute(
        delete(SavingsGoal).where(SavingsGoal.id == goal_id, SavingsGoal.user_id == user_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("Savings goal not found")

