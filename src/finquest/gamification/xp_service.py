"""XP ledger: atomic XP/coin/level increments with level-up detection.

Every XP mutation goes through ``award_xp`` so ``level == xp // 1000 + 1``
holds after each write. The increment is evaluated by the store from the
current column values, so concurrent awards never lose a delta.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Profile
from finquest.errors import NotFoundError, ValidationError
from finquest.gamification.levels import XP_PER_LEVEL, compute_level, level_title
from finquest.notifications.service import create_notification

logger = logging.getLogger(__name__)

# Reward constants
DAILY_LOGIN_XP = 20
EXPENSE_XP = 10
GOAL_CREATED_XP = 50
GOAL_CREATED_COINS = 10
GOAL_CONTRIBUTION_XP = 10
GOAL_COMPLETED_XP = 200
GOAL_COMPLETED_COINS = 50
QUIZ_XP_PER_CORRECT = 100


async def award_xp(
    db: AsyncSession,
    user_id: uuid.UUID,
    amount: int,
    *,
    with_coins: bool = False,
    coins: int | None = None,
    reason: str | None = None,
    redis: Any | None = None,
) -> dict:
    """Add ``amount`` XP to a profile and recompute its level in one UPDATE.

    Coins: an explicit ``coins`` delta wins; otherwise ``amount // 10`` when
    ``with_coins`` is set, else none.

    Raises:
        ValidationError: If ``amount`` or ``coins`` is negative.
        NotFoundError: If the profile does not exist.
    """
    if amount < 0:
        raise ValidationError("XP amount must be non-negative")
    coin_delta = coins if coins is not None else (amount // 10 if with_coins else 0)
    if coin_delta < 0:
        raise ValidationError("Coin reward must be non-negative")

    result = await db.execute(
        update(Profile)
        .where(Profile.id == user_id)
        .values(
            xp=Profile.xp + amount,
            coins=Profile.coins + coin_delta,
            level=(Profile.xp + amount) // XP_PER_LEVEL + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"Profile {user_id} not found")

    # Reload so a Profile already in the session reflects the increment
    row = (
        await db.execute(
            select(Profile).where(Profile.id == user_id).execution_options(populate_existing=True)
        )
    ).scalar_one()
    old_level = compute_level(row.xp - amount)
    leveled_up = row.level > old_level

    logger.info(
        "Awarded %d XP (+%d coins) to %s for %s", amount, coin_delta, user_id, reason or "unspecified"
    )

    if leveled_up:
        await create_notification(
            db,
            user_id,
            "gamification",
            "level_up",
            "Level Up!",
            description=f"You reached level {row.level}: {level_title(row.level)}",
            action_url="/achievements",
            redis=redis,
        )

    return {
        "amount": amount,
        "coins_awarded": coin_delta,
        "xp": row.xp,
        "level": row.level,
        "coins": row.coins,
        "old_level": old_level,
        "leveled_up": leveled_up,
    }


async def safe_award_xp(
    db: AsyncSession,
    user_id: uuid.UUID,
    amount: int,
    **kwargs: Any,
) -> dict | None:
    """``award_xp`` for side-effect call sites: failures are logged and skipped."""
    try:
        return await award_xp(db, user_id, amount, **kwargs)
    except Exception:
        logger.warning("XP award of %d to %s skipped", amount, user_id, exc_info=True)
        return None
