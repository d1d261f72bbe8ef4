"""Daily login bonus and consecutive-day streaks."""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Profile
from finquest.errors import NotFoundError
from finquest.gamification.achievement_service import evaluate_achievements
from finquest.gamification.xp_service import DAILY_LOGIN_XP, safe_award_xp
from finquest.notifications.service import create_notification

logger = logging.getLogger(__name__)

CELEBRATION_EVERY = 7


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def next_streak(previous_login: date | None, current_streak: int, today: date) -> int:
    """Streak after a login on ``today``.

    No previous login starts at 1; the next calendar day extends the streak;
    any longer gap resets to 1; a repeat login on the same day changes nothing.
    """
    if previous_login is None:
        return 1
    diff_days = (today - previous_login).days
    if diff_days == 1:
        return current_streak + 1
    if diff_days > 1:
        return 1
    return current_streak


async def record_daily_login(
    db: AsyncSession,
    user_id: uuid.UUID,
    today: date | None = None,
    redis: Any | None = None,
) -> dict:
    """Apply the daily login bonus at most once per calendar day.

    The streak write is conditional on ``last_login_date < today``, so
    concurrent session starts on the same day award the bonus once.
    """
    today = today or utc_today()
    row = (
        await db.execute(
            select(Profile.last_login_date, Profile.streak_days).where(Profile.id == user_id)
        )
    ).one_or_none()
    if row is None:
        raise NotFoundError(f"Profile {user_id} not found")

    not_awarded = {
        "awarded": False,
        "streak_days": row.streak_days,
        "xp_awarded": 0,
        "celebrated": False,
        "achievements_unlocked": [],
    }
    if row.last_login_date is not None and row.last_login_date >= today:
        return not_awarded

    streak = next_streak(row.last_login_date, row.streak_days, today)
    result = await db.execute(
        update(Profile)
        .where(
            Profile.id == user_id,
            or_(Profile.last_login_date.is_(None), Profile.last_login_date < today),
        )
        .values(last_login_date=today, streak_days=streak)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount == 0:
        # Another session recorded today's login first
        return not_awarded

    award = await safe_award_xp(db, user_id, DAILY_LOGIN_XP, reason="daily_login", redis=redis)

    celebrated = streak % CELEBRATION_EVERY == 0
    if celebrated:
        await create_notification(
            db,
            user_id,
            "gamification",
            "streak_milestone",
            f"\U0001f525 {streak}-day streak!",
            description="Keep showing up. Consistency builds wealth.",
            redis=redis,
        )

    unlocked: list[str] = []
    try:
        unlocked = await evaluate_achievements(db, user_id, "login", redis=redis)
    except Exception:
        logger.warning("Achievement evaluation after login failed for %s", user_id, exc_info=True)

    return {
        "awarded": True,
        "streak_days": streak,
        "xp_awarded": DAILY_LOGIN_XP if award is not None else 0,
        "celebrated": celebrated,
        "achievements_unlocked": unlocked,
    }
