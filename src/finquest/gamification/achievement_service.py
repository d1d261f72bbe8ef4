"""Achievement unlocks with store-level duplicate prevention.

The unique (user_id, achievement_id) constraint is the correctness
mechanism: an unlock is an insert-if-absent, and only the call whose insert
actually landed notifies and grants the reward.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import (
    Achievement,
    Budget,
    Expense,
    Lesson,
    Profile,
    QuizAttempt,
    SavingsGoal,
    UserAchievement,
    UserProgress,
)
from finquest.db.upsert import insert_for
from finquest.gamification.seed import ACHIEVEMENTS_BY_NAME
from finquest.gamification.xp_service import safe_award_xp
from finquest.notifications.service import create_notification

logger = logging.getLogger(__name__)

TRIGGERS = frozenset({"signup", "expense", "budget", "goal", "quiz", "lesson", "login"})


async def get_achievement_by_name(db: AsyncSession, name: str) -> Achievement | None:
    result = await db.execute(select(Achievement).where(Achievement.name == name))
    return result.scalar_one_or_none()


async def ensure_achievement(db: AsyncSession, name: str, **fields: Any) -> Achievement:
    """Return the catalog row for ``name``, inserting it if absent.

    Missing rows are filled from the built-in catalog, then ``fields``.
    """
    achievement = await get_achievement_by_name(db, name)
    if achievement is not None:
        return achievement

    values: dict[str, Any] = {"description": None, "rarity": "common", "criteria": {}}
    values.update({k: v for k, v in ACHIEVEMENTS_BY_NAME.get(name, {}).items() if k != "id"})
    values.update(fields)
    values["name"] = name
    values["id"] = uuid.uuid4()
    stmt = insert_for(db, Achievement).values(**values).on_conflict_do_nothing(index_elements=["name"])
    await db.execute(stmt)

    achievement = await get_achievement_by_name(db, name)
    if achievement is None:
        raise RuntimeError(f"Achievement {name!r} missing after insert")
    return achievement


async def unlock_achievement(
    db: AsyncSession,
    user_id: uuid.UUID,
    name: str,
    redis: Any | None = None,
) -> bool:
    """Unlock an achievement for a user.

    Returns True only if this call recorded the unlock. Then, and only then:
    1. Emit an ``achievement_unlocked`` notification
    2. Grant the achievement's XP and coin reward
    """
    achievement = await ensure_achievement(db, name)

    stmt = (
        insert_for(db, UserAchievement)
        .values(
            id=uuid.uuid4(),
            user_id=user_id,
            achievement_id=achievement.id,
            unlocked_at=datetime.now(timezone.utc),
        )
        .on_conflict_do_nothing(index_elements=["user_id", "achievement_id"])
    )
    result = await db.execute(stmt)
    if result.rowcount != 1:
        return False

    logger.info("Achievement %r unlocked for %s", name, user_id)
    await create_notification(
        db,
        user_id,
        "gamification",
        "achievement_unlocked",
        f"Achievement unlocked: {achievement.name}",
        description=achievement.description,
        action_url="/achievements",
        redis=redis,
    )
    if achievement.xp_reward or achievement.coin_reward:
        await safe_award_xp(
            db,
            user_id,
            achievement.xp_reward,
            coins=achievement.coin_reward,
            reason=f"achievement:{achievement.name}",
            redis=redis,
        )
    return True


# ---------------------------------------------------------------------------
# Aggregates the predicates are evaluated against
# ---------------------------------------------------------------------------


async def _count(db: AsyncSession, model: Any, *where: Any) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*where))
    return result.scalar_one()


async def _expense_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await _count(db, Expense, Expense.user_id == user_id)


async def _quiz_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await _count(db, QuizAttempt, QuizAttempt.user_id == user_id)


async def _perfect_quiz_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await _count(
        db,
        QuizAttempt,
        QuizAttempt.user_id == user_id,
        QuizAttempt.total_questions > 0,
        QuizAttempt.score == QuizAttempt.total_questions,
    )


async def _budget_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await _count(db, Budget, Budget.user_id == user_id)


async def _completed_goal_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    return await _count(db, SavingsGoal, SavingsGoal.user_id == user_id, SavingsGoal.completed.is_(True))


async def _completed_course_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Courses in which the user has completed every lesson."""
    lessons = (
        select(Lesson.course_id, func.count().label("total"))
        .group_by(Lesson.course_id)
        .subquery()
    )
    done = (
        select(UserProgress.course_id, func.count().label("done"))
        .where(UserProgress.user_id == user_id, UserProgress.completed.is_(True))
        .group_by(UserProgress.course_id)
        .subquery()
    )
    result = await db.execute(
        select(func.count())
        .select_from(done.join(lessons, done.c.course_id == lessons.c.course_id))
        .where(done.c.done >= lessons.c.total)
    )
    return result.scalar_one()


async def _months_within_budget(db: AsyncSession, user_id: uuid.UUID) -> int:
    """Consecutive most recent spending months whose total stayed within the monthly allocation."""
    allocated = (
        await db.execute(
            select(func.coalesce(func.sum(Budget.allocated_amount), 0)).where(
                Budget.user_id == user_id, Budget.period == "monthly"
            )
        )
    ).scalar_one()
    allocated = Decimal(str(allocated))
    if allocated <= 0:
        return 0

    rows = (await db.execute(select(Expense.date, Expense.amount).where(Expense.user_id == user_id))).all()
    per_month: dict[tuple[int, int], Decimal] = {}
    for row in rows:
        key = (row.date.year, row.date.month)
        per_month[key] = per_month.get(key, Decimal("0")) + Decimal(str(row.amount))

    streak = 0
    for key in sorted(per_month, reverse=True):
        if per_month[key] > allocated:
            break
        streak += 1
    return streak


async def _profile_stats(db: AsyncSession, user_id: uuid.UUID) -> tuple[int, int]:
    row = (await db.execute(select(Profile.level, Profile.streak_days).where(Profile.id == user_id))).one()
    return row.level, row.streak_days


async def _level(db: AsyncSession, user_id: uuid.UUID) -> int:
    return (await _profile_stats(db, user_id))[0]


async def _streak_days(db: AsyncSession, user_id: uuid.UUID) -> int:
    return (await _profile_stats(db, user_id))[1]


StatQuery = Callable[[AsyncSession, uuid.UUID], Awaitable[int]]

_STAT_QUERIES: dict[str, StatQuery] = {
    "expense_count": _expense_count,
    "quiz_count": _quiz_count,
    "perfect_quiz_count": _perfect_quiz_count,
    "budget_count": _budget_count,
    "completed_goal_count": _completed_goal_count,
    "completed_course_count": _completed_course_count,
    "months_within_budget": _months_within_budget,
    "level": _level,
    "streak_days": _streak_days,
}

# (achievement name, triggers, stat, predicate). "Level Up" is checked on every trigger.
ACHIEVEMENT_RULES: list[tuple[str, frozenset[str], str, Callable[[int], bool]]] = [
    ("First Expense", frozenset({"expense"}), "expense_count", lambda n: n == 1),
    ("Expense Tracker", frozenset({"expense"}), "expense_count", lambda n: n >= 10),
    ("Budget Beginner", frozenset({"budget"}), "budget_count", lambda n: n >= 1),
    ("Budget Pro", frozenset({"budget", "expense"}), "months_within_budget", lambda n: n >= 3),
    ("Quiz Master", frozenset({"quiz"}), "quiz_count", lambda n: n >= 5),
    ("Perfect Score", frozenset({"quiz"}), "perfect_quiz_count", lambda n: n >= 1),
    ("Savings Hero", frozenset({"goal"}), "completed_goal_count", lambda n: n >= 1),
    ("Course Completed", frozenset({"lesson"}), "completed_course_count", lambda n: n >= 1),
    ("Week Warrior", frozenset({"login"}), "streak_days", lambda n: n >= 7),
    ("Level Up", TRIGGERS, "level", lambda n: n >= 5),
]


async def evaluate_achievements(
    db: AsyncSession,
    user_id: uuid.UUID,
    trigger: str,
    redis: Any | None = None,
) -> list[str]:
    """Evaluate every rule registered for ``trigger`` against fresh aggregates.

    Returns the names unlocked by this call. Stats are queried once per call.
    """
    if trigger not in TRIGGERS:
        raise ValueError(f"Unknown achievement trigger: {trigger}")

    stats: dict[str, int] = {}
    unlocked: list[str] = []
    for name, triggers, stat, predicate in ACHIEVEMENT_RULES:
        if trigger not in triggers:
            continue
        if stat not in stats:
            stats[stat] = await _STAT_QUERIES[stat](db, user_id)
        if predicate(stats[stat]) and await unlock_achievement(db, user_id, name, redis=redis):
            unlocked.append(name)
    return unlocked


async def list_achievements(db: AsyncSession, user_id: uuid.UUID) -> list[dict]:
    """Whole catalog with the caller's unlock state, unlocked first."""
    catalog = (await db.execute(select(Achievement).order_by(Achievement.xp_reward, Achievement.name))).scalars().all()
    unlocks = await db.execute(
        select(UserAchievement.achievement_id, UserAchievement.unlocked_at).where(
            UserAchievement.user_id == user_id
        )
    )
    unlocked_at = {row.achievement_id: row.unlocked_at for row in unlocks}

    items = [
        {
            "id": a.id,
            "name": a.name,
            "description": a.description,
            "icon": a.icon,
            "category": a.category,
            "rarity": a.rarity,
            "xp_reward": a.xp_reward,
            "coin_reward": a.coin_reward,
            "unlocked": a.id in unlocked_at,
            "unlocked_at": unlocked_at.get(a.id),
        }
        for a in catalog
    ]
    items.sort(key=lambda item: not item["unlocked"])
    return items
