"""Achievement catalog seed data."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Achievement
from finquest.db.upsert import insert_for

logger = logging.getLogger(__name__)

ACHIEVEMENT_SEED_DATA: list[dict] = [
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440001"),
        "name": "First Steps",
        "description": "Created your account and started your journey",
        "icon": "\U0001f389",
        "category": "onboarding",
        "rarity": "common",
        "xp_reward": 50,
        "coin_reward": 10,
        "criteria": {"type": "signup"},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440002"),
        "name": "Budget Beginner",
        "description": "Created your first budget",
        "icon": "\U0001f4b0",
        "category": "budgeting",
        "rarity": "common",
        "xp_reward": 100,
        "coin_reward": 25,
        "criteria": {"type": "budget_created"},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440003"),
        "name": "Expense Tracker",
        "description": "Logged 10 expenses",
        "icon": "\U0001f4dd",
        "category": "tracking",
        "rarity": "common",
        "xp_reward": 150,
        "coin_reward": 30,
        "criteria": {"type": "expenses", "count": 10},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440004"),
        "name": "Quiz Master",
        "description": "Completed 5 quizzes",
        "icon": "\U0001f9e0",
        "category": "learning",
        "rarity": "uncommon",
        "xp_reward": 200,
        "coin_reward": 50,
        "criteria": {"type": "quizzes", "count": 5},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440005"),
        "name": "Perfect Score",
        "description": "Got 100% on a quiz",
        "icon": "⭐",
        "category": "learning",
        "rarity": "rare",
        "xp_reward": 300,
        "coin_reward": 100,
        "criteria": {"type": "perfect_quiz"},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440006"),
        "name": "Week Warrior",
        "description": "Maintained 7-day streak",
        "icon": "\U0001f525",
        "category": "engagement",
        "rarity": "uncommon",
        "xp_reward": 250,
        "coin_reward": 75,
        "criteria": {"type": "streak", "days": 7},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440007"),
        "name": "Level Up",
        "description": "Reached Level 5",
        "icon": "\U0001f680",
        "category": "progression",
        "rarity": "uncommon",
        "xp_reward": 500,
        "coin_reward": 150,
        "criteria": {"type": "level", "target": 5},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440008"),
        "name": "Savings Hero",
        "description": "Reached first savings goal",
        "icon": "\U0001f3c6",
        "category": "saving",
        "rarity": "rare",
        "xp_reward": 400,
        "coin_reward": 200,
        "criteria": {"type": "savings_goal"},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440009"),
        "name": "Budget Pro",
        "description": "Stayed within budget for 3 months",
        "icon": "\U0001f48e",
        "category": "budgeting",
        "rarity": "epic",
        "xp_reward": 1000,
        "coin_reward": 500,
        "criteria": {"type": "budget_streak", "months": 3},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440010"),
        "name": "Course Completed",
        "description": "Finished your first course",
        "icon": "\U0001f4da",
        "category": "learning",
        "rarity": "uncommon",
        "xp_reward": 300,
        "coin_reward": 100,
        "criteria": {"type": "course_completed"},
    },
    {
        "id": uuid.UUID("750e8400-e29b-41d4-a716-446655440011"),
        "name": "First Expense",
        "description": "Logged your first expense",
        "icon": "\U0001f4b8",
        "category": "tracking",
        "rarity": "common",
        "xp_reward": 50,
        "coin_reward": 10,
        "criteria": {"type": "expenses", "count": 1},
    },
]

ACHIEVEMENTS_BY_NAME: dict[str, dict] = {a["name"]: a for a in ACHIEVEMENT_SEED_DATA}


async def seed_achievements(db: AsyncSession) -> int:
    """Upsert the achievement catalog by name. Returns number of entries seeded."""
    seeded = 0
    for data in ACHIEVEMENT_SEED_DATA:
        stmt = insert_for(db, Achievement).values(**data)
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={
                "description": stmt.excluded.description,
                "icon": stmt.excluded.icon,
                "category": stmt.excluded.category,
                "rarity": stmt.excluded.rarity,
                "xp_reward": stmt.excluded.xp_reward,
                "coin_reward": stmt.excluded.coin_reward,
                "criteria": stmt.excluded.criteria,
            },
        )
        await db.execute(stmt)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d achievement definitions", seeded)
    return seeded
