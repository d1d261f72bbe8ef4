"""Course and lesson seed data."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Course, Lesson
from finquest.db.upsert import insert_for

logger = logging.getLogger(__name__)

BUDGETING_BASICS_ID = uuid.UUID("550e8400-e29b-41d4-a716-446655440001")

COURSE_SEED_DATA: list[dict] = [
    {
        "id": BUDGETING_BASICS_ID,
        "title": "Budgeting Basics",
        "description": "Learn the fundamentals of creating and maintaining a budget",
        "difficulty": "beginner",
        "lessons_count": 5,
        "estimated_hours": 2,
        "icon": "\U0001f4b0",
    },
    {
        "id": uuid.UUID("550e8400-e29b-41d4-a716-446655440002"),
        "title": "Saving Strategies",
        "description": "Master effective saving techniques and emergency funds",
        "difficulty": "beginner",
        "lessons_count": 0,
        "estimated_hours": 3,
        "icon": "\U0001f3e6",
    },
    {
        "id": uuid.UUID("550e8400-e29b-41d4-a716-446655440003"),
        "title": "Credit & Debt Management",
        "description": "Understand credit scores and debt reduction strategies",
        "difficulty": "intermediate",
        "lessons_count": 0,
        "estimated_hours": 4,
        "icon": "\U0001f4b3",
    },
    {
        "id": uuid.UUID("550e8400-e29b-41d4-a716-446655440004"),
        "title": "Investment Fundamentals",
        "description": "Introduction to stocks, bonds, and investment principles",
        "difficulty": "intermediate",
        "lessons_count": 0,
        "estimated_hours": 5,
        "icon": "\U0001f4c8",
    },
    {
        "id": uuid.UUID("550e8400-e29b-41d4-a716-446655440005"),
        "title": "Retirement Planning",
        "description": "Plan for your financial future and retirement",
        "difficulty": "advanced",
        "lessons_count": 0,
        "estimated_hours": 4,
        "icon": "\U0001f3d6️",
    },
    {
        "id": uuid.UUID("550e8400-e29b-41d4-a716-446655440006"),
        "title": "Tax Planning",
        "description": "Optimize your taxes and understand deductions",
        "difficulty": "advanced",
        "lessons_count": 0,
        "estimated_hours": 3,
        "icon": "\U0001f4ca",
    },
]

LESSON_SEED_DATA: list[dict] = [
    {
        "id": uuid.UUID("650e8400-e29b-41d4-a716-446655440001"),
        "course_id": BUDGETING_BASICS_ID,
        "title": "What is a Budget?",
        "content": (
            "# Understanding Budgets\n\n"
            "A budget is a financial plan that helps you track income and expenses.\n\n"
            "## Key Components\n"
            "- **Income**: All money coming in\n"
            "- **Fixed Expenses**: Rent, utilities, insurance\n"
            "- **Variable Expenses**: Food, entertainment, shopping\n"
            "- **Savings**: Money set aside for future goals\n\n"
            "## The 50/30/20 Rule\n"
            "- 50% Needs (essentials)\n"
            "- 30% Wants (lifestyle)\n"
            "- 20% Savings & Debt\n"
        ),
        "order_index": 1,
        "xp_reward": 100,
        "estimated_minutes": 15,
    },
    {
        "id": uuid.UUID("650e8400-e29b-41d4-a716-446655440002"),
        "course_id": BUDGETING_BASICS_ID,
        "title": "Tracking Your Income",
        "content": (
            "# Income Tracking\n\n"
            "Understanding your income is the foundation of budgeting.\n\n"
            "## Types of Income\n"
            "1. **Primary Income**: Salary, wages\n"
            "2. **Side Income**: Freelance, gigs\n"
            "3. **Passive Income**: Investments, rental\n"
            "4. **Other**: Gifts, bonuses\n\n"
            "Tip: use net income (after taxes) for accurate budgeting.\n"
        ),
        "order_index": 2,
        "xp_reward": 100,
        "estimated_minutes": 20,
    },
    {
        "id": uuid.UUID("650e8400-e29b-41d4-a716-446655440003"),
        "course_id": BUDGETING_BASICS_ID,
        "title": "Fixed vs Variable Expenses",
        "content": None,
        "order_index": 3,
        "xp_reward": 100,
        "estimated_minutes": 25,
    },
    {
        "id": uuid.UUID("650e8400-e29b-41d4-a716-446655440004"),
        "course_id": BUDGETING_BASICS_ID,
        "title": "Creating Your First Budget",
        "content": None,
        "order_index": 4,
        "xp_reward": 150,
        "estimated_minutes": 30,
    },
    {
        "id": uuid.UUID("650e8400-e29b-41d4-a716-446655440005"),
        "course_id": BUDGETING_BASICS_ID,
        "title": "Maintaining Your Budget",
        "content": None,
        "order_index": 5,
        "xp_reward": 150,
        "estimated_minutes": 20,
    },
]


async def seed_courses(db: AsyncSession) -> int:
    """Insert seed courses and lessons that are missing. Never overwrites."""
    for data in COURSE_SEED_DATA:
        await db.execute(insert_for(db, Course).values(**data).on_conflict_do_nothing(index_elements=["id"]))
    for data in LESSON_SEED_DATA:
        await db.execute(insert_for(db, Lesson).values(**data).on_conflict_do_nothing())

    await db.commit()
    logger.info("Seeded %d courses, %d lessons", len(COURSE_SEED_DATA), len(LESSON_SEED_DATA))
    return len(COURSE_SEED_DATA)
