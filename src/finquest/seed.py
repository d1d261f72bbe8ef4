"""Idempotent seeding of the built-in catalogs."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from finquest.education.seed import seed_courses
from finquest.gamification.seed import seed_achievements
from finquest.quiz.seed import seed_quiz_questions

logger = logging.getLogger(__name__)


async def seed_catalogs(db: AsyncSession) -> None:
    """Achievements, courses with their lessons, and quiz questions."""
    await seed_achievements(db)
    await seed_courses(db)
    await seed_quiz_questions(db)
