"""Courses, lessons and per-user lesson progress."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Course, Lesson, UserProgress
from finquest.db.upsert import insert_for
from finquest.education.ensurer import ensure_course, ensure_lesson_content
from finquest.education.generator import ContentGenerator
from finquest.errors import NotFoundError
from finquest.gamification.achievement_service import evaluate_achievements
from finquest.gamification.xp_service import award_xp

logger = logging.getLogger(__name__)


async def list_courses(db: AsyncSession) -> list[Course]:
    result = await db.execute(select(Course).order_by(Course.created_at, Course.title))
    return list(result.scalars().all())


async def completed_lesson_ids(db: AsyncSession, user_id: uuid.UUID, course_id: uuid.UUID) -> set[uuid.UUID]:
    result = await db.execute(
        select(UserProgress.lesson_id).where(
            UserProgress.user_id == user_id,
            UserProgress.course_id == course_id,
            UserProgress.completed.is_(True),
        )
    )
    return set(result.scalars().all())


def _lesson_summary(lesson: Lesson, completed: set[uuid.UUID]) -> dict:
    return {
        "id": lesson.id,
        "title": lesson.title,
        "order_index": lesson.order_index,
        "xp_reward": lesson.xp_reward,
        "estimated_minutes": lesson.estimated_minutes,
        "has_content": bool(lesson.content and lesson.content.strip()),
        "completed": lesson.id in completed,
    }


async def get_course_detail(
    db: AsyncSession,
    generator: ContentGenerator,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    title_hint: str | None = None,
) -> dict:
    """Course with lessons (generated if missing) and the user's progress."""
    ensured = await ensure_course(db, generator, course_id, title_hint=title_hint)
    course: Course = ensured["course"]
    completed = await completed_lesson_ids(db, user_id, course_id)
    lessons = [_lesson_summary(lesson, completed) for lesson in course.lessons]
    done = sum(1 for lesson in lessons if lesson["completed"])
    return {
        "course": course,
        "lessons": lessons,
        "completed_lessons": done,
        "progress_percent": round(done / len(lessons) * 100, 1) if lessons else 0.0,
        "total_xp": sum(lesson["xp_reward"] for lesson in lessons),
        "generated": ensured["generated"],
    }


async def get_lesson(
    db: AsyncSession,
    generator: ContentGenerator,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
) -> dict:
    """Lesson with content (generated once if empty) and neighbours for navigation."""
    ensured = await ensure_lesson_content(db, generator, course_id, lesson_id)
    siblings = (
        await db.execute(select(Lesson).where(Lesson.course_id == course_id).order_by(Lesson.order_index))
    ).scalars().all()
    ids = [s.id for s in siblings]
    position = ids.index(lesson_id)
    lesson = siblings[position]
    completed = await completed_lesson_ids(db, user_id, course_id)
    return {
        **_lesson_summary(lesson, completed),
        "course_id": course_id,
        "content": ensured["content"],
        "generated": ensured["generated"],
        "saved": ensured["saved"],
        "previous_lesson_id": ids[position - 1] if position > 0 else None,
        "next_lesson_id": ids[position + 1] if position + 1 < len(ids) else None,
    }


async def complete_lesson(
    db: AsyncSession,
    user_id: uuid.UUID,
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
    redis: Any | None = None,
) -> dict:
    """Mark a lesson complete and award its XP once.

    The progress upsert only changes a row that is not yet completed, and the
    award (``xp_reward`` XP, ``xp_reward // 10`` coins) runs in the same
    transaction, so progress and XP commit or fail together.

    Raises:
        NotFoundError: If the lesson does not belong to the course.
    """
    lesson = (
        await db.execute(select(Lesson).where(Lesson.id == lesson_id, Lesson.course_id == course_id))
    ).scalar_one_or_none()
    if lesson is None:
        raise NotFoundError("Lesson not found")

    now = datetime.now(timezone.utc)
    stmt = insert_for(db, UserProgress).values(
        id=uuid.uuid4(),
        user_id=user_id,
        course_id=course_id,
        lesson_id=lesson_id,
        completed=True,
        completed_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "lesson_id"],
        set_={"completed": True, "completed_at": now},
        where=UserProgress.completed.is_(False),
    )
    newly_completed = (await db.execute(stmt)).rowcount == 1

    outcome: dict[str, Any] = {
        "newly_completed": newly_completed,
        "xp_awarded": 0,
        "coins_awarded": 0,
        "course_completed": False,
        "achievements_unlocked": [],
    }
    if not newly_completed:
        return outcome

    award = await award_xp(
        db, user_id, lesson.xp_reward, with_coins=True, reason=f"lesson:{lesson_id}", redis=redis
    )
    outcome["xp_awarded"] = award["amount"]
    outcome["coins_awarded"] = award["coins_awarded"]

    total = (
        await db.execute(select(func.count()).select_from(Lesson).where(Lesson.course_id == course_id))
    ).scalar_one()
    done = len(await completed_lesson_ids(db, user_id, course_id))
    outcome["course_completed"] = total > 0 and done >= total

    try:
        outcome["achievements_unlocked"] = await evaluate_achievements(db, user_id, "lesson", redis=redis)
    except Exception:
        logger.warning("Lesson achievement evaluation failed for %s", user_id, exc_info=True)
    return outcome
