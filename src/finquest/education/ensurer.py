"""Generate-if-missing for lesson content and whole courses.

Policy: always check the store before generating, always persist what was
generated. Writes are conditional at the store boundary:

* lesson content: ``UPDATE ... WHERE content IS NULL OR trim(content) = ''``
* courses: insert-if-absent on the primary key
* lessons: insert-if-absent on (course_id, order_index)

When two requests race, the first write wins and both return the stored text.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from finquest.db.models import Course, Lesson
from finquest.db.upsert import insert_for
from finquest.education.generator import (
    ContentGenerator,
    GeneratedCourse,
    GeneratedLesson,
    fallback_course,
)
from finquest.errors import MalformedGenerationError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_COURSE_TITLE = "Financial Literacy 101"
DIFFICULTIES = ("beginner", "intermediate", "advanced")


def has_content(content: str | None) -> bool:
    return bool(content and content.strip())


async def ensure_lesson_content(
    db: AsyncSession,
    generator: ContentGenerator,
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
) -> dict:
    """Return the lesson's content, generating and persisting it if empty.

    Result keys: ``content``, ``generated`` (a generation call was made) and
    ``saved`` (this call's text was written).

    Raises:
        NotFoundError: If the lesson does not belong to the course.
        GenerationError: If the provider fails; nothing is written.
    """
    result = await db.execute(
        select(Lesson)
        .options(selectinload(Lesson.course))
        .where(Lesson.id == lesson_id, Lesson.course_id == course_id)
    )
    lesson = result.scalar_one_or_none()
    if lesson is None:
        raise NotFoundError("Lesson not found")
    if has_content(lesson.content):
        return {"content": lesson.content, "generated": False, "saved": False}

    outline = f"Lesson {lesson.order_index} of the course \"{lesson.course.title}\""
    text = await generator.generate_lesson(lesson.title, outline=outline)

    written = await db.execute(
        update(Lesson)
        .where(
            Lesson.id == lesson_id,
            Lesson.course_id == course_id,
            or_(Lesson.content.is_(None), func.trim(Lesson.content) == ""),
        )
        .values(content=text)
        .execution_options(synchronize_session=False)
    )
    if written.rowcount == 1:
        logger.info("Saved generated content for lesson %s", lesson_id)
        await db.refresh(lesson)
        return {"content": text, "generated": True, "saved": True}

    # Another writer filled it first; the stored text wins
    stored = (await db.execute(select(Lesson.content).where(Lesson.id == lesson_id))).scalar_one()
    await db.refresh(lesson)
    return {"content": stored, "generated": True, "saved": False}


async def _generate_or_fallback(generator: ContentGenerator, title_hint: str) -> tuple[GeneratedCourse, bool]:
    """Generated course, or the single-lesson fallback when its JSON is malformed."""
    try:
        return await generator.generate_course(title_hint), False
    except MalformedGenerationError as e:
        logger.warning("Course JSON malformed for %r, using single-lesson fallback: %s", title_hint, e)
        return fallback_course(e.raw, title_hint), True


def _difficulty(value: str) -> str:
    return value if value in DIFFICULTIES else "beginner"


async def _insert_lessons(db: AsyncSession, course_id: uuid.UUID, lessons: list[GeneratedLesson]) -> None:
    for index, lesson in enumerate(lessons, start=1):
        stmt = (
            insert_for(db, Lesson)
            .values(
                id=uuid.uuid4(),
                course_id=course_id,
                title=lesson.title,
                content=lesson.content or None,
                order_index=index,
                xp_reward=lesson.xp_reward,
                estimated_minutes=lesson.estimated_minutes,
            )
            .on_conflict_do_nothing(index_elements=["course_id", "order_index"])
        )
        await db.execute(stmt)

    lesson_count = select(func.count()).select_from(Lesson).where(Lesson.course_id == course_id).scalar_subquery()
    await db.execute(
        update(Course)
        .where(Course.id == course_id)
        .values(lessons_count=lesson_count)
        .execution_options(synchronize_session=False)
    )


async def _load_course(db: AsyncSession, course_id: uuid.UUID) -> Course | None:
    result = await db.execute(
        select(Course)
        .options(selectinload(Course.lessons))
        .where(Course.id == course_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def ensure_course(
    db: AsyncSession,
    generator: ContentGenerator,
    course_id: uuid.UUID,
    title_hint: str | None = None,
) -> dict:
    """Return a course with its lessons, generating whatever is missing.

    * existing course with lessons: returned as is, no generation call
    * missing course: one generation call, course and lessons persisted
    * course without lessons: lessons generated and persisted

    Result keys: ``course``, ``generated``, ``fallback`` (malformed JSON was
    replaced by a single-lesson course).

    Raises:
        GenerationError: Provider not configured or failing. Malformed JSON
            never raises.
    """
    course = await _load_course(db, course_id)
    if course is not None and course.lessons:
        return {"course": course, "generated": False, "fallback": False}

    if course is None:
        hint = title_hint or DEFAULT_COURSE_TITLE
        payload, fallback = await _generate_or_fallback(generator, hint)
        info = payload.course
        created = await db.execute(
            insert_for(db, Course)
            .values(
                id=course_id,
                title=info.title,
                description=info.description,
                difficulty=_difficulty(info.difficulty),
                estimated_hours=info.estimated_hours,
                icon=info.icon,
                lessons_count=0,
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        if created.rowcount == 1:
            logger.info("Created generated course %s (%r)", course_id, info.title)
        else:
            # Another request created it first; keep its lessons if it has any
            course = await _load_course(db, course_id)
            if course is not None and course.lessons:
                return {"course": course, "generated": True, "fallback": fallback}
    else:
        payload, fallback = await _generate_or_fallback(generator, title_hint or course.title)

    await _insert_lessons(db, course_id, payload.lessons)
    course = await _load_course(db, course_id)
    if course is None:
        raise NotFoundError("Course not found")
    return {"course": course, "generated": True, "fallback": fallback}
