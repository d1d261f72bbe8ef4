"""Education API: courses, lessons (generated on demand) and completion."""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Course, Profile
from finquest.dependencies import get_redis_dep
from finquest.education.generator import ContentGenerator, get_content_generator
from finquest.education.schemas import (
    CourseDetailResponse,
    CourseListResponse,
    CourseResponse,
    LessonCompleteResponse,
    LessonResponse,
    LessonSummary,
)
from finquest.education.service import complete_lesson, get_course_detail, get_lesson, list_courses

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Education"])


def _course_response(course: Course) -> CourseResponse:
    return CourseResponse(
        id=course.id,
        title=course.title,
        description=course.description,
        difficulty=course.difficulty,
        lessons_count=course.lessons_count,
        estimated_hours=course.estimated_hours,
        icon=course.icon,
    )


@router.get("/courses", response_model=CourseListResponse)
async def get_courses(
    _profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> CourseListResponse:
    courses = await list_courses(db)
    return CourseListResponse(courses=[_course_response(c) for c in courses])


@router.get("/courses/{course_id}", response_model=CourseDetailResponse)
async def get_course(
    course_id: uuid.UUID,
    title_hint: str | None = Query(None, max_length=200),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    generator: ContentGenerator = Depends(get_content_generator),
) -> CourseDetailResponse:
    """Course detail. A missing course, or one without lessons, is generated and saved."""
    detail = await get_course_detail(db, generator, profile.id, course_id, title_hint=title_hint)
    await db.commit()
    if detail["generated"]:
        logger.info("course_ensured", course_id=str(course_id), lessons=len(detail["lessons"]))
    return CourseDetailResponse(
        course=_course_response(detail["course"]),
        lessons=[LessonSummary(**lesson) for lesson in detail["lessons"]],
        completed_lessons=detail["completed_lessons"],
        progress_percent=detail["progress_percent"],
        total_xp=detail["total_xp"],
        generated=detail["generated"],
    )


@router.get("/courses/{course_id}/lessons/{lesson_id}", response_model=LessonResponse)
async def get_course_lesson(
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    generator: ContentGenerator = Depends(get_content_generator),
) -> LessonResponse:
    """Lesson content, generated and saved on first view if empty."""
    lesson = await get_lesson(db, generator, profile.id, course_id, lesson_id)
    await db.commit()
    return LessonResponse(**lesson)


@router.post("/courses/{course_id}/lessons/{lesson_id}/complete", response_model=LessonCompleteResponse)
async def post_complete_lesson(
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> LessonCompleteResponse:
    """Mark a lesson complete (+xp_reward XP, +xp_reward // 10 coins, first time only)."""
    outcome = await complete_lesson(db, profile.id, course_id, lesson_id, redis=redis)
    await db.commit()
    return LessonCompleteResponse(**outcome)
