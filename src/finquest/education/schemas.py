"""Pydantic models for course and lesson endpoints."""

from __future__ import annotations

import uuid

from pydantic import BaseModel


class CourseResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str | None = None
    difficulty: str
    lessons_count: int
    estimated_hours: int | None = None
    icon: str | None = None


class CourseListResponse(BaseModel):
    courses: list[CourseResponse]


class LessonSummary(BaseModel):
    id: uuid.UUID
    title: str
    order_index: int
    xp_reward: int
    estimated_minutes: int | None = None
    has_content: bool
    completed: bool


class CourseDetailResponse(BaseModel):
    course: CourseResponse
    lessons: list[LessonSummary]
    completed_lessons: int
    progress_percent: float
    total_xp: int
    generated: bool


class LessonResponse(LessonSummary):
    course_id: uuid.UUID
    content: str
    generated: bool
    saved: bool
    previous_lesson_id: uuid.UUID | None = None
    next_lesson_id: uuid.UUID | None = None


class LessonCompleteResponse(BaseModel):
    newly_completed: bool
    xp_awarded: int
    coins_awarded: int
    course_completed: bool
    achievements_unlocked: list[str] = []
