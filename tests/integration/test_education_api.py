"""Course, lesson ensurer and lesson completion tests."""

from __future__ import annotations

import json
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from finquest.db.models import Course, Lesson
from finquest.education.ensurer import ensure_course, ensure_lesson_content
from finquest.education.generator import ContentGenerator, get_content_generator
from finquest.education.seed import BUDGETING_BASICS_ID

FILLED_LESSON = uuid.UUID("650e8400-e29b-41d4-a716-446655440001")
EMPTY_LESSON = uuid.UUID("650e8400-e29b-41d4-a716-446655440003")

GENERATED_COURSE = json.dumps(
    {
        "course": {
            "title": "Emergency Funds",
            "description": "Build a safety net",
            "difficulty": "Beginner",
            "estimated_hours": 2,
            "icon": "\U0001f6df",
        },
        "lessons": [
            {"title": "Why a buffer", "content": "# Why", "estimated_minutes": 10, "xp_reward": 100},
            {"title": "How much to keep", "content": "# How much", "estimated_minutes": 12, "xp_reward": 120},
        ],
    }
)


class TestLessonEnsurer:
    @pytest.mark.asyncio
    async def test_filled_lesson_never_generates(self, db_session, fake_provider) -> None:
        result = await ensure_lesson_content(db_session, ContentGenerator(fake_provider), BUDGETING_BASICS_ID, FILLED_LESSON)
        assert result["generated"] is False
        assert result["content"].startswith("# Understanding Budgets")
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_empty_lesson_generated_once(self, db_session, fake_provider) -> None:
        generator = ContentGenerator(fake_provider)
        first = await ensure_lesson_content(db_session, generator, BUDGETING_BASICS_ID, EMPTY_LESSON)
        await db_session.commit()
        second = await ensure_lesson_content(db_session, generator, BUDGETING_BASICS_ID, EMPTY_LESSON)

        assert first == {"content": "# Generated lesson\n\nBody.", "generated": True, "saved": True}
        assert second["generated"] is False
        assert second["content"] == first["content"]
        assert len(fake_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_stored_text_wins(self, db_session, fake_provider, monkeypatch) -> None:
        generator = ContentGenerator(fake_provider)
        real_generate = generator.generate_lesson

        async def racing_generate(title: str, outline: str | None = None) -> str:
            # Another writer fills the lesson while this one is generating
            await db_session.execute(
                Lesson.__table__.update().where(Lesson.id == EMPTY_LESSON).values(content="# Written first")
            )
            return await real_generate(title, outline=outline)

        monkeypatch.setattr(generator, "generate_lesson", racing_generate)
        result = await ensure_lesson_content(db_session, generator, BUDGETING_BASICS_ID, EMPTY_LESSON)
        assert result == {"content": "# Written first", "generated": True, "saved": False}


class TestCourseEnsurer:
    @pytest.mark.asyncio
    async def test_existing_course_untouched(self, db_session, fake_provider) -> None:
        result = await ensure_course(db_session, ContentGenerator(fake_provider), BUDGETING_BASICS_ID)
        assert result["generated"] is False
        assert len(result["course"].lessons) == 5
        assert fake_provider.calls == []

    @pytest.mark.asyncio
    async def test_missing_course_generated_and_persisted(self, db_session, fake_provider) -> None:
        fake_provider.responses = [f"```json\n{GENERATED_COURSE}\n```"]
        course_id = uuid.uuid4()
        generator = ContentGenerator(fake_provider)

        result = await ensure_course(db_session, generator, course_id, title_hint="Emergency Funds")
        await db_session.commit()
        course = result["course"]
        assert result["generated"] is True
        assert course.title == "Emergency Funds"
        assert course.lessons_count == 2
        assert [lesson.order_index for lesson in course.lessons] == [1, 2]

        again = await ensure_course(db_session, generator, course_id)
        assert again["generated"] is False
        assert len(fake_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_json_falls_back(self, db_session, fake_provider) -> None:
        fake_provider.responses = ["Sorry, here is some prose about taxes."]
        course_id = uuid.uuid4()

        result = await ensure_course(db_session, ContentGenerator(fake_provider), course_id, title_hint="Taxes")
        assert result["fallback"] is True
        assert result["course"].title == "Taxes"
        assert len(result["course"].lessons) == 1
        assert result["course"].lessons[0].content == "Sorry, here is some prose about taxes."

    @pytest.mark.asyncio
    async def test_empty_lesson_list_generates_once(self, db_session, fake_provider) -> None:
        fake_provider.responses = ['{"course": {"title": "Budgets"}, "lessons": []}']
        course_id = uuid.uuid4()
        generator = ContentGenerator(fake_provider)

        first = await ensure_course(db_session, generator, course_id, title_hint="Budgets")
        await db_session.commit()
        assert first["fallback"] is True
        assert len(first["course"].lessons) == 1

        for _ in range(2):
            again = await ensure_course(db_session, generator, course_id)
            assert again["generated"] is False
            assert len(again["course"].lessons) == 1
        assert len(fake_provider.calls) == 1

    @pytest.mark.asyncio
    async def test_oversized_fields_stored_within_bounds(self, db_session, fake_provider) -> None:
        fake_provider.responses = [
            json.dumps(
                {
                    "course": {"title": "T" * 400, "icon": "graduation-cap-icon"},
                    "lessons": [{"title": "L" * 400, "content": "Body", "xp_reward": 10_000_000_000}],
                }
            )
        ]
        result = await ensure_course(db_session, ContentGenerator(fake_provider), uuid.uuid4(), title_hint="Big")
        course = result["course"]
        assert result["fallback"] is False
        assert len(course.title) <= 200
        assert len(course.icon) <= 16
        assert len(course.lessons[0].title) == 200
        assert course.lessons[0].xp_reward == 1000

    @pytest.mark.asyncio
    async def test_course_without_lessons_gets_lessons(self, db_session, fake_provider) -> None:
        fake_provider.responses = [GENERATED_COURSE]
        saving_id = uuid.UUID("550e8400-e29b-41d4-a716-446655440002")

        result = await ensure_course(db_session, ContentGenerator(fake_provider), saving_id)
        assert result["course"].title == "Saving Strategies"
        count = (
            await db_session.execute(select(func.count()).select_from(Lesson).where(Lesson.course_id == saving_id))
        ).scalar_one()
        assert count == 2


class TestEducationApi:
    @pytest.mark.asyncio
    async def test_list_courses(self, authed_client: AsyncClient) -> None:
        data = (await authed_client.get("/api/v1/courses")).json()
        assert len(data["courses"]) == 6

    @pytest.mark.asyncio
    async def test_lesson_navigation(self, authed_client: AsyncClient) -> None:
        response = await authed_client.get(f"/api/v1/courses/{BUDGETING_BASICS_ID}/lessons/{FILLED_LESSON}")
        assert response.status_code == 200
        data = response.json()
        assert data["previous_lesson_id"] is None
        assert data["next_lesson_id"] == "650e8400-e29b-41d4-a716-446655440002"

    @pytest.mark.asyncio
    async def test_lesson_from_other_course_is_404(self, authed_client: AsyncClient) -> None:
        other = "550e8400-e29b-41d4-a716-446655440006"
        response = await authed_client.get(f"/api/v1/courses/{other}/lessons/{FILLED_LESSON}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_complete_lesson_awards_once(self, authed_client: AsyncClient) -> None:
        url = f"/api/v1/courses/{BUDGETING_BASICS_ID}/lessons/{FILLED_LESSON}/complete"
        first = (await authed_client.post(url)).json()
        second = (await authed_client.post(url)).json()

        assert first["newly_completed"] is True
        assert first["xp_awarded"] == 100
        assert first["coins_awarded"] == 10
        assert second["newly_completed"] is False
        assert second["xp_awarded"] == 0

        detail = (await authed_client.get(f"/api/v1/courses/{BUDGETING_BASICS_ID}")).json()
        assert detail["completed_lessons"] == 1
        assert detail["progress_percent"] == 20.0

    @pytest.mark.asyncio
    async def test_completing_every_lesson_completes_course(self, authed_client: AsyncClient, db_session) -> None:
        lesson_ids = (
            await db_session.execute(select(Lesson.id).where(Lesson.course_id == BUDGETING_BASICS_ID))
        ).scalars().all()
        outcomes = [
            (await authed_client.post(f"/api/v1/courses/{BUDGETING_BASICS_ID}/lessons/{lid}/complete")).json()
            for lid in lesson_ids
        ]
        assert outcomes[-1]["course_completed"] is True
        assert "Course Completed" in outcomes[-1]["achievements_unlocked"]

    @pytest.mark.asyncio
    async def test_generation_without_provider_is_503(self, app, authed_client: AsyncClient) -> None:
        app.dependency_overrides.pop(get_content_generator)
        response = await authed_client.get(f"/api/v1/courses/{uuid.uuid4()}")
        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_generated_course_via_api(self, authed_client: AsyncClient, fake_provider, db_session) -> None:
        fake_provider.responses = [GENERATED_COURSE]
        course_id = uuid.uuid4()
        response = await authed_client.get(f"/api/v1/courses/{course_id}", params={"title_hint": "Emergency Funds"})
        assert response.status_code == 200
        assert response.json()["generated"] is True
        stored = (await db_session.execute(select(Course.title).where(Course.id == course_id))).scalar_one()
        assert stored == "Emergency Funds"
