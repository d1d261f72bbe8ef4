"""Content generator parsing and provider tests."""

from __future__ import annotations

import json

import httpx
import pytest

from finquest.config import Settings
from finquest.education.generator import (
    ContentGenerator,
    GatewayProvider,
    GeminiProvider,
    create_provider,
    fallback_course,
    parse_course_payload,
    strip_code_fences,
)
from finquest.errors import MalformedGenerationError, ProviderError, ProviderNotConfiguredError

COURSE_JSON = json.dumps(
    {
        "course": {
            "title": "Saving Strategies",
            "description": "Save more, stress less",
            "difficulty": "Beginner",
            "estimated_hours": 2.5,
            "icon": "\U0001f3e6",
        },
        "lessons": [
            {"title": f"Lesson {i}", "content": "Text", "estimated_minutes": 10, "xp_reward": 100}
            for i in range(1, 4)
        ],
    }
)


class TestCourseParsing:
    def test_strips_json_fence(self) -> None:
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_plain_text_untouched(self) -> None:
        assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'

    def test_parses_fenced_course(self) -> None:
        course = parse_course_payload(f"```json\n{COURSE_JSON}\n```")
        assert course.course.title == "Saving Strategies"
        assert course.course.difficulty == "beginner"
        assert course.course.estimated_hours == 2
        assert [lesson.title for lesson in course.lessons] == ["Lesson 1", "Lesson 2", "Lesson 3"]

    def test_caps_lessons(self) -> None:
        payload = {"course": {"title": "Long"}, "lessons": [{"title": f"L{i}"} for i in range(20)]}
        assert len(parse_course_payload(json.dumps(payload)).lessons) == 12

    def test_malformed_json_keeps_raw_text(self) -> None:
        with pytest.raises(MalformedGenerationError) as exc_info:
            parse_course_payload("Here is your course: Budgeting 101")
        assert exc_info.value.raw == "Here is your course: Budgeting 101"

    def test_wrong_shape(self) -> None:
        with pytest.raises(MalformedGenerationError):
            parse_course_payload(json.dumps({"lessons": []}))

    def test_empty_lessons_rejected(self) -> None:
        text = json.dumps({"course": {"title": "Budgets"}, "lessons": []})
        with pytest.raises(MalformedGenerationError) as exc_info:
            parse_course_payload(text)
        assert exc_info.value.raw == text

    def test_missing_lessons_rejected(self) -> None:
        with pytest.raises(MalformedGenerationError):
            parse_course_payload(json.dumps({"course": {"title": "Budgets"}}))

    def test_long_strings_truncated_to_columns(self) -> None:
        payload = {
            "course": {"title": "C" * 500, "icon": "graduation-cap-icon", "difficulty": "Extremely Advanced Level"},
            "lessons": [{"title": "L" * 500, "content": "Text"}],
        }
        course = parse_course_payload(json.dumps(payload))
        assert len(course.course.title) == 200
        assert course.course.icon == "graduation-cap-i"
        assert len(course.course.difficulty) == 16
        assert len(course.lessons[0].title) == 200

    def test_blank_icon_dropped(self) -> None:
        payload = {"course": {"title": "Budgets", "icon": "   "}, "lessons": [{"title": "One"}]}
        assert parse_course_payload(json.dumps(payload)).course.icon is None

    def test_numbers_clamped(self) -> None:
        payload = {
            "course": {"title": "Budgets", "estimated_hours": 10_000},
            "lessons": [
                {"title": "Huge", "xp_reward": 10_000_000_000, "estimated_minutes": 99_999},
                {"title": "Negative", "xp_reward": -50, "estimated_minutes": 12.6},
            ],
        }
        course = parse_course_payload(json.dumps(payload))
        assert course.course.estimated_hours == 100
        assert [lesson.xp_reward for lesson in course.lessons] == [1000, 0]
        assert [lesson.estimated_minutes for lesson in course.lessons] == [240, 13]

    def test_fallback_course(self) -> None:
        course = fallback_course("  some prose  ", "Tax Planning")
        assert course.course.title == "Tax Planning"
        assert len(course.lessons) == 1
        assert course.lessons[0].content == "some prose"


def _gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class TestGeminiProvider:
    @pytest.mark.asyncio
    async def test_complete_sends_key_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_gemini_body("# Lesson"))

        provider = GeminiProvider(
            "g-key", "gemini-test", base_url="https://gemini.test/v1", transport=httpx.MockTransport(handler)
        )
        assert await provider.complete("Explain budgets", system="Be clear") == "# Lesson"

        request = seen[0]
        assert request.url.path == "/v1/models/gemini-test:generateContent"
        assert request.headers["x-goog-api-key"] == "g-key"
        assert "key" not in request.url.params
        body = json.loads(request.content)
        assert body["contents"][0]["parts"][0]["text"] == "Be clear\n\nExplain budgets"
        assert body["generationConfig"]["topP"] == 0.9

    @pytest.mark.asyncio
    async def test_error_status(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(429, text="quota"))
        provider = GeminiProvider("g-key", "gemini-test", transport=transport)
        with pytest.raises(ProviderError) as exc_info:
            await provider.complete("hi")
        assert exc_info.value.status == 429

    @pytest.mark.asyncio
    async def test_empty_text(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"candidates": []}))
        provider = GeminiProvider("g-key", "gemini-test", transport=transport)
        with pytest.raises(ProviderError):
            await provider.complete("hi")


class TestGatewayProvider:
    @pytest.mark.asyncio
    async def test_chat_completion(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"choices": [{"message": {"content": "Save 20%"}}]})

        provider = GatewayProvider(
            "gw-key", "gw-model", url="https://gateway.test/chat", transport=httpx.MockTransport(handler)
        )
        assert await provider.complete("How do I save?", system="Coach") == "Save 20%"
        assert seen[0].headers["authorization"] == "Bearer gw-key"
        body = json.loads(seen[0].content)
        assert [m["role"] for m in body["messages"]] == ["system", "user"]

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = GatewayProvider("gw-key", "gw-model", url="https://gateway.test/chat", transport=httpx.MockTransport(handler))
        with pytest.raises(ProviderError):
            await provider.complete("hi")


class TestProviderSelection:
    def test_google_key_preferred(self) -> None:
        provider = create_provider(Settings(google_api_key="g", gateway_api_key="gw"))
        assert isinstance(provider, GeminiProvider)

    def test_gateway_fallback(self) -> None:
        provider = create_provider(Settings(google_api_key="", gateway_api_key="gw"))
        assert isinstance(provider, GatewayProvider)

    def test_not_configured(self) -> None:
        with pytest.raises(ProviderNotConfiguredError):
            create_provider(Settings(google_api_key="", gateway_api_key=""))

    @pytest.mark.asyncio
    async def test_generator_resolves_provider_lazily(self) -> None:
        generator = ContentGenerator()
        with pytest.raises(ProviderNotConfiguredError):
            await generator.generate_lesson("Budgets")
