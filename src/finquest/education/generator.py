"""
Content generator client with provider abstraction.

Supports the Google Generative Language API (Gemini, preferred) and an
OpenAI-compatible chat-completions gateway. The provider is selected from
configuration: a Google API key wins, then a gateway key; with neither,
generation raises ``ProviderNotConfiguredError``.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from finquest.config import Settings, get_settings
from finquest.errors import MalformedGenerationError, ProviderError, ProviderNotConfiguredError

logger = structlog.get_logger()

MAX_GENERATED_LESSONS = 12

LESSON_SYSTEM_PROMPT = (
    "You are an expert Indian financial literacy educator. Produce deeply detailed, "
    "actionable lessons in clean Markdown with clear structure and pedagogy."
)

LESSON_PROMPT_TEMPLATE = """Create a comprehensive lesson on: "{title}"

Requirements:
- Audience: Beginners in India (ages 13-22).
- Tone: Clear, friendly, and practical.
- Output: Pure Markdown (no code fences).
- Length: 900-1400 words.

Must include, in order:
1. Title (H1)
2. Why it matters (3-5 bullets)
3. Core concepts (H2) with subsections and examples (India-specific where possible)
4. Step-by-step guide or framework with numbered steps
5. Do/Don't checklist
6. Real-life scenarios (2-3) with outcomes
7. Mini case study (India context)
8. Common mistakes and how to fix them
9. Glossary (5-8 terms, simple definitions)
10. 3 Multiple-Choice Questions with answers marked
11. 7-day action plan (bullet list)
12. Quick recap (3 bullets)
13. Motivational tip

Context/Outline (optional): {outline}"""

COURSE_SYSTEM_PROMPT = "You are a course author who returns strict JSON only. No prose. No code fences."

COURSE_PROMPT_TEMPLATE = """Create a concise financial literacy course with 6 lessons for beginners.
Return strict JSON with fields: {{
  "course": {{"title": string, "description": string, "difficulty": "Beginner"|"Intermediate"|"Advanced", "estimated_hours": number, "icon": string}},
  "lessons": Array<{{"title": string, "content": string, "estimated_minutes": number, "xp_reward": number}}>
}}
Focus on practical, Indian context friendly examples where relevant. Title hint: {title_hint}."""

COACH_SYSTEM_PROMPT_TEMPLATE = (
    "You are a professional financial coach. Provide personalized, actionable advice based on "
    "the user's financial situation. Be encouraging, specific, and practical. "
    "User profile: {profile}. Recent expenses: {expenses}"
)

_FENCE_RE = re.compile(r"^```(?:json)?\n|\n```$")


# ---------------------------------------------------------------------------
# Generated payload shapes
# ---------------------------------------------------------------------------


# Column bounds for generated rows.
TITLE_MAX_LENGTH = 200
TAG_MAX_LENGTH = 16
MAX_LESSON_XP = 1000
MAX_LESSON_MINUTES = 240
MAX_COURSE_HOURS = 100


def _clamp(v: Any, upper: int) -> Any:
    if isinstance(v, float):
        v = round(v)
    if isinstance(v, int) and not isinstance(v, bool):
        return min(max(v, 0), upper)
    return v


def _truncate(v: Any, limit: int) -> Any:
    return v.strip()[:limit] if isinstance(v, str) else v


class GeneratedLesson(BaseModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    estimated_minutes: int = 15
    xp_reward: int = Field(100, ge=0)

    @field_validator("title", mode="before")
    @classmethod
    def _bound_title(cls, v: Any) -> Any:
        return _truncate(v, TITLE_MAX_LENGTH)

    @field_validator("estimated_minutes", mode="before")
    @classmethod
    def _bound_minutes(cls, v: Any) -> Any:
        return _clamp(v, MAX_LESSON_MINUTES)

    @field_validator("xp_reward", mode="before")
    @classmethod
    def _bound_xp(cls, v: Any) -> Any:
        return _clamp(v, MAX_LESSON_XP)


class GeneratedCourseInfo(BaseModel):
    title: str = Field(..., min_length=1)
    description: str | None = None
    difficulty: str = "beginner"
    estimated_hours: int | None = None
    icon: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _bound_title(cls, v: Any) -> Any:
        return _truncate(v, TITLE_MAX_LENGTH)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, v: Any) -> Any:
        return _truncate(v, TAG_MAX_LENGTH).lower() if isinstance(v, str) else v

    @field_validator("icon", mode="before")
    @classmethod
    def _bound_icon(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()[:TAG_MAX_LENGTH] or None
        return v

    @field_validator("estimated_hours", mode="before")
    @classmethod
    def _bound_hours(cls, v: Any) -> Any:
        return _clamp(v, MAX_COURSE_HOURS)


class GeneratedCourse(BaseModel):
    course: GeneratedCourseInfo
    lessons: list[GeneratedLesson] = Field(..., min_length=1)


def strip_code_fences(text: str) -> str:
    """Remove one markdown code fence (optionally tagged ``json``) around ``text``."""
    return _FENCE_RE.sub("", text.strip())


def parse_course_payload(text: str) -> GeneratedCourse:
    """Parse generated course JSON, keeping at most 12 lessons.

    Raises:
        MalformedGenerationError: If the text is not JSON of the expected shape.
    """
    try:
        data = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise MalformedGenerationError(f"Malformed AI JSON: {e}", raw=text) from e
    if not isinstance(data, dict):
        raise MalformedGenerationError("Malformed AI JSON: expected an object", raw=text)

    lessons = data.get("lessons")
    if isinstance(lessons, list):
        data["lessons"] = lessons[:MAX_GENERATED_LESSONS]
    try:
        return GeneratedCourse.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedGenerationError(f"Unexpected course shape: {e.error_count()} errors", raw=text) from e


def fallback_course(raw: str, title_hint: str) -> GeneratedCourse:
    """Single-lesson course seeded from unparseable generated text."""
    return GeneratedCourse(
        course=GeneratedCourseInfo(
            title=title_hint,
            description=f"An introduction to {title_hint}.",
            difficulty="beginner",
            estimated_hours=1,
            icon="\U0001f4d8",
        ),
        lessons=[GeneratedLesson(title=title_hint, content=raw.strip(), estimated_minutes=15, xp_reward=100)],
    )


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class BaseContentProvider(ABC):
    """Abstract base class for text generation providers."""

    name = "base"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._transport = transport

    @abstractmethod
    async def complete(self, prompt: str, system: str | None = None) -> str:
        """Return generated text for ``prompt``. Raises ProviderError on failure."""
        ...

    async def _post(self, url: str, payload: dict[str, Any], headers: dict[str, str] | None = None) -> Any:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
            except httpx.HTTPError as e:
                logger.warning("ai_request_failed", provider=self.name, error=str(e))
                raise ProviderError(f"AI provider request failed: {e}") from e

        if response.status_code >= 400:
            logger.warning(
                "ai_provider_error",
                provider=self.name,
                status=response.status_code,
                body=response.text[:500],
            )
            raise ProviderError(f"AI provider error ({response.status_code})", status=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError("Invalid JSON from AI provider", status=response.status_code) from e


class GeminiProvider(BaseContentProvider):
    """Google Generative Language API (``models/{model}:generateContent``)."""

    name = "gemini"

    def __init__(self, *args: Any, base_url: str = "https://generativelanguage.googleapis.com/v1", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.base_url = base_url.rstrip("/")

    async def complete(self, prompt: str, system: str | None = None) -> str:
        text = f"{system}\n\n{prompt}" if system else prompt
        payload = {
            "contents": [{"role": "user", "parts": [{"text": text}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
                "topP": 0.9,
            },
        }
        url = f"{self.base_url}/models/{self.model}:generateContent"
        data = await self._post(url, payload, headers={"x-goog-api-key": self.api_key})
        try:
            result = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            result = ""
        if not isinstance(result, str) or not result.strip():
            raise ProviderError("Empty response from AI provider")
        return result


class GatewayProvider(BaseContentProvider):
    """OpenAI-compatible chat completions endpoint."""

    name = "gateway"

    def __init__(self, *args: Any, url: str, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.url = url

    async def complete(self, prompt: str, system: str | None = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        payload = {"model": self.model, "messages": messages, "temperature": self.temperature}
        data = await self._post(self.url, payload, headers={"Authorization": f"Bearer {self.api_key}"})
        try:
            result = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            result = ""
        if not isinstance(result, str) or not result.strip():
            raise ProviderError("Empty response from AI provider")
        return result


def create_provider(settings: Settings | None = None) -> BaseContentProvider:
    """Create the configured provider.

    Raises:
        ProviderNotConfiguredError: If neither API key is set.
    """
    settings = settings or get_settings()
    common = {
        "timeout": settings.generation_timeout_seconds,
        "temperature": settings.generation_temperature,
        "max_output_tokens": settings.generation_max_output_tokens,
    }
    if settings.google_api_key:
        return GeminiProvider(
            settings.google_api_key,
            settings.gemini_model,
            base_url=settings.gemini_base_url,
            **common,
        )
    if settings.gateway_api_key:
        return GatewayProvider(
            settings.gateway_api_key,
            settings.gateway_model,
            url=settings.gateway_url,
            **common,
        )
    raise ProviderNotConfiguredError(
        "No AI provider configured. Set FINQUEST_GOOGLE_API_KEY (preferred) or FINQUEST_GATEWAY_API_KEY."
    )


class ContentGenerator:
    """
    High-level generation service: prompts in, lesson text or course payloads out.

    The provider is resolved on first use, so requests that never generate
    work without AI credentials.
    """

    def __init__(self, provider: BaseContentProvider | None = None) -> None:
        self._provider = provider

    @property
    def provider(self) -> BaseContentProvider:
        if self._provider is None:
            self._provider = create_provider()
        return self._provider

    async def generate_lesson(self, title: str, outline: str | None = None) -> str:
        """Markdown lesson body for ``title``."""
        prompt = LESSON_PROMPT_TEMPLATE.format(title=title, outline=outline or "N/A")
        text = await self.provider.complete(prompt, system=LESSON_SYSTEM_PROMPT)
        logger.info("lesson_generated", title=title, provider=self.provider.name, chars=len(text))
        return text.strip()

    async def generate_course_text(self, title_hint: str | None = None) -> str:
        """Raw course JSON text as returned by the provider."""
        prompt = COURSE_PROMPT_TEMPLATE.format(title_hint=title_hint or "Financial Literacy 101")
        return await self.provider.complete(prompt, system=COURSE_SYSTEM_PROMPT)

    async def generate_course(self, title_hint: str | None = None) -> GeneratedCourse:
        """
        Generate and parse a whole course.

        Raises:
            MalformedGenerationError: If the provider's text is not valid course JSON.
        """
        text = await self.generate_course_text(title_hint)
        course = parse_course_payload(text)
        logger.info(
            "course_generated",
            title=course.course.title,
            lessons=len(course.lessons),
            provider=self.provider.name,
        )
        return course

    async def coach_advice(self, message: str, profile: dict[str, Any], expenses: list[dict[str, Any]]) -> str:
        """Personalized advice for ``message`` given the user's profile and recent expenses."""
        system = COACH_SYSTEM_PROMPT_TEMPLATE.format(
            profile=json.dumps(profile, default=str),
            expenses=json.dumps(expenses, default=str),
        )
        return (await self.provider.complete(message, system=system)).strip()


def get_content_generator() -> ContentGenerator:
    """FastAPI dependency: a generator bound to the configured provider."""
    return ContentGenerator()
