"""Health checks, authentication and profile lifecycle tests."""

from __future__ import annotations

import uuid
from collections.abc import Callable

import jwt
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from finquest.database import get_session


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_readiness_without_redis(self, client: AsyncClient) -> None:
        data = (await client.get("/ready")).json()
        assert data["status"] == "ready"
        assert data["checks"] == {"database": "ok", "redis": "not configured"}

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/version", headers={"X-Request-Id": "abc-123"})
        assert response.headers["X-Request-Id"] == "abc-123"


class TestAuth:
    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/me")
        assert response.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_bad_signature(self, client: AsyncClient) -> None:
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "aud": "authenticated", "exp": 4102444800},
            "some-other-secret-that-is-long-enough",
            algorithm="HS256",
        )
        response = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient, token_factory: Callable[..., str]) -> None:
        token = token_factory(uuid.uuid4(), expires_minutes=-5)
        response = await client.get("/api/v1/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401


class TestProfileLifecycle:
    @pytest.mark.asyncio
    async def test_first_request_creates_profile(self, authed_client: AsyncClient, user_id: uuid.UUID) -> None:
        data = (await authed_client.get("/api/v1/me")).json()
        assert data["id"] == str(user_id)
        assert data["full_name"] == "Asha Learner"
        assert data["xp"] == 50
        assert data["level_title"] == "Money Rookie"

        again = (await authed_client.get("/api/v1/me")).json()
        assert again["xp"] == 50

        achievements = (await authed_client.get("/api/v1/achievements")).json()
        assert achievements["total_unlocked"] == 1

    @pytest.mark.asyncio
    async def test_update_profile(self, authed_client: AsyncClient) -> None:
        response = await authed_client.patch("/api/v1/me", json={"monthly_budget": "1500", "currency": "inr"})
        assert response.status_code == 200
        assert response.json()["currency"] == "INR"
        assert float(response.json()["monthly_budget"]) == 1500.0

    @pytest.mark.asyncio
    async def test_daily_login_once_per_day(self, authed_client: AsyncClient) -> None:
        first = (await authed_client.post("/api/v1/me/daily-login")).json()
        second = (await authed_client.post("/api/v1/me/daily-login")).json()
        assert first["awarded"] is True
        assert first["streak_days"] == 1
        assert second["awarded"] is False

    @pytest.mark.asyncio
    async def test_notifications_flow(self, authed_client: AsyncClient) -> None:
        await authed_client.get("/api/v1/me")
        listing = (await authed_client.get("/api/v1/notifications")).json()
        assert listing["unread_count"] == 1
        notification_id = listing["notifications"][0]["id"]

        read = await authed_client.post(f"/api/v1/notifications/{notification_id}/read")
        assert read.status_code == 200
        assert (await authed_client.post("/api/v1/notifications/999999/read")).status_code == 404


class TestCors:
    @pytest.mark.asyncio
    async def test_preflight_from_web_client(self, client: AsyncClient) -> None:
        response = await client.options(
            "/api/v1/expenses",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "PATCH",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
        assert response.headers["access-control-max-age"] == "86400"
        assert "PATCH" in response.headers["access-control-allow-methods"]

    @pytest.mark.asyncio
    async def test_unknown_origin_refused(self, client: AsyncClient) -> None:
        response = await client.options(
            "/api/v1/expenses",
            headers={"Origin": "https://evil.example", "Access-Control-Request-Method": "GET"},
        )
        assert response.status_code == 400
        assert "access-control-allow-origin" not in response.headers

    @pytest.mark.asyncio
    async def test_request_id_exposed_to_browser(self, client: AsyncClient) -> None:
        response = await client.get("/version", headers={"Origin": "http://localhost:5173"})
        assert "X-Request-Id" in response.headers["access-control-expose-headers"]


class _CountingRedis:
    """Counter store whose every client is already at the limit."""

    def __init__(self, start: int) -> None:
        self.start = start

    def pipeline(self) -> _CountingRedis:
        return self

    def incr(self, _key: str) -> None:
        self.start += 1

    def expire(self, _key: str, _ttl: int) -> None:
        return None

    async def execute(self) -> list[object]:
        return [self.start, True]


class TestRateLimit:
    @pytest.mark.asyncio
    async def test_over_limit_returns_429(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("finquest.middleware.rate_limit.get_redis_or_none", lambda: _CountingRedis(100))
        response = await client.get("/version")
        assert response.status_code == 429
        assert response.headers["X-RateLimit-Remaining"] == "0"

    @pytest.mark.asyncio
    async def test_health_exempt(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("finquest.middleware.rate_limit.get_redis_or_none", lambda: _CountingRedis(100))
        assert (await client.get("/health")).status_code == 200

    @pytest.mark.asyncio
    async def test_headers_under_limit(self, client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("finquest.middleware.rate_limit.get_redis_or_none", lambda: _CountingRedis(0))
        response = await client.get("/version")
        assert response.status_code == 200
        assert response.headers["X-RateLimit-Remaining"] == "99"


class TestStoreFailure:
    @pytest.mark.asyncio
    async def test_store_outage_is_503(self, app, authed_client: AsyncClient) -> None:
        async def unavailable_session():
            raise OperationalError("SELECT 1", {}, ConnectionRefusedError("db down"))
            yield  # pragma: no cover

        app.dependency_overrides[get_session] = unavailable_session
        response = await authed_client.get("/api/v1/expenses")
        assert response.status_code == 503
        assert response.json() == {"detail": "Data store unavailable"}
