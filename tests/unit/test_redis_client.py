"""Optional Redis helpers: connection fallback, counters, event publishing."""

from __future__ import annotations

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from finquest.redis_client import (
    NOTIFICATIONS_CHANNEL,
    connect_redis,
    count_hit,
    get_redis_or_none,
    publish_event,
)


class FakePipeline:
    def __init__(self, store: FakeRedis) -> None:
        self.store = store
        self.ops: list[tuple[str, str]] = []

    def incr(self, key: str) -> None:
        self.ops.append(("incr", key))

    def expire(self, key: str, ttl: int) -> None:
        self.ops.append(("expire", key))
        self.store.ttls[key] = ttl

    async def execute(self) -> list[object]:
        results: list[object] = []
        for op, key in self.ops:
            if op == "incr":
                self.store.counters[key] = self.store.counters.get(key, 0) + 1
                results.append(self.store.counters[key])
            else:
                results.append(True)
        return results


class FakeRedis:
    def __init__(self) -> None:
        self.counters: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 1


class DownRedis(FakeRedis):
    async def publish(self, channel: str, message: str) -> int:
        raise RedisConnectionError("connection refused")


class TestConnect:
    @pytest.mark.asyncio
    async def test_empty_url_disables_redis(self) -> None:
        assert await connect_redis("") is None
        assert get_redis_or_none() is None

    @pytest.mark.asyncio
    async def test_unreachable_server_disables_redis(self) -> None:
        assert await connect_redis("redis://127.0.0.1:1/0") is None
        assert get_redis_or_none() is None


class TestCountHit:
    @pytest.mark.asyncio
    async def test_counts_per_client_and_window(self) -> None:
        fake = FakeRedis()
        assert await count_hit(fake, "10.0.0.1", 42, 61) == 1
        assert await count_hit(fake, "10.0.0.1", 42, 61) == 2
        assert await count_hit(fake, "10.0.0.2", 42, 61) == 1
        assert fake.ttls["ratelimit:10.0.0.1:42"] == 61


class TestPublishEvent:
    @pytest.mark.asyncio
    async def test_publishes_json(self) -> None:
        fake = FakeRedis()
        assert await publish_event(fake, {"type": "gamification", "id": 7}) is True
        channel, message = fake.published[0]
        assert channel == NOTIFICATIONS_CHANNEL
        assert json.loads(message) == {"type": "gamification", "id": 7}

    @pytest.mark.asyncio
    async def test_without_client(self) -> None:
        assert await publish_event(None, {"id": 1}) is False

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self) -> None:
        assert await publish_event(DownRedis(), {"id": 1}) is False
