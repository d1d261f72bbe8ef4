"""AI coach endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


class TestCoachApi:
    @pytest.mark.asyncio
    async def test_advice_uses_profile_and_expenses(self, authed_client: AsyncClient, fake_provider) -> None:
        fake_provider.responses = ["Cut dining out by 20%."]
        await authed_client.post("/api/v1/expenses", json={"amount": "45", "category": "food", "description": "Pizza"})

        response = await authed_client.post("/api/v1/coach", json={"message": "How can I save more?"})
        assert response.status_code == 200
        assert response.json() == {"advice": "Cut dining out by 20%."}

        prompt, system = fake_provider.calls[-1]
        assert prompt == "How can I save more?"
        assert "Pizza" in system
        assert "Asha Learner" in system

    @pytest.mark.asyncio
    async def test_blank_message_is_400(self, authed_client: AsyncClient, fake_provider) -> None:
        response = await authed_client.post("/api/v1/coach", json={"message": "   "})
        assert response.status_code == 400
        assert fake_provider.calls == []
