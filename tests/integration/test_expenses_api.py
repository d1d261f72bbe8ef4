"""Expense endpoint tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient


async def _add(client: AsyncClient, amount: str, category: str = "food", day: str = "2025-03-10") -> dict:
    response = await client.post("/api/v1/expenses", json={"amount": amount, "category": category, "date": day})
    assert response.status_code == 201, response.text
    return response.json()


class TestExpensesApi:
    @pytest.mark.asyncio
    async def test_first_expense_unlocks_once(self, authed_client: AsyncClient) -> None:
        first = await _add(authed_client, "12.50")
        second = await _add(authed_client, "8.00")

        assert first["xp_awarded"] == 10
        assert first["achievements_unlocked"] == ["First Expense"]
        assert second["achievements_unlocked"] == []

        achievements = (await authed_client.get("/api/v1/achievements")).json()
        first_expense = [a for a in achievements["achievements"] if a["name"] == "First Expense"]
        assert first_expense[0]["unlocked"] is True

    @pytest.mark.asyncio
    async def test_list_newest_first(self, authed_client: AsyncClient) -> None:
        await _add(authed_client, "5", day="2025-01-01")
        await _add(authed_client, "7", day="2025-02-01")
        data = (await authed_client.get("/api/v1/expenses")).json()
        assert data["total"] == 2
        assert [e["date"] for e in data["expenses"]] == ["2025-02-01", "2025-01-01"]

    @pytest.mark.asyncio
    async def test_category_is_normalized(self, authed_client: AsyncClient) -> None:
        created = await _add(authed_client, "9.99", category="Food")
        assert created["expense"]["category"] == "food"

    @pytest.mark.asyncio
    async def test_non_positive_amount_rejected(self, authed_client: AsyncClient) -> None:
        response = await authed_client.post("/api/v1/expenses", json={"amount": "0", "category": "food"})
        assert response.status_code == 422
        body = response.json()
        assert body["detail"] == "Validation error"
        assert body["errors"][0]["loc"] == ["body", "amount"]

    @pytest.mark.asyncio
    async def test_delete(self, authed_client: AsyncClient) -> None:
        created = await _add(authed_client, "3")
        expense_id = created["expense"]["id"]
        assert (await authed_client.delete(f"/api/v1/expenses/{expense_id}")).status_code == 204
        missing = await authed_client.delete(f"/api/v1/expenses/{expense_id}")
        assert missing.status_code == 404
        assert missing.json() == {"detail": "Expense not found"}
