"""Request/response models for expense endpoints."""

from __future__ import annotations

import uuid
from datetime import date as date_type
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class ExpenseCreateRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=64)
    subcategory: str | None = Field(None, max_length=64)
    description: str | None = Field(None, max_length=1000)
    payment_method: str | None = Field("cash", max_length=32)
    date: date_type | None = None
    tags: list[str] = Field(default_factory=list, max_length=20)
    is_recurring: bool = False
    recurring_frequency: Literal["daily", "weekly", "monthly", "yearly"] | None = None


class ExpenseResponse(BaseModel):
    id: uuid.UUID
    amount: Decimal
    category: str
    subcategory: str | None = None
    description: str | None = None
    payment_method: str | None = None
    date: date_type
    tags: list[str] = []
    is_recurring: bool
    recurring_frequency: str | None = None
    created_at: datetime | None = None


class ExpenseCreateResponse(BaseModel):
    expense: ExpenseResponse
    xp_awarded: int
    achievements_unlocked: list[str] = []


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseResponse]
    total: int
