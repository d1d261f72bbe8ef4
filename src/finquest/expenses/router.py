"""Expense endpoints."""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Expense, Profile
from finquest.dependencies import get_redis_dep
from finquest.expenses.schemas import (
    ExpenseCreateRequest,
    ExpenseCreateResponse,
    ExpenseListResponse,
    ExpenseResponse,
)
from finquest.expenses.service import add_expense, delete_expense, list_expenses

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Expenses"])


def _expense_response(expense: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=expense.id,
        amount=expense.amount,
        category=expense.category,
        subcategory=expense.subcategory,
        description=expense.description,
        payment_method=expense.payment_method,
        date=expense.date,
        tags=expense.tags or [],
        is_recurring=expense.is_recurring,
        recurring_frequency=expense.recurring_frequency,
        created_at=expense.created_at,
    )


@router.get("/expenses", response_model=ExpenseListResponse)
async def get_expenses(
    limit: int | None = Query(None, ge=1, le=1000),
    category: str | None = Query(None, max_length=64),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> ExpenseListResponse:
    """List the caller's expenses, newest first."""
    expenses = await list_expenses(db, profile.id, limit=limit, category=category)
    return ExpenseListResponse(
        expenses=[_expense_response(e) for e in expenses],
        total=len(expenses),
    )


@router.post("/expenses", response_model=ExpenseCreateResponse, status_code=201)
async def create_expense(
    body: ExpenseCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> ExpenseCreateResponse:
    """Log an expense (+10 XP)."""
    expense, xp_awarded, unlocked = await add_expense(
        db,
        profile.id,
        body.amount,
        body.category,
        expense_date=body.date,
        subcategory=body.subcategory,
        description=body.description,
        payment_method=body.payment_method,
        tags=body.tags,
        is_recurring=body.is_recurring,
        recurring_frequency=body.recurring_frequency,
        redis=redis,
    )
    await db.commit()
    await db.refresh(expense)
    logger.info("expense_logged", user_id=str(profile.id), category=expense.category)
    return ExpenseCreateResponse(
        expense=_expense_response(expense),
        xp_awarded=xp_awarded,
        achievements_unlocked=unlocked,
    )


@router.delete("/expenses/{expense_id}", status_code=204)
async def remove_expense(
    expense_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> None:
    """Delete one of the caller's expenses."""
    await delete_expense(db, profile.id, expense_id)
    await db.commit()
