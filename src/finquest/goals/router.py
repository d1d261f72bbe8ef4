"""Savings goal endpoints."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Profile, SavingsGoal
from finquest.dependencies import get_redis_dep
from finquest.goals.schemas import (
    ContributionRequest,
    ContributionResponse,
    GoalCreateRequest,
    GoalCreateResponse,
    GoalListResponse,
    GoalResponse,
)
from finquest.goals.service import add_to_goal, create_goal, delete_goal, list_goals, progress_percent

router = APIRouter(prefix="/api/v1", tags=["Goals"])


def _goal_response(goal: SavingsGoal) -> GoalResponse:
    return GoalResponse(
        id=goal.id,
        name=goal.name,
        icon=goal.icon,
        target_amount=goal.target_amount,
        current_amount=goal.current_amount,
        progress_percent=progress_percent(goal),
        deadline=goal.deadline,
        completed=goal.completed,
        created_at=goal.created_at,
    )


@router.get("/goals", response_model=GoalListResponse)
async def get_goals(
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> GoalListResponse:
    goals = await list_goals(db, profile.id)
    return GoalListResponse(
        goals=[_goal_response(g) for g in goals],
        total_saved=sum((g.current_amount for g in goals), 0),
    )


@router.post("/goals", response_model=GoalCreateResponse, status_code=201)
async def post_goal(
    body: GoalCreateRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> GoalCreateResponse:
    """Create a savings goal (+50 XP, +10 coins)."""
    goal, xp_awarded = await create_goal(
        db, profile.id, body.name, body.target_amount, icon=body.icon, deadline=body.deadline, redis=redis
    )
    await db.commit()
    await db.refresh(goal)
    return GoalCreateResponse(goal=_goal_response(goal), xp_awarded=xp_awarded)


@router.post("/goals/{goal_id}/contributions", response_model=ContributionResponse)
async def post_contribution(
    goal_id: uuid.UUID,
    body: ContributionRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> ContributionResponse:
    """Add money to a goal."""
    goal, outcome = await add_to_goal(db, profile.id, goal_id, body.amount, redis=redis)
    await db.commit()
    return ContributionResponse(goal=_goal_response(goal), **outcome)


@router.delete("/goals/{goal_id}", status_code=204)
async def remove_goal(
    goal_id: uuid.UUID,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> None:
    await delete_goal(db, profile.id, goal_id)
    await db.commit()
