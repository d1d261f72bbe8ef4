"""Quiz endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.dependencies import get_redis_dep
from finquest.quiz.schemas import (
    AnswerResult,
    AttemptListResponse,
    AttemptRequest,
    AttemptResponse,
    AttemptSummary,
    QuestionListResponse,
    QuestionResponse,
)
from finquest.quiz.service import list_attempts, list_questions, submit_attempt

router = APIRouter(prefix="/api/v1/quiz", tags=["Quiz"])


@router.get("/questions", response_model=QuestionListResponse)
async def get_questions(
    topic: str | None = Query(None, max_length=64),
    limit: int = Query(10, ge=1, le=50),
    _profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> QuestionListResponse:
    """Questions without their answers."""
    questions = await list_questions(db, topic=topic, limit=limit)
    return QuestionListResponse(
        questions=[
            QuestionResponse(
                id=q.id,
                topic=q.topic,
                difficulty=q.difficulty,
                question=q.question,
                options=list(q.options),
            )
            for q in questions
        ]
    )


@router.post("/attempts", response_model=AttemptResponse, status_code=201)
async def post_attempt(
    body: AttemptRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> AttemptResponse:
    """Grade and record a finished quiz (+100 XP per correct answer)."""
    attempt, results, unlocked = await submit_attempt(
        db,
        profile.id,
        [(a.question_id, a.answer) for a in body.answers],
        topic=body.topic,
        quiz_type=body.quiz_type,
        time_taken=body.time_taken,
        redis=redis,
    )
    await db.commit()
    return AttemptResponse(
        id=attempt.id,
        score=attempt.score,
        total_questions=attempt.total_questions,
        percentage=round(attempt.score / attempt.total_questions * 100),
        xp_earned=attempt.xp_earned,
        results=[AnswerResult(**r) for r in results],
        achievements_unlocked=unlocked,
    )


@router.get("/attempts", response_model=AttemptListResponse)
async def get_attempts(
    limit: int = Query(20, ge=1, le=100),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> AttemptListResponse:
    attempts = await list_attempts(db, profile.id, limit=limit)
    return AttemptListResponse(
        attempts=[
            AttemptSummary(
                id=a.id,
                quiz_type=a.quiz_type,
                topic=a.topic,
                score=a.score,
                total_questions=a.total_questions,
                time_taken=a.time_taken,
                xp_earned=a.xp_earned,
                created_at=a.created_at,
            )
            for a in attempts
        ]
    )
