"""Quiz questions, server-side grading and attempt history."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import QuizAttempt, QuizQuestion
from finquest.errors import ValidationError
from finquest.gamification.achievement_service import evaluate_achievements
from finquest.gamification.xp_service import QUIZ_XP_PER_CORRECT, safe_award_xp

logger = logging.getLogger(__name__)


async def list_questions(db: AsyncSession, topic: str | None = None, limit: int = 10) -> list[QuizQuestion]:
    """Newest first."""
    query = select(QuizQuestion)
    if topic:
        query = query.where(QuizQuestion.topic == topic)
    result = await db.execute(query.order_by(QuizQuestion.created_at.desc(), QuizQuestion.question).limit(limit))
    return list(result.scalars().all())


def grade(questions: dict[uuid.UUID, QuizQuestion], answers: list[tuple[uuid.UUID, str]]) -> list[dict]:
    """Per-answer results. Answers compare case-insensitively, ignoring outer whitespace."""
    results = []
    for question_id, answer in answers:
        question = questions[question_id]
        results.append(
            {
                "question_id": question_id,
                "answer": answer,
                "correct": answer.strip().casefold() == question.correct_answer.strip().casefold(),
                "correct_answer": question.correct_answer,
                "explanation": question.explanation,
            }
        )
    return results


async def submit_attempt(
    db: AsyncSession,
    user_id: uuid.UUID,
    answers: list[tuple[uuid.UUID, str]],
    topic: str | None = None,
    quiz_type: str = "general",
    time_taken: int | None = None,
    redis: Any | None = None,
) -> tuple[QuizAttempt, list[dict], list[str]]:
    """Grade a finished quiz, record the attempt and award 100 XP per correct answer.

    Raises:
        ValidationError: On an empty submission, repeated or unknown question ids.
    """
    if not answers:
        raise ValidationError("At least one answer is required")
    ids = [question_id for question_id, _ in answers]
    if len(set(ids)) != len(ids):
        raise ValidationError("Each question may be answered once")

    rows = (await db.execute(select(QuizQuestion).where(QuizQuestion.id.in_(ids)))).scalars().all()
    questions = {q.id: q for q in rows}
    unknown = [str(i) for i in ids if i not in questions]
    if unknown:
        raise ValidationError(f"Unknown question ids: {', '.join(unknown)}")

    results = grade(questions, answers)
    score = sum(1 for r in results if r["correct"])
    xp_earned = score * QUIZ_XP_PER_CORRECT

    attempt = QuizAttempt(
        user_id=user_id,
        quiz_type=quiz_type,
        topic=topic,
        score=score,
        total_questions=len(results),
        time_taken=time_taken,
        xp_earned=xp_earned,
    )
    db.add(attempt)
    await db.flush()

    if xp_earned:
        await safe_award_xp(db, user_id, xp_earned, reason="quiz", redis=redis)

    unlocked: list[str] = []
    try:
        unlocked = await evaluate_achievements(db, user_id, "quiz", redis=redis)
    except Exception:
        logger.warning("Quiz achievement evaluation failed for %s", user_id, exc_info=True)
    return attempt, results, unlocked


async def list_attempts(db: AsyncSession, user_id: uuid.UUID, limit: int = 20) -> list[QuizAttempt]:
    result = await db.execute(
        select(QuizAttempt)
        .where(QuizAttempt.user_id == user_id)
        .order_by(QuizAttempt.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
