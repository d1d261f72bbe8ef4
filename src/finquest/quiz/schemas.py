"""Pydantic models for quiz endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class QuestionResponse(BaseModel):
    id: uuid.UUID
    topic: str
    difficulty: str
    question: str
    options: list[str]


class QuestionListResponse(BaseModel):
    questions: list[QuestionResponse]


class AnswerIn(BaseModel):
    question_id: uuid.UUID
    answer: str = Field(..., max_length=500)


class AttemptRequest(BaseModel):
    answers: list[AnswerIn] = Field(..., min_length=1, max_length=50)
    topic: str | None = Field(None, max_length=64)
    quiz_type: str = Field("general", max_length=32)
    time_taken: int | None = Field(None, ge=0)


class AnswerResult(BaseModel):
    question_id: uuid.UUID
    answer: str
    correct: bool
    correct_answer: str
    explanation: str | None = None


class AttemptResponse(BaseModel):
    id: uuid.UUID
    score: int
    total_questions: int
    percentage: int
    xp_earned: int
    results: list[AnswerResult]
    achievements_unlocked: list[str] = []


class AttemptSummary(BaseModel):
    id: uuid.UUID
    quiz_type: str
    topic: str | None = None
    score: int
    total_questions: int
    time_taken: int | None = None
    xp_earned: int
    created_at: datetime | None = None


class AttemptListResponse(BaseModel):
    attempts: list[AttemptSummary]
