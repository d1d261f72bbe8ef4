"""AI financial coach endpoint."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.coach.service import get_advice
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.education.generator import ContentGenerator, get_content_generator

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Coach"])


class CoachRequest(BaseModel):
    message: str = Field(..., max_length=2000)


class CoachResponse(BaseModel):
    advice: str


@router.post("/coach", response_model=CoachResponse)
async def coach(
    body: CoachRequest,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
    generator: ContentGenerator = Depends(get_content_generator),
) -> CoachResponse:
    """Personalized advice from the caller's profile and recent expenses."""
    advice = await get_advice(db, generator, profile, body.message)
    logger.info("coach_advice", user_id=str(profile.id), chars=len(advice))
    return CoachResponse(advice=advice)
