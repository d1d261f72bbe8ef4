"""Context assembly for the AI coach."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Profile
from finquest.education.generator import ContentGenerator
from finquest.errors import ValidationError
from finquest.expenses.service import list_expenses

RECENT_EXPENSES = 20


def profile_context(profile: Profile) -> dict:
    return {
        "full_name": profile.full_name,
        "level": profile.level,
        "xp": profile.xp,
        "streak_days": profile.streak_days,
        "monthly_budget": str(profile.monthly_budget),
        "currency": profile.currency,
    }


async def get_advice(db: AsyncSession, generator: ContentGenerator, profile: Profile, message: str) -> str:
    """
    Ask the coach. Context is the profile plus the 20 most recent expenses.

    Raises:
        ValidationError: If the message is blank.
    """
    if not message or not message.strip():
        raise ValidationError("Invalid request: message is required")

    expenses = await list_expenses(db, profile.id, limit=RECENT_EXPENSES)
    context = [
        {
            "amount": str(e.amount),
            "category": e.category,
            "description": e.description,
            "date": e.date.isoformat(),
        }
        for e in expenses
    ]
    return await generator.coach_advice(message.strip(), profile_context(profile), context)
