"""Profile lifecycle: get-or-create on first authentication, and edits."""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Profile
from finquest.db.upsert import insert_for
from finquest.errors import NotFoundError, ValidationError
from finquest.gamification.achievement_service import unlock_achievement

logger = logging.getLogger(__name__)


def profile_fields_from_claims(claims: dict[str, Any]) -> dict[str, Any]:
    """Email, name and avatar hints carried by an auth provider token."""
    metadata = claims.get("user_metadata") or {}
    return {
        "email": claims.get("email"),
        "full_name": metadata.get("full_name") or metadata.get("name"),
        "avatar_url": metadata.get("avatar_url"),
    }


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError(f"Profile {user_id} not found")
    return profile


async def get_or_create_profile(
    db: AsyncSession,
    claims: dict[str, Any],
    redis: Any | None = None,
) -> Profile:
    """Return the profile for the token subject, creating it on first sight.

    A new profile unlocks "First Steps". Creation is an insert-if-absent on
    the primary key, so concurrent first requests create one row.
    """
    user_id = uuid.UUID(str(claims["sub"]))
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    profile = result.scalar_one_or_none()
    if profile is not None:
        return profile

    stmt = (
        insert_for(db, Profile)
        .values(id=user_id, **profile_fields_from_claims(claims))
        .on_conflict_do_nothing(index_elements=["id"])
    )
    created = (await db.execute(stmt)).rowcount == 1
    if created:
        logger.info("Created profile %s", user_id)
        await unlock_achievement(db, user_id, "First Steps", redis=redis)
    await db.commit()

    return await get_profile(db, user_id)


async def update_profile(
    db: AsyncSession,
    profile: Profile,
    full_name: str | None = None,
    avatar_url: str | None = None,
    monthly_budget: Decimal | None = None,
    currency: str | None = None,
) -> Profile:
    """
    Update editable profile fields. XP, level and coins are not editable here.

    Raises:
        ValidationError: If the monthly budget is negative.
    """
    if monthly_budget is not None:
        if monthly_budget < 0:
            raise ValidationError("Monthly budget must be non-negative")
        profile.monthly_budget = monthly_budget
    if full_name is not None:
        profile.full_name = full_name
    if avatar_url is not None:
        profile.avatar_url = avatar_url
    if currency is not None:
        profile.currency = currency.upper()

    await db.flush()
    return profile
