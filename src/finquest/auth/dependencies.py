"""FastAPI authentication dependencies."""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.jwt import verify_token
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.dependencies import get_redis_dep
from finquest.middleware.logging import bind_user_context
from finquest.profiles.service import get_or_create_profile

_bearer = HTTPBearer()


async def get_token_claims(
    credentials: HTTPAuthorizationCredentials = Security(_bearer),
) -> dict[str, Any]:
    """Verify the bearer token and return its claims. Raises 401 on failure."""
    try:
        return verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e


async def get_current_profile(
    claims: dict[str, Any] = Depends(get_token_claims),
    db: AsyncSession = Depends(get_session),
    redis: object | None = Depends(get_redis_dep),
) -> Profile:
    """Return the caller's profile, creating it on first authenticated request."""
    profile = await get_or_create_profile(db, claims, redis=redis)
    bind_user_context(profile.id)
    return profile
