"""
HS256 JWT verification for tokens issued by the external auth provider.

The provider signs access tokens with a shared secret, sets ``aud`` to
``authenticated`` and puts the user's UUID in ``sub``. Profile hints live in
``email`` and ``user_metadata``.
"""

from __future__ import annotations

import uuid
from typing import Any

import jwt

from finquest.config import get_settings


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: On bad signature, expiry, audience, issuer,
            or a ``sub`` claim that is not a UUID.
    """
    settings = get_settings()
    options: dict[str, Any] = {"require": ["sub", "exp"]}
    payload: dict[str, Any] = jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
        options=options,
    )
    try:
        uuid.UUID(str(payload["sub"]))
    except ValueError as e:
        msg = "Token subject is not a valid user id"
        raise jwt.InvalidTokenError(msg) from e
    return payload

