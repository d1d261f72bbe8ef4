"""Notification persistence and best-effort Redis fan-out.

Notifications are the server-side form of the client's toasts: level ups,
achievement unlocks, streak celebrations. Creating one never fails the
action that triggered it.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.db.models import Notification
from finquest.redis_client import publish_event

logger = logging.getLogger(__name__)

VALID_TYPES = {"gamification", "learning", "finance", "system"}


async def create_notification(
    db: AsyncSession,
    user_id: uuid.UUID,
    type_: str,
    subtype: str,
    title: str,
    description: str | None = None,
    action_url: str | None = None,
    redis: Any | None = None,
) -> Notification | None:
    """Persist a notification and publish it when Redis is available.

    Returns None if the row could not be written.
    """
    if type_ not in VALID_TYPES:
        raise ValueError(f"Invalid notification type: {type_}. Must be one of {VALID_TYPES}")

    notification = Notification(
        user_id=user_id,
        type=type_,
        subtype=subtype,
        title=title,
        description=description,
        action_url=action_url,
        created_at=datetime.now(timezone.utc),
    )
    try:
        db.add(notification)
        await db.flush()
    except SQLAlchemyError:
        logger.warning("Failed to persist %s notification for %s", subtype, user_id, exc_info=True)
        return None

    if redis is not None:
        payload = {
            "user_id": str(user_id),
            "id": notification.id,
            "type": notification.type,
            "subtype": notification.subtype,
            "title": notification.title,
            "description": notification.description,
            "timestamp": notification.created_at.isoformat() if notification.created_at else None,
        }
        await publish_event(redis, payload)

    return notification


async def get_notifications(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 20,
    unread_only: bool = False,
) -> list[Notification]:
    """Newest first."""
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read.is_(False))
    result = await db.execute(
        query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def get_unread_count(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
    )
    return result.scalar_one()


async def mark_as_read(db: AsyncSession, user_id: uuid.UUID, notification_id: int) -> bool:
    """Mark one notification read. Returns False if it is not the caller's."""
    result = await db.execute(
        update(Notification)
        .where(Notification.id == notification_id, Notification.user_id == user_id)
        .values(read=True)
    )
    return result.rowcount > 0
