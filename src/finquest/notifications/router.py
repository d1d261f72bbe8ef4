"""Notification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.auth.dependencies import get_current_profile
from finquest.database import get_session
from finquest.db.models import Profile
from finquest.notifications.schemas import NotificationListResponse, NotificationResponse
from finquest.notifications.service import get_notifications, get_unread_count, mark_as_read

router = APIRouter(prefix="/api/v1", tags=["Notifications"])


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False),
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> NotificationListResponse:
    """List the caller's notifications, newest first."""
    notifications = await get_notifications(db, profile.id, limit=limit, unread_only=unread_only)
    return NotificationListResponse(
        notifications=[
            NotificationResponse(
                id=n.id,
                type=n.type,
                subtype=n.subtype,
                title=n.title,
                description=n.description,
                action_url=n.action_url,
                read=n.read,
                timestamp=n.created_at,
            )
            for n in notifications
        ],
        unread_count=await get_unread_count(db, profile.id),
    )


@router.post("/notifications/{notification_id}/read", status_code=200)
async def mark_notification_read(
    notification_id: int,
    profile: Profile = Depends(get_current_profile),
    db: AsyncSession = Depends(get_session),
) -> dict[str, str]:
    """Mark a notification as read."""
    found = await mark_as_read(db, profile.id, notification_id)
    if not found:
        raise HTTPException(status_code=404, detail="Notification not found")
    await db.commit()
    return {"detail": "Notification marked as read"}
