"""Pydantic models for notification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    type: str
    subtype: str
    title: str
    description: str | None = None
    action_url: str | None = None
    read: bool
    timestamp: datetime | None = None


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int
