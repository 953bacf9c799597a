"""Data models for in-app notifications."""

from __future__ import annotations

from typing import Any, TypedDict

INVITE = "invite"
APPROVED = "approved"
WAITLIST_PROMOTED = "waitlist_promoted"
WAITLIST_POSITION_CHANGED = "waitlist_position_changed"
EVENT_CANCELED = "event_canceled"
EVENT_UPDATED = "event_updated"

NOTIFICATION_TYPES = (
    INVITE,
    APPROVED,
    WAITLIST_PROMOTED,
    WAITLIST_POSITION_CHANGED,
    EVENT_CANCELED,
    EVENT_UPDATED,
)


class Notification(TypedDict):
    """A notification document under users/{uid}/notifications."""

    id: str
    type: str
    relatedEntityId: str
    isRead: bool
    createdAt: Any
