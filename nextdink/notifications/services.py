"""Service layer for in-app notifications."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from firebase_admin import firestore

from nextdink.core.constants import (
    FIRESTORE_BATCH_LIMIT,
    NOTIFICATIONS_COLLECTION,
    NOTIFICATIONS_LIMIT,
    USERS_COLLECTION,
)
from nextdink.errors import NotFoundError, ValidationError

from . import models
from .models import Notification

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


class NotificationService:
    """Creates and reads notification documents stored under each user."""

    @staticmethod
    def _collection(db: Client, user_id: str) -> Any:
        return (
            db.collection(USERS_COLLECTION)
            .document(user_id)
            .collection(NOTIFICATIONS_COLLECTION)
        )

    @staticmethod
    def _payload(notification_type: str, related_entity_id: str) -> dict[str, Any]:
        if notification_type not in models.NOTIFICATION_TYPES:
            raise ValidationError(f"Unknown notification type: {notification_type}")
        return {
            "type": notification_type,
            "relatedEntityId": related_entity_id,
            "isRead": False,
            "createdAt": firestore.SERVER_TIMESTAMP,
        }

    @staticmethod
    def create(
        db: Client, user_id: str, notification_type: str, related_entity_id: str
    ) -> str:
        """Create a notification for one user and return its id."""
        payload = NotificationService._payload(notification_type, related_entity_id)
        _, ref = NotificationService._collection(db, user_id).add(payload)
        return str(ref.id)

    @staticmethod
    def create_for_multiple_users(
        db: Client,
        user_ids: Iterable[str],
        notification_type: str,
        related_entity_id: str,
    ) -> int:
        """Create the same notification for many users with batched writes."""
        payload = NotificationService._payload(notification_type, related_entity_id)
        unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))

        for i in range(0, len(unique_ids), FIRESTORE_BATCH_LIMIT):
            batch = db.batch()
            for user_id in unique_ids[i : i + FIRESTORE_BATCH_LIMIT]:
                ref = NotificationService._collection(db, user_id).document()
                batch.set(ref, dict(payload))
            batch.commit()
        return len(unique_ids)

    @staticmethod
    def get_by_user(
        db: Client, user_id: str, limit: int = NOTIFICATIONS_LIMIT
    ) -> list[Notification]:
        """Fetch a user's notifications, newest first."""
        query = (
            NotificationService._collection(db, user_id)
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        notifications: list[Notification] = []
        for doc in query.stream():
            data = doc.to_dict() or {}
            notifications.append(
                {
                    "id": doc.id,
                    "type": data.get("type", ""),
                    "relatedEntityId": data.get("relatedEntityId", ""),
                    "isRead": bool(data.get("isRead", False)),
                    "createdAt": data.get("createdAt"),
                }
            )
        return notifications

    @staticmethod
    def get_unread_count(db: Client, user_id: str) -> int:
        query = NotificationService._collection(db, user_id).where(
            filter=firestore.FieldFilter("isRead", "==", False)
        )
        return len(list(query.stream()))

    @staticmethod
    def mark_as_read(db: Client, user_id: str, notification_id: str) -> None:
        ref = NotificationService._collection(db, user_id).document(notification_id)
        if not ref.get().exists:
            raise NotFoundError("Notification not found.")
        ref.update({"isRead": True})

    @staticmethod
    def mark_all_as_read(db: Client, user_id: str) -> int:
        """Mark every unread notification as read. Returns how many changed."""
        query = NotificationService._collection(db, user_id).where(
            filter=firestore.FieldFilter("isRead", "==", False)
        )
        docs = list(query.stream())
        for i in range(0, len(docs), FIRESTORE_BATCH_LIMIT):
            batch = db.batch()
            for doc in docs[i : i + FIRESTORE_BATCH_LIMIT]:
                batch.update(doc.reference, {"isRead": True})
            batch.commit()
        return len(docs)

    @staticmethod
    def notify_many(
        db: Client,
        user_ids: Iterable[str],
        notification_type: str,
        event_id: str,
    ) -> None:
        """Best-effort fan-out that logs instead of raising.

        Used after an event change has already been committed, so a failed
        notification must not turn a successful operation into an error.
        """
        user_ids = list(user_ids)
        if not user_ids:
            return
        try:
            NotificationService.create_for_multiple_users(
                db, user_ids, notification_type, event_id
            )
        except Exception as e:
            logger.error(
                f"Failed to send {notification_type} notifications for {event_id}: {e}"
            )

    @staticmethod
    def notify_event_invite(db: Client, user_id: str, event_id: str) -> None:
        NotificationService.notify_many(db, [user_id], models.INVITE, event_id)

    @staticmethod
    def notify_waitlist_promoted(
        db: Client, user_ids: Iterable[str], event_id: str
    ) -> None:
        NotificationService.notify_many(
            db, user_ids, models.WAITLIST_PROMOTED, event_id
        )

    @staticmethod
    def notify_waitlist_position_changed(
        db: Client, user_ids: Iterable[str], event_id: str
    ) -> None:
        NotificationService.notify_many(
            db, user_ids, models.WAITLIST_POSITION_CHANGED, event_id
        )

    @staticmethod
    def notify_event_canceled(
        db: Client, user_ids: Iterable[str], event_id: str
    ) -> None:
        NotificationService.notify_many(db, user_ids, models.EVENT_CANCELED, event_id)

    @staticmethod
    def notify_event_updated(
        db: Client, user_ids: Iterable[str], event_id: str
    ) -> None:
        NotificationService.notify_many(db, user_ids, models.EVENT_UPDATED, event_id)
