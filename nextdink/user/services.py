"""Service layer for the user directory."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, cast

from firebase_admin import firestore

from nextdink.core.constants import (
    FIRESTORE_IN_QUERY_LIMIT,
    UNKNOWN_USER_DISPLAY_NAME,
    USER_SEARCH_LIMIT,
    USERS_COLLECTION,
)
from nextdink.errors import ValidationError

from .models import User, UserProfile

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("displayName", "photoUrl")


def to_profile(user_id: str, data: dict[str, Any] | None) -> UserProfile:
    """Reduce a user document to the fields other users may see."""
    data = data or {}
    return {
        "uid": user_id,
        "displayName": data.get("displayName") or UNKNOWN_USER_DISPLAY_NAME,
        "photoUrl": data.get("photoUrl"),
    }


class UserService:
    """Reads and writes user documents keyed by auth uid."""

    @staticmethod
    def create_or_update_user(
        db: Client, user_id: str, display_name: str, photo_url: Optional[str] = None
    ) -> User:
        """Upsert the user's document after sign-in."""
        user_ref = db.collection(USERS_COLLECTION).document(user_id)
        user_doc = cast("DocumentSnapshot", user_ref.get())
        display_name = display_name.strip()

        if user_doc.exists:
            existing = user_doc.to_dict() or {}
            # A name the user picked in the app wins over the provider's.
            update_data: dict[str, Any] = {"updatedAt": firestore.SERVER_TIMESTAMP}
            if not existing.get("displayName"):
                update_data["displayName"] = display_name
                update_data["displayNameLower"] = display_name.lower()
            if photo_url and not existing.get("photoUrl"):
                update_data["photoUrl"] = photo_url
            user_ref.update(update_data)
            return cast(User, {"id": user_id, **existing, **update_data})

        new_user = {
            "displayName": display_name,
            "displayNameLower": display_name.lower(),
            "photoUrl": photo_url,
            "createdAt": firestore.SERVER_TIMESTAMP,
            "updatedAt": firestore.SERVER_TIMESTAMP,
        }
        user_ref.set(new_user)
        logger.info(f"Created user document for {user_id}")
        return cast(User, {"id": user_id, **new_user})

    @staticmethod
    def get_by_id(db: Client, user_id: str) -> Optional[User]:
        """Fetch a user by their ID."""
        user_doc = cast(
            "DocumentSnapshot", db.collection(USERS_COLLECTION).document(user_id).get()
        )
        if not user_doc.exists:
            return None
        data = user_doc.to_dict()
        if data is None:
            return None
        return cast(User, {"id": user_id, **data})

    @staticmethod
    def get_profile(db: Client, user_id: str) -> Optional[UserProfile]:
        user = UserService.get_by_id(db, user_id)
        if user is None:
            return None
        return to_profile(user_id, dict(user))

    @staticmethod
    def update_profile(
        db: Client, user_id: str, update_data: dict[str, Any]
    ) -> UserProfile:
        """Change the editable profile fields, keeping the search key in sync."""
        changes = {k: v for k, v in update_data.items() if k in PROFILE_FIELDS}
        if "displayName" in changes:
            name = (changes["displayName"] or "").strip()
            if not name:
                raise ValidationError("Display name cannot be empty.")
            changes["displayName"] = name
            changes["displayNameLower"] = name.lower()
        if not changes:
            raise ValidationError("Nothing to update.")

        changes["updatedAt"] = firestore.SERVER_TIMESTAMP
        db.collection(USERS_COLLECTION).document(user_id).update(changes)
        profile = UserService.get_profile(db, user_id)
        return profile or to_profile(user_id, changes)

    @staticmethod
    def search_by_name(
        db: Client, prefix: str, limit: int = USER_SEARCH_LIMIT
    ) -> list[UserProfile]:
        """Case-insensitive prefix search on display names."""
        term = (prefix or "").strip().lower()
        if not term:
            return []

        query = (
            db.collection(USERS_COLLECTION)
            .where(filter=firestore.FieldFilter("displayNameLower", ">=", term))
            .where(
                filter=firestore.FieldFilter("displayNameLower", "<=", term + "\uf8ff")
            )
            .order_by("displayNameLower")
            .limit(limit)
        )
        return [to_profile(doc.id, doc.to_dict()) for doc in query.stream()]

    @staticmethod
    def get_by_ids(db: Client, user_ids: Iterable[str]) -> dict[str, UserProfile]:
        """Resolve many users at once, FIRESTORE_IN_QUERY_LIMIT ids per read.

        Ids with no document are left out of the result.
        """
        unique_ids = list(dict.fromkeys(uid for uid in user_ids if uid))
        profiles: dict[str, UserProfile] = {}
        users = db.collection(USERS_COLLECTION)
        for i in range(0, len(unique_ids), FIRESTORE_IN_QUERY_LIMIT):
            refs = [
                users.document(uid)
                for uid in unique_ids[i : i + FIRESTORE_IN_QUERY_LIMIT]
            ]
            docs = cast(list["DocumentSnapshot"], db.get_all(refs))
            for doc in docs:
                if doc.exists:
                    profiles[doc.id] = to_profile(doc.id, doc.to_dict())
        return profiles
