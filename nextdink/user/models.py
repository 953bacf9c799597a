"""Data models for the user blueprint."""

from __future__ import annotations

from typing import Optional, TypedDict

from nextdink.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore. The document id is the auth uid."""

    displayName: str
    displayNameLower: str
    photoUrl: Optional[str]


class UserProfile(TypedDict):
    """The public face of a user, as embedded in API responses."""

    uid: str
    displayName: str
    photoUrl: Optional[str]
