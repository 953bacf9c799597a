"""Data models for saved player lists."""

from __future__ import annotations

from typing import Any, TypedDict

from nextdink.core.types import FirestoreDocument


class PlayerList(FirestoreDocument, total=False):
    """A list document in Firestore."""

    name: str
    ownerId: str
    adminIds: list[str]
    memberCount: int


class ListMember(TypedDict):
    """A document in a list's members subcollection, keyed by user id."""

    userId: str
    addedAt: Any
    addedBy: str
