"""Service layer for saved player lists."""

from __future__ import annotations

import datetime
import logging
from typing import TYPE_CHECKING, Any, Optional, cast

from firebase_admin import firestore

from nextdink.core.constants import (
    FIRESTORE_BATCH_LIMIT,
    LIST_MEMBERS_COLLECTION,
    LISTS_COLLECTION,
    MAX_LIST_NAME_LENGTH,
)
from nextdink.core.utils import convert_timestamp
from nextdink.errors import ListNotFoundError, PermissionDeniedError, ValidationError

from .models import ListMember, PlayerList

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)


def _doc_to_list(list_id: str, data: dict[str, Any]) -> PlayerList:
    return {
        "id": list_id,
        "name": data.get("name", ""),
        "ownerId": data.get("ownerId", ""),
        "adminIds": list(data.get("adminIds") or []),
        "createdAt": convert_timestamp(data.get("createdAt")),
        "updatedAt": convert_timestamp(data.get("updatedAt")),
    }


def _clean_name(name: Any) -> str:
    cleaned = (name or "").strip() if isinstance(name, str) else ""
    if not cleaned:
        raise ValidationError("List name is required.")
    if len(cleaned) > MAX_LIST_NAME_LENGTH:
        raise ValidationError(
            f"List names are limited to {MAX_LIST_NAME_LENGTH} characters."
        )
    return cleaned


class ListService:
    """Handles saved lists of players and their members subcollection."""

    @staticmethod
    def _ref(db: Client, list_id: str) -> Any:
        return db.collection(LISTS_COLLECTION).document(list_id)

    @staticmethod
    def _members(db: Client, list_id: str) -> Any:
        return ListService._ref(db, list_id).collection(LIST_MEMBERS_COLLECTION)

    @staticmethod
    def can_manage(player_list: PlayerList, user_id: str) -> bool:
        """The owner and list admins may change a list."""
        return player_list["ownerId"] == user_id or user_id in player_list["adminIds"]

    @staticmethod
    def get_list(db: Client, list_id: str) -> Optional[PlayerList]:
        """Fetch a list by its ID."""
        list_doc = cast("DocumentSnapshot", ListService._ref(db, list_id).get())
        if not list_doc.exists:
            return None
        return _doc_to_list(list_doc.id, list_doc.to_dict() or {})

    @staticmethod
    def get_list_or_raise(db: Client, list_id: str) -> PlayerList:
        player_list = ListService.get_list(db, list_id)
        if player_list is None:
            raise ListNotFoundError()
        return player_list

    @staticmethod
    def _get_managed(db: Client, list_id: str, user_id: str) -> PlayerList:
        player_list = ListService.get_list_or_raise(db, list_id)
        if not ListService.can_manage(player_list, user_id):
            raise PermissionDeniedError("Only the list owner or an admin can do that.")
        return player_list

    @staticmethod
    def _get_owned(db: Client, list_id: str, user_id: str) -> PlayerList:
        player_list = ListService.get_list_or_raise(db, list_id)
        if player_list["ownerId"] != user_id:
            raise PermissionDeniedError("Only the list owner can do that.")
        return player_list

    @staticmethod
    def create_list(db: Client, name: str, owner_id: str) -> str:
        """Create a new list and return its id."""
        _, ref = db.collection(LISTS_COLLECTION).add(
            {
                "name": _clean_name(name),
                "ownerId": owner_id,
                "adminIds": [],
                "createdAt": firestore.SERVER_TIMESTAMP,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )
        logger.info(f"List {ref.id} created by {owner_id}")
        return str(ref.id)

    @staticmethod
    def update_list(db: Client, list_id: str, name: str, user_id: str) -> None:
        ListService._get_managed(db, list_id, user_id)
        ListService._ref(db, list_id).update(
            {"name": _clean_name(name), "updatedAt": firestore.SERVER_TIMESTAMP}
        )

    @staticmethod
    def delete_list(db: Client, list_id: str, user_id: str) -> None:
        """Delete a list along with its members subcollection."""
        ListService._get_owned(db, list_id, user_id)
        member_docs = list(ListService._members(db, list_id).stream())
        for i in range(0, len(member_docs), FIRESTORE_BATCH_LIMIT):
            batch = db.batch()
            for doc in member_docs[i : i + FIRESTORE_BATCH_LIMIT]:
                batch.delete(doc.reference)
            batch.commit()
        ListService._ref(db, list_id).delete()
        logger.info(f"List {list_id} deleted by {user_id}")

    @staticmethod
    def _query(db: Client, field: str, op: str, value: str) -> list[PlayerList]:
        query = db.collection(LISTS_COLLECTION).where(
            filter=firestore.FieldFilter(field, op, value)
        )
        lists = []
        for doc in query.stream():
            data = doc.to_dict()
            if data is not None:
                lists.append(_doc_to_list(doc.id, data))
        return lists

    @staticmethod
    def get_by_owner(db: Client, owner_id: str) -> list[PlayerList]:
        return ListService._query(db, "ownerId", "==", owner_id)

    @staticmethod
    def get_by_admin(db: Client, user_id: str) -> list[PlayerList]:
        return ListService._query(db, "adminIds", "array_contains", user_id)

    @staticmethod
    def get_accessible_lists(db: Client, user_id: str) -> list[PlayerList]:
        """Lists the user owns or administers, newest first."""
        lists = {pl["id"]: pl for pl in ListService.get_by_owner(db, user_id)}
        for player_list in ListService.get_by_admin(db, user_id):
            lists.setdefault(player_list["id"], player_list)

        min_date = datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
        return sorted(
            lists.values(),
            key=lambda pl: pl.get("createdAt") or min_date,
            reverse=True,
        )

    @staticmethod
    def add_admin(db: Client, list_id: str, user_id: str, acting_user_id: str) -> None:
        player_list = ListService._get_owned(db, list_id, acting_user_id)
        if user_id == player_list["ownerId"] or user_id in player_list["adminIds"]:
            return
        ListService._ref(db, list_id).update(
            {
                "adminIds": [*player_list["adminIds"], user_id],
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )

    @staticmethod
    def remove_admin(
        db: Client, list_id: str, user_id: str, acting_user_id: str
    ) -> None:
        player_list = ListService._get_owned(db, list_id, acting_user_id)
        if user_id not in player_list["adminIds"]:
            return
        ListService._ref(db, list_id).update(
            {
                "adminIds": [uid for uid in player_list["adminIds"] if uid != user_id],
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )

    @staticmethod
    def get_members(db: Client, list_id: str) -> list[ListMember]:
        members: list[ListMember] = []
        for doc in ListService._members(db, list_id).stream():
            if not doc.exists:
                continue
            data = doc.to_dict() or {}
            members.append(
                {
                    "userId": doc.id,
                    "addedAt": convert_timestamp(data.get("addedAt")),
                    "addedBy": data.get("addedBy", ""),
                }
            )
        return members

    @staticmethod
    def get_member_ids(db: Client, list_id: str) -> list[str]:
        return [
            doc.id for doc in ListService._members(db, list_id).stream() if doc.exists
        ]

    @staticmethod
    def add_member(
        db: Client, list_id: str, user_id: str, acting_user_id: str
    ) -> None:
        """Add a player to the list. Adding an existing member is a no-op."""
        ListService._get_managed(db, list_id, acting_user_id)
        if ListService.is_member(db, list_id, user_id):
            return
        ListService._members(db, list_id).document(user_id).set(
            {"addedAt": firestore.SERVER_TIMESTAMP, "addedBy": acting_user_id}
        )

    @staticmethod
    def remove_member(
        db: Client, list_id: str, user_id: str, acting_user_id: str
    ) -> None:
        ListService._get_managed(db, list_id, acting_user_id)
        ListService._members(db, list_id).document(user_id).delete()

    @staticmethod
    def is_member(db: Client, list_id: str, user_id: str) -> bool:
        member_ref = ListService._members(db, list_id).document(user_id)
        member_doc = cast("DocumentSnapshot", member_ref.get())
        return bool(member_doc.exists)

    @staticmethod
    def get_member_count(db: Client, list_id: str) -> int:
        return len(ListService.get_member_ids(db, list_id))
