"""Firestore persistence for the Event aggregate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, cast

from firebase_admin import firestore
from google.api_core import exceptions as google_exceptions

from nextdink.core.constants import (
    EVENT_STATUS_ACTIVE,
    EVENTS_COLLECTION,
    FIRESTORE_TRANSACTION_ATTEMPTS,
    PUBLIC_EVENTS_LIMIT,
    VISIBILITY_PUBLIC,
)
from nextdink.errors import (
    ConcurrencyError,
    EventNotFoundError,
    StoreUnavailableError,
)

from .models import Event
from .status import get_participant_ids
from .utils import doc_to_event

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EventStore:
    """Reads, queries and atomically updates event documents."""

    def __init__(
        self,
        db: Client | None = None,
        max_attempts: int = FIRESTORE_TRANSACTION_ATTEMPTS,
    ) -> None:
        self.db = db if db is not None else firestore.client()
        self.max_attempts = max_attempts

    def _events(self) -> Any:
        return self.db.collection(EVENTS_COLLECTION)

    def _ref(self, event_id: str) -> DocumentReference:
        return self._events().document(event_id)

    @staticmethod
    def _to_events(docs: Any) -> list[Event]:
        events = []
        for doc in docs:
            data = doc.to_dict()
            if data is not None:
                events.append(doc_to_event(doc.id, data))
        return events

    def get(self, event_id: str) -> Optional[Event]:
        """Fetch an event by document id."""
        try:
            snapshot = cast("DocumentSnapshot", self._ref(event_id).get())
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailableError() from e
        if not snapshot.exists:
            return None
        return doc_to_event(snapshot.id, snapshot.to_dict() or {})

    def get_by_code(self, event_code: str) -> Optional[Event]:
        """Fetch the active event using a code, if there is one."""
        query = (
            self._events()
            .where(filter=firestore.FieldFilter("eventCode", "==", event_code))
            .where(filter=firestore.FieldFilter("status", "==", EVENT_STATUS_ACTIVE))
        )
        events = self._stream(query)
        return events[0] if events else None

    def active_ids_with_code(self, event_code: str) -> list[str]:
        """Ids of active events currently using a code."""
        query = (
            self._events()
            .where(filter=firestore.FieldFilter("eventCode", "==", event_code))
            .where(filter=firestore.FieldFilter("status", "==", EVENT_STATUS_ACTIVE))
        )
        return [event["id"] for event in self._stream(query)]

    def code_in_use(self, event_code: str) -> bool:
        return bool(self.active_ids_with_code(event_code))

    def create(self, data: dict[str, Any]) -> str:
        """Store a new event document and return its id."""
        payload = dict(data)
        payload.setdefault("registrations", [])
        payload["participantIds"] = get_participant_ids(payload["registrations"])
        payload["createdAt"] = firestore.SERVER_TIMESTAMP
        payload["updatedAt"] = firestore.SERVER_TIMESTAMP
        try:
            _, ref = self._events().add(payload)
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailableError() from e
        return str(ref.id)

    def delete(self, event_id: str) -> None:
        """Remove an event document along with its embedded registrations."""
        try:
            self._ref(event_id).delete()
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailableError() from e

    def transactional_update(
        self, event_id: str, mutate: Callable[[Event], tuple[dict[str, Any], T]]
    ) -> T:
        """Run ``mutate`` against a fresh read and write its changes atomically.

        ``mutate`` receives the current Event and returns ``(changes, result)``.
        Firestore re-runs the whole read-modify-write when another writer got
        there first, so ``mutate`` must not have side effects. An empty
        ``changes`` dict skips the write.
        """
        event_ref = self._ref(event_id)
        transaction = self.db.transaction(max_attempts=self.max_attempts)

        @firestore.transactional
        def update_in_transaction(
            transaction: Transaction, event_ref: DocumentReference
        ) -> T:
            snapshot = cast("DocumentSnapshot", event_ref.get(transaction=transaction))
            if not snapshot.exists:
                raise EventNotFoundError()

            event = doc_to_event(snapshot.id, snapshot.to_dict() or {})
            changes, result = mutate(event)
            if changes:
                updates = dict(changes)
                if "registrations" in updates:
                    updates["participantIds"] = get_participant_ids(
                        updates["registrations"]
                    )
                updates["updatedAt"] = firestore.SERVER_TIMESTAMP
                transaction.update(event_ref, updates)
            return result

        try:
            return update_in_transaction(transaction, event_ref)
        except google_exceptions.Aborted as e:
            logger.warning(f"Transaction on event {event_id} aborted: {e}")
            raise ConcurrencyError() from e
        except ValueError as e:
            # The SDK raises ValueError once every retry has lost the race.
            logger.warning(f"Transaction on event {event_id} gave up: {e}")
            raise ConcurrencyError() from e
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Firestore error updating event {event_id}: {e}")
            raise StoreUnavailableError() from e

    def _stream(self, query: Any) -> list[Event]:
        try:
            return self._to_events(query.stream())
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Firestore query failed: {e}")
            raise StoreUnavailableError() from e

    def query_public(self, limit: int = PUBLIC_EVENTS_LIMIT) -> list[Event]:
        query = (
            self._events()
            .where(filter=firestore.FieldFilter("visibility", "==", VISIBILITY_PUBLIC))
            .where(filter=firestore.FieldFilter("status", "==", EVENT_STATUS_ACTIVE))
            .order_by("date")
            .limit(limit)
        )
        return self._stream(query)

    def query_by_owner(self, user_id: str) -> list[Event]:
        query = self._events().where(
            filter=firestore.FieldFilter("ownerId", "==", user_id)
        )
        return self._stream(query)

    def query_by_admin(self, user_id: str) -> list[Event]:
        query = self._events().where(
            filter=firestore.FieldFilter("adminIds", "array_contains", user_id)
        )
        return self._stream(query)

    def query_by_participant(self, user_id: str) -> list[Event]:
        query = self._events().where(
            filter=firestore.FieldFilter("participantIds", "array_contains", user_id)
        )
        return self._stream(query)

    def query_by_invited(self, user_id: str) -> list[Event]:
        query = self._events().where(
            filter=firestore.FieldFilter("invitedUserIds", "array_contains", user_id)
        )
        return self._stream(query)

    def query_by_declined(self, user_id: str) -> list[Event]:
        query = self._events().where(
            filter=firestore.FieldFilter("declinedUserIds", "array_contains", user_id)
        )
        return self._stream(query)
