"""Event-related utility functions."""

from __future__ import annotations

import secrets
import uuid
from typing import Any

from nextdink.core.constants import (
    DEFAULT_MAX_TEAMS,
    DEFAULT_TEAM_SIZE,
    EVENT_CODE_ALPHABET,
    EVENT_CODE_LENGTH,
)
from nextdink.core.utils import convert_timestamp, to_jsonable

from .models import Event, TeamRegistration


def generate_event_code() -> str:
    """Generate a random, human-readable event code.

    Codes are five upper-case characters with the visually ambiguous
    characters (0, 1, I, O, and lower-case l) left out.
    """
    return "".join(
        secrets.choice(EVENT_CODE_ALPHABET) for _ in range(EVENT_CODE_LENGTH)
    )


def is_valid_event_code(code: Any) -> bool:
    """Check that a code has the right length, case and alphabet."""
    if not isinstance(code, str) or len(code) != EVENT_CODE_LENGTH:
        return False
    if code != code.upper():
        return False
    return all(char in EVENT_CODE_ALPHABET for char in code)


def normalize_event_code(raw: str | None) -> str:
    """Tidy up a code typed by a person before looking it up."""
    return (raw or "").strip().upper()


def generate_team_id() -> str:
    """Generate a unique id for a team registration."""
    return str(uuid.uuid4())


def remove_none(data: dict[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is None so they are not written to Firestore."""
    return {key: value for key, value in data.items() if value is not None}


def _registration_from_dict(data: dict[str, Any]) -> TeamRegistration:
    return {
        "id": data.get("id", ""),
        "createdBy": data.get("createdBy", ""),
        "createdAt": convert_timestamp(data.get("createdAt")),
        "members": list(data.get("members") or []),
    }


def doc_to_event(event_id: str, data: dict[str, Any]) -> Event:
    """Build an Event from a raw Firestore document, filling defaults."""
    event: Event = {
        "id": event_id,
        "name": data.get("name", ""),
        "date": convert_timestamp(data.get("date")),
        "endTime": convert_timestamp(data.get("endTime")),
        "teamSize": data.get("teamSize") or DEFAULT_TEAM_SIZE,
        "maxTeams": data.get("maxTeams") or DEFAULT_MAX_TEAMS,
        "visibility": data.get("visibility", "public"),
        "joinType": data.get("joinType", "open"),
        "eventCode": data.get("eventCode", ""),
        "status": data.get("status", "active"),
        "ownerId": data.get("ownerId", ""),
        "adminIds": list(data.get("adminIds") or []),
        "registrations": [
            _registration_from_dict(r) for r in data.get("registrations") or []
        ],
        "invitedUserIds": list(data.get("invitedUserIds") or []),
        "declinedUserIds": list(data.get("declinedUserIds") or []),
        "participantIds": list(data.get("participantIds") or []),
        "createdAt": convert_timestamp(data.get("createdAt")),
        "updatedAt": convert_timestamp(data.get("updatedAt")),
    }
    for key in (
        "description",
        "venueName",
        "formattedAddress",
        "latitude",
        "longitude",
        "placeId",
    ):
        if data.get(key) is not None:
            event[key] = data[key]  # type: ignore[literal-required]
    return event


def serialize_event(event: Event) -> dict[str, Any]:
    """Make an Event JSON friendly (datetimes become ISO 8601 strings)."""
    data = dict(event)
    # Only used for queries; the roster itself is in ``registrations``.
    data.pop("participantIds", None)
    return to_jsonable(data)
