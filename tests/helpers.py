"""Builders for events and rosters used across the test suite."""

from __future__ import annotations

import datetime
from typing import Any, Optional

from nextdink.event.models import Event, TeamMember, TeamRegistration

NOW = datetime.datetime(2030, 6, 1, 12, 0, tzinfo=datetime.timezone.utc)
START = NOW + datetime.timedelta(days=7)
END = START + datetime.timedelta(hours=2)


def user_slot(user_id: str, name: Optional[str] = None) -> TeamMember:
    return {
        "type": "user",
        "userId": user_id,
        "displayName": name or user_id.title(),
        "photoUrl": None,
    }


def guest_slot(name: str = "Guest") -> TeamMember:
    return {"type": "guest", "displayName": name}


def open_slot() -> TeamMember:
    return {"type": "open"}


def make_team(
    team_id: str, captain: str, members: Optional[list[TeamMember]] = None
) -> TeamRegistration:
    """A team captained by ``captain``; by default a single-player entry."""
    return {
        "id": team_id,
        "createdBy": captain,
        "createdAt": NOW,
        "members": members if members is not None else [user_slot(captain)],
    }


def make_event(**overrides: Any) -> Event:
    """An active, open, public singles event with room for two."""
    event: dict[str, Any] = {
        "id": "event1",
        "name": "Tuesday Open Play",
        "date": START,
        "endTime": END,
        "teamSize": 1,
        "maxTeams": 2,
        "visibility": "public",
        "joinType": "open",
        "eventCode": "ABC23",
        "status": "active",
        "ownerId": "owner",
        "adminIds": [],
        "registrations": [],
        "invitedUserIds": [],
        "declinedUserIds": [],
        "participantIds": [],
        "createdAt": NOW,
        "updatedAt": NOW,
    }
    event.update(overrides)
    return event  # type: ignore[return-value]


def event_document(**overrides: Any) -> dict[str, Any]:
    """The raw Firestore form of ``make_event``, without the id."""
    data = dict(make_event(**overrides))
    data.pop("id")
    return data


def apply(event: Event, changes: dict[str, Any]) -> Event:
    """Merge a transition's changes into an event, as the store would."""
    return {**event, **changes}  # type: ignore[return-value]
