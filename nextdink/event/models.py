"""Data models for the event blueprint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, Optional, TypedDict, Union

from nextdink.core.types import FirestoreDocument


class UserMember(TypedDict):
    """A slot held by a registered account."""

    type: Literal["user"]
    userId: str
    displayName: str
    photoUrl: Optional[str]


class GuestMember(TypedDict):
    """A named placeholder for someone without an account."""

    type: Literal["guest"]
    displayName: str


class OpenMember(TypedDict):
    """An unclaimed slot that still holds capacity."""

    type: Literal["open"]


TeamMember = Union[UserMember, GuestMember, OpenMember]


class TeamRegistration(TypedDict):
    """One roster entry: a team, or a single player when teamSize is 1."""

    id: str
    createdBy: str
    createdAt: Any
    members: list[TeamMember]


class Event(FirestoreDocument, total=False):
    """An event document in Firestore."""

    name: str
    description: str
    date: Any
    endTime: Any
    teamSize: int
    maxTeams: int
    venueName: str
    formattedAddress: str
    latitude: float
    longitude: float
    placeId: str
    visibility: str
    joinType: str
    eventCode: str
    status: str
    ownerId: str
    adminIds: list[str]
    registrations: list[TeamRegistration]
    invitedUserIds: list[str]
    declinedUserIds: list[str]
    participantIds: list[str]


@dataclass
class RegistrationResult:
    """Outcome of an operation that places a user or team on the roster."""

    status: str
    teamId: Optional[str] = None


@dataclass
class UserEventStatus:
    """A user's relationship to an event.

    ``status`` is the primary role (owner > admin > going > waitlisted >
    invited > declined). Owners and admins who are also on the roster carry
    their roster state in ``registrationStatus``.
    """

    status: str
    registrationStatus: Optional[str] = None
    waitlistPosition: Optional[int] = None


class EventWithStatus(TypedDict, total=False):
    """An event paired with the viewing user's status, for listings."""

    event: Event
    status: str
    registrationStatus: str
    waitlistPosition: int
