"""Capacity and status calculations for events.

Everything here is a pure function of an Event (or its registrations). A
registration is "joined" when its index in ``registrations`` is below
``maxTeams`` and "waitlisted" otherwise; nothing is stored about it, so
removing an earlier registration promotes the next one automatically.
"""

from __future__ import annotations

from typing import Optional

from nextdink.core.constants import (
    MEMBER_TYPE_GUEST,
    MEMBER_TYPE_OPEN,
    MEMBER_TYPE_USER,
    REGISTRATION_JOINED,
    REGISTRATION_WAITLISTED,
)

from .models import Event, TeamMember, TeamRegistration, UserEventStatus

STATUS_OWNER = "owner"
STATUS_ADMIN = "admin"
STATUS_GOING = "going"
STATUS_WAITLISTED = "waitlisted"
STATUS_INVITED = "invited"
STATUS_DECLINED = "declined"
STATUS_NONE = "none"
STATUS_NOT_REGISTERED = "not_registered"

SCHEDULE_STATUSES = (STATUS_OWNER, STATUS_ADMIN, STATUS_GOING, STATUS_WAITLISTED)


def is_user_member(member: TeamMember, user_id: str | None = None) -> bool:
    """Return True for a user slot, optionally held by a specific user."""
    if member.get("type") != MEMBER_TYPE_USER:
        return False
    return user_id is None or member.get("userId") == user_id


def is_claimable(member: TeamMember) -> bool:
    """Open and guest slots can be taken over by a registered user."""
    return member.get("type") in (MEMBER_TYPE_OPEN, MEMBER_TYPE_GUEST)


def get_total_capacity(event: Event) -> int:
    """Player slots across all joined teams."""
    return event["teamSize"] * event["maxTeams"]


def get_max_count(event: Event) -> int:
    """Denominator for the capacity bar: teams for singles, players otherwise."""
    if event["teamSize"] == 1:
        return event["maxTeams"]
    return get_total_capacity(event)


def get_joined_teams(event: Event) -> list[TeamRegistration]:
    """Registrations inside the capacity, in arrival order."""
    return event["registrations"][: event["maxTeams"]]


def get_waitlisted_teams(event: Event) -> list[TeamRegistration]:
    """Registrations past the capacity, first in line first."""
    return event["registrations"][event["maxTeams"] :]


def has_capacity(event: Event) -> bool:
    """True while another team would join rather than wait."""
    return len(event["registrations"]) < event["maxTeams"]


def get_joined_member_count(event: Event) -> int:
    """Count the players that are in.

    For singles every joined registration is one player. For teams only
    slots held by real accounts count; guests and open slots do not.
    """
    joined = get_joined_teams(event)
    if event["teamSize"] == 1:
        return len(joined)
    return sum(
        1 for team in joined for member in team["members"] if is_user_member(member)
    )


def get_claimable_spots_count(event: Event) -> int:
    """Count open and guest slots in joined teams only.

    Waitlisted slots are left out so that claiming one never lets a user
    jump the queue.
    """
    return sum(
        1
        for team in get_joined_teams(event)
        for member in team["members"]
        if is_claimable(member)
    )


def get_user_team_index(event: Event, user_id: str) -> int:
    """Return the index of the registration holding the user, or -1."""
    for index, team in enumerate(event["registrations"]):
        if any(is_user_member(m, user_id) for m in team["members"]):
            return index
    return -1


def get_user_team(event: Event, user_id: str) -> Optional[TeamRegistration]:
    """The registration holding the user, if any."""
    index = get_user_team_index(event, user_id)
    return event["registrations"][index] if index >= 0 else None


def is_user_in_event(event: Event, user_id: str) -> bool:
    """True when the user holds a slot on any team."""
    return get_user_team_index(event, user_id) >= 0


def is_team_captain(registration: TeamRegistration, user_id: str) -> bool:
    """The captain is whoever created the registration."""
    return registration["createdBy"] == user_id


def find_team_index(event: Event, team_id: str) -> int:
    """Return the index of the registration with this id, or -1."""
    for index, team in enumerate(event["registrations"]):
        if team["id"] == team_id:
            return index
    return -1


def is_team_joined(event: Event, index: int) -> bool:
    """True when the registration at ``index`` is inside the capacity."""
    return 0 <= index < event["maxTeams"]


def registration_status_for_index(event: Event, index: int) -> str:
    """Joined when the index is inside the capacity, waitlisted otherwise."""
    if is_team_joined(event, index):
        return REGISTRATION_JOINED
    return REGISTRATION_WAITLISTED


def get_waitlist_position(event: Event, index: int) -> Optional[int]:
    """1-based waitlist position for a registration index, None when joined."""
    if index < event["maxTeams"]:
        return None
    return index - event["maxTeams"] + 1


def can_manage_event(event: Event, user_id: str | None) -> bool:
    """Owners and admins can manage an event."""
    if not user_id:
        return False
    return event["ownerId"] == user_id or user_id in event["adminIds"]


def get_registration_status(event: Event, user_id: str) -> tuple[str, Optional[int]]:
    """Return (going|waitlisted|not_registered, waitlist position)."""
    index = get_user_team_index(event, user_id)
    if index == -1:
        return STATUS_NOT_REGISTERED, None
    if is_team_joined(event, index):
        return STATUS_GOING, None
    return STATUS_WAITLISTED, get_waitlist_position(event, index)


def get_user_status(event: Event, user_id: str) -> UserEventStatus:
    """Classify a user's relationship to an event, first match wins."""
    registration, position = get_registration_status(event, user_id)
    registered = registration != STATUS_NOT_REGISTERED

    for role, applies in (
        (STATUS_OWNER, event["ownerId"] == user_id),
        (STATUS_ADMIN, user_id in event["adminIds"]),
    ):
        if applies:
            return UserEventStatus(
                status=role,
                registrationStatus=registration if registered else None,
                waitlistPosition=position,
            )

    if registered:
        return UserEventStatus(status=registration, waitlistPosition=position)
    if user_id in event["invitedUserIds"]:
        return UserEventStatus(status=STATUS_INVITED)
    if user_id in event["declinedUserIds"]:
        return UserEventStatus(status=STATUS_DECLINED)
    return UserEventStatus(status=STATUS_NONE)


def get_participant_ids(registrations: list[TeamRegistration]) -> list[str]:
    """Sorted ids of every user holding a slot."""
    return sorted(
        {
            member["userId"]  # type: ignore[typeddict-item]
            for team in registrations
            for member in team["members"]
            if is_user_member(member)
        }
    )


def _team_user_ids(team: TeamRegistration) -> list[str]:
    return [
        member["userId"]  # type: ignore[typeddict-item]
        for member in team["members"]
        if is_user_member(member)
    ]


def get_promoted_user_ids(
    before: list[TeamRegistration],
    after: list[TeamRegistration],
    max_teams: int,
    after_max_teams: Optional[int] = None,
) -> list[str]:
    """Users whose team moved from the waitlist into the joined region.

    ``after_max_teams`` covers an edit that changed the capacity.
    """
    if after_max_teams is None:
        after_max_teams = max_teams
    was_waitlisted = {team["id"] for team in before[max_teams:]}
    promoted = []
    for team in after[:after_max_teams]:
        if team["id"] in was_waitlisted:
            promoted.extend(_team_user_ids(team))
    return promoted


def get_moved_waitlist_user_ids(
    before: list[TeamRegistration],
    after: list[TeamRegistration],
    max_teams: int,
    after_max_teams: Optional[int] = None,
) -> list[str]:
    """Users still waitlisted whose position in the line changed."""
    if after_max_teams is None:
        after_max_teams = max_teams
    old_positions = {
        team["id"]: index - max_teams
        for index, team in enumerate(before)
        if index >= max_teams
    }
    moved = []
    for index, team in enumerate(after[after_max_teams:]):
        old = old_positions.get(team["id"])
        if old is not None and old != index:
            moved.extend(_team_user_ids(team))
    return moved
