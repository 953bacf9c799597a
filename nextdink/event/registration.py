"""State transitions for an event's roster and lifecycle.

Each transition takes the current Event and returns ``(changes, result)``:
the top-level fields to write back and whatever the caller should get. They
never touch storage; ``EventStore.transactional_update`` runs them against a
fresh read inside a Firestore transaction, so a transition that raises leaves
the stored event untouched.
"""

from __future__ import annotations

import datetime
from typing import Any, Optional

from nextdink.core.constants import (
    EVENT_STATUS_ACTIVE,
    EVENT_STATUS_CANCELED,
    GUEST_DISPLAY_NAME,
    JOIN_TYPE_INVITE_ONLY,
    JOIN_TYPES,
    MAX_EVENT_NAME_LENGTH,
    MAX_GUEST_NAME_LENGTH,
    MAX_TEAM_SIZE,
    MEMBER_TYPE_GUEST,
    MEMBER_TYPE_OPEN,
    MEMBER_TYPE_USER,
    VISIBILITIES,
)
from nextdink.core.utils import utcnow
from nextdink.errors import (
    AlreadyRegisteredError,
    EventNotActiveError,
    InvalidMemberError,
    InvalidSlotError,
    InviteRequiredError,
    NotCaptainError,
    NotRegisteredError,
    PermissionDeniedError,
    SlotNotClaimableError,
    TeamNotFoundError,
    ValidationError,
    WrongTeamSizeError,
)

from . import status
from .models import (
    Event,
    GuestMember,
    OpenMember,
    RegistrationResult,
    TeamMember,
    TeamRegistration,
    UserMember,
)
from .utils import generate_team_id

Changes = dict[str, Any]

EDITABLE_FIELDS = (
    "name",
    "description",
    "date",
    "endTime",
    "maxTeams",
    "venueName",
    "formattedAddress",
    "latitude",
    "longitude",
    "placeId",
    "visibility",
    "joinType",
)


# ---------------------------------------------------------------------------
# Slots
# ---------------------------------------------------------------------------


def make_user_member(
    user_id: str, display_name: str, photo_url: Optional[str]
) -> UserMember:
    return {
        "type": MEMBER_TYPE_USER,
        "userId": user_id,
        "displayName": display_name,
        "photoUrl": photo_url,
    }


def normalize_guest_name(name: Any) -> str:
    """Trim a guest name, falling back to "Guest" when blank."""
    if name is not None and not isinstance(name, str):
        raise InvalidMemberError("Guest name must be text.")
    cleaned = (name or "").strip()
    if len(cleaned) > MAX_GUEST_NAME_LENGTH:
        raise InvalidMemberError(
            f"Guest names are limited to {MAX_GUEST_NAME_LENGTH} characters."
        )
    return cleaned or GUEST_DISPLAY_NAME


def make_guest_member(name: Any) -> GuestMember:
    return {"type": MEMBER_TYPE_GUEST, "displayName": normalize_guest_name(name)}


def make_open_member() -> OpenMember:
    return {"type": MEMBER_TYPE_OPEN}


def parse_member_slot(raw: Any) -> TeamMember:
    """Turn a caller-supplied slot into a guest or open member."""
    if not isinstance(raw, dict):
        raise InvalidMemberError("Each team slot must be an object.")
    slot_type = raw.get("type")
    if slot_type == MEMBER_TYPE_GUEST:
        return make_guest_member(raw.get("displayName"))
    if slot_type == MEMBER_TYPE_OPEN:
        return make_open_member()
    raise InvalidMemberError("Team slots must be either a guest or an open spot.")


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def require_manager(event: Event, acting_user_id: Optional[str]) -> None:
    """Owners and admins only. ``None`` means the caller already checked."""
    if acting_user_id is not None and not status.can_manage_event(
        event, acting_user_id
    ):
        raise PermissionDeniedError("Only the event owner or an admin can do that.")


def require_owner(event: Event, acting_user_id: Optional[str]) -> None:
    if acting_user_id is not None and event["ownerId"] != acting_user_id:
        raise PermissionDeniedError("Only the event owner can do that.")


def _require_joinable(event: Event, user_id: str) -> None:
    if event["status"] != EVENT_STATUS_ACTIVE:
        raise EventNotActiveError()
    if (
        event["joinType"] == JOIN_TYPE_INVITE_ONLY
        and user_id not in event["invitedUserIds"]
        and not status.can_manage_event(event, user_id)
    ):
        raise InviteRequiredError()


def _accept_invitation(event: Event, user_id: str) -> Changes:
    """Registering turns an outstanding invitation into a registration."""
    if user_id not in event["invitedUserIds"]:
        return {}
    return {
        "invitedUserIds": [uid for uid in event["invitedUserIds"] if uid != user_id]
    }


def _replace_slot(
    registrations: list[TeamRegistration],
    team_index: int,
    member_index: int,
    member: TeamMember,
) -> list[TeamRegistration]:
    team = registrations[team_index]
    members = list(team["members"])
    members[member_index] = member
    updated = list(registrations)
    updated[team_index] = {**team, "members": members}
    return updated


def _vacate(event: Event, user_id: str) -> list[TeamRegistration]:
    """Remove a user from the roster.

    A captain leaving takes the whole team with them; later registrations
    shift down one place, which is how the waitlist gets promoted. Anyone
    else leaves an open slot behind.
    """
    registrations = event["registrations"]
    team_index = status.get_user_team_index(event, user_id)
    if team_index == -1:
        raise NotRegisteredError()

    team = registrations[team_index]
    if status.is_team_captain(team, user_id):
        return registrations[:team_index] + registrations[team_index + 1 :]

    member_index = next(
        i for i, m in enumerate(team["members"]) if status.is_user_member(m, user_id)
    )
    return _replace_slot(registrations, team_index, member_index, make_open_member())


# ---------------------------------------------------------------------------
# Roster transitions
# ---------------------------------------------------------------------------


def register_team(
    event: Event,
    user_id: str,
    display_name: str,
    photo_url: Optional[str],
    members: Optional[list[Any]] = None,
    now: Optional[datetime.datetime] = None,
) -> tuple[Changes, RegistrationResult]:
    """Append a new team captained by ``user_id``.

    ``members`` must have exactly ``teamSize`` entries. The first entry is
    the captain's own slot and is replaced with the user's details; the rest
    must be guest or open slots. Leaving it out registers the captain with
    every other slot open.
    """
    team_size = event["teamSize"]
    if members is None:
        members = [None, *(make_open_member() for _ in range(team_size - 1))]
    if len(members) != team_size:
        raise WrongTeamSizeError(team_size)
    if status.is_user_in_event(event, user_id):
        raise AlreadyRegisteredError()
    _require_joinable(event, user_id)

    team: TeamRegistration = {
        "id": generate_team_id(),
        "createdBy": user_id,
        "createdAt": now or utcnow(),
        "members": [
            make_user_member(user_id, display_name, photo_url),
            *(parse_member_slot(slot) for slot in members[1:]),
        ],
    }
    registrations = [*event["registrations"], team]

    changes: Changes = {"registrations": registrations}
    changes.update(_accept_invitation(event, user_id))
    result = RegistrationResult(
        status=status.registration_status_for_index(event, len(registrations) - 1),
        teamId=team["id"],
    )
    return changes, result


def leave_team(event: Event, user_id: str) -> tuple[Changes, None]:
    return {"registrations": _vacate(event, user_id)}, None


def decline_event(event: Event, user_id: str) -> tuple[Changes, None]:
    """Leave the roster and remember that the user said no."""
    changes: Changes = {"registrations": _vacate(event, user_id)}
    declined = event["declinedUserIds"]
    changes["declinedUserIds"] = (
        declined if user_id in declined else [*declined, user_id]
    )
    if user_id in event["invitedUserIds"]:
        changes["invitedUserIds"] = [
            uid for uid in event["invitedUserIds"] if uid != user_id
        ]
    return changes, None


def claim_slot(
    event: Event,
    team_id: str,
    member_index: int,
    user_id: str,
    display_name: str,
    photo_url: Optional[str],
) -> tuple[Changes, RegistrationResult]:
    """Take over an open or guest slot in an existing team."""
    if status.is_user_in_event(event, user_id):
        raise AlreadyRegisteredError()

    team_index = status.find_team_index(event, team_id)
    if team_index == -1:
        raise TeamNotFoundError()

    team = event["registrations"][team_index]
    if not 0 <= member_index < len(team["members"]):
        raise InvalidSlotError()
    if not status.is_claimable(team["members"][member_index]):
        raise SlotNotClaimableError()
    _require_joinable(event, user_id)

    changes: Changes = {
        "registrations": _replace_slot(
            event["registrations"],
            team_index,
            member_index,
            make_user_member(user_id, display_name, photo_url),
        )
    }
    changes.update(_accept_invitation(event, user_id))
    return changes, RegistrationResult(
        status=status.registration_status_for_index(event, team_index)
    )


def update_team_member(
    event: Event,
    team_id: str,
    member_index: int,
    requester_id: str,
    new_member: Any,
) -> tuple[Changes, None]:
    """Let a captain rename a guest or reopen a slot. Slot 0 is off limits."""
    team_index = status.find_team_index(event, team_id)
    if team_index == -1:
        raise TeamNotFoundError()

    team = event["registrations"][team_index]
    if not status.is_team_captain(team, requester_id):
        raise NotCaptainError()
    if member_index <= 0 or member_index >= len(team["members"]):
        raise InvalidSlotError()

    member = parse_member_slot(new_member)
    return {
        "registrations": _replace_slot(
            event["registrations"], team_index, member_index, member
        )
    }, None


def remove_team(
    event: Event, team_id: str, acting_user_id: Optional[str] = None
) -> tuple[Changes, None]:
    require_manager(event, acting_user_id)
    if status.find_team_index(event, team_id) == -1:
        raise TeamNotFoundError()
    return {
        "registrations": [t for t in event["registrations"] if t["id"] != team_id]
    }, None


def add_guest_team(
    event: Event,
    admin_user_id: str,
    guest_names: list[Any],
    now: Optional[datetime.datetime] = None,
) -> tuple[Changes, RegistrationResult]:
    """Append a team made only of guests, managed by an owner or admin."""
    require_manager(event, admin_user_id)
    team_size = event["teamSize"]
    if len(guest_names) != team_size:
        raise WrongTeamSizeError(team_size)
    if event["status"] != EVENT_STATUS_ACTIVE:
        raise EventNotActiveError()

    team: TeamRegistration = {
        "id": generate_team_id(),
        "createdBy": admin_user_id,
        "createdAt": now or utcnow(),
        "members": [make_guest_member(name) for name in guest_names],
    }
    registrations = [*event["registrations"], team]
    result = RegistrationResult(
        status=status.registration_status_for_index(event, len(registrations) - 1),
        teamId=team["id"],
    )
    return {"registrations": registrations}, result


# ---------------------------------------------------------------------------
# Invitations and admins
# ---------------------------------------------------------------------------


def invite_user(
    event: Event, user_id: str, acting_user_id: Optional[str] = None
) -> tuple[Changes, bool]:
    """Add ``user_id`` to the invite list. Returns True if newly invited.

    Users already on the roster and the event's own managers are not
    invited; a previous decline is cleared because the two lists never
    overlap.
    """
    require_manager(event, acting_user_id)
    if (
        user_id in event["invitedUserIds"]
        or status.can_manage_event(event, user_id)
        or status.is_user_in_event(event, user_id)
    ):
        return {}, False

    changes: Changes = {"invitedUserIds": [*event["invitedUserIds"], user_id]}
    if user_id in event["declinedUserIds"]:
        changes["declinedUserIds"] = [
            uid for uid in event["declinedUserIds"] if uid != user_id
        ]
    return changes, True


def invite_users(
    event: Event, user_ids: list[str], acting_user_id: Optional[str] = None
) -> tuple[Changes, list[str]]:
    """Invite several users at once. Returns the ones newly invited."""
    require_manager(event, acting_user_id)
    current: Event = dict(event)  # type: ignore[assignment]
    changes: Changes = {}
    newly_invited = []
    for user_id in dict.fromkeys(user_ids):
        step, invited = invite_user(current, user_id)
        if invited:
            changes.update(step)
            current.update(step)  # type: ignore[typeddict-item]
            newly_invited.append(user_id)
    return changes, newly_invited


def remove_invitation(
    event: Event, user_id: str, acting_user_id: Optional[str] = None
) -> tuple[Changes, None]:
    require_manager(event, acting_user_id)
    if user_id not in event["invitedUserIds"]:
        return {}, None
    return {
        "invitedUserIds": [uid for uid in event["invitedUserIds"] if uid != user_id]
    }, None


def decline_invitation(event: Event, user_id: str) -> tuple[Changes, None]:
    changes: Changes = {}
    if user_id in event["invitedUserIds"]:
        changes["invitedUserIds"] = [
            uid for uid in event["invitedUserIds"] if uid != user_id
        ]
    if user_id not in event["declinedUserIds"]:
        changes["declinedUserIds"] = [*event["declinedUserIds"], user_id]
    return changes, None


def add_admin(
    event: Event, user_id: str, acting_user_id: Optional[str] = None
) -> tuple[Changes, None]:
    """The owner already has every admin power and is never listed."""
    require_owner(event, acting_user_id)
    if user_id == event["ownerId"] or user_id in event["adminIds"]:
        return {}, None
    return {"adminIds": [*event["adminIds"], user_id]}, None


def remove_admin(
    event: Event, user_id: str, acting_user_id: Optional[str] = None
) -> tuple[Changes, None]:
    require_owner(event, acting_user_id)
    if user_id not in event["adminIds"]:
        return {}, None
    return {"adminIds": [uid for uid in event["adminIds"] if uid != user_id]}, None


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def validate_event_fields(data: dict[str, Any]) -> None:
    """Check the fields that shape an event. Raises ValidationError."""
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Event name is required.")
    if len(name) > MAX_EVENT_NAME_LENGTH:
        raise ValidationError(
            f"Event names are limited to {MAX_EVENT_NAME_LENGTH} characters."
        )

    team_size = data.get("teamSize")
    if (
        not isinstance(team_size, int)
        or isinstance(team_size, bool)
        or not 1 <= team_size <= MAX_TEAM_SIZE
    ):
        raise ValidationError(f"Team size must be between 1 and {MAX_TEAM_SIZE}.")

    max_teams = data.get("maxTeams")
    if not isinstance(max_teams, int) or isinstance(max_teams, bool) or max_teams < 1:
        raise ValidationError("Capacity must be at least 1.")

    start, end = data.get("date"), data.get("endTime")
    if not isinstance(start, datetime.datetime) or not isinstance(
        end, datetime.datetime
    ):
        raise ValidationError("Start and end times are required.")
    if end <= start:
        raise ValidationError("The event must end after it starts.")

    if data.get("visibility") not in VISIBILITIES:
        raise ValidationError("Unknown visibility.")
    if data.get("joinType") not in JOIN_TYPES:
        raise ValidationError("Unknown join type.")


def update_details(
    event: Event, data: dict[str, Any], acting_user_id: Optional[str] = None
) -> tuple[Changes, list[str]]:
    """Apply an edit. Returns the participants who should hear about it."""
    require_manager(event, acting_user_id)
    if "teamSize" in data and data["teamSize"] != event["teamSize"]:
        raise ValidationError("Team size cannot be changed after creation.")

    changes: Changes = {
        key: data[key]
        for key in EDITABLE_FIELDS
        if key in data and data[key] is not None
    }
    if "name" in changes:
        changes["name"] = changes["name"].strip()
    validate_event_fields({**event, **changes})
    return changes, status.get_participant_ids(event["registrations"])


def cancel_event(
    event: Event, acting_user_id: Optional[str] = None
) -> tuple[Changes, list[str]]:
    """Mark the event canceled. Returns everyone who should be told."""
    require_manager(event, acting_user_id)
    if event["status"] == EVENT_STATUS_CANCELED:
        return {}, []
    audience = set(status.get_participant_ids(event["registrations"]))
    audience.update(event["invitedUserIds"])
    audience.discard(acting_user_id or "")
    return {"status": EVENT_STATUS_CANCELED}, sorted(audience)
