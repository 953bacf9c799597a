"""Service layer for event business logic."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

from flask import current_app, has_app_context

from nextdink.core.constants import (
    DEFAULT_MAX_TEAMS,
    DEFAULT_TEAM_SIZE,
    EVENT_CODE_MAX_ATTEMPTS,
    EVENT_STATUS_ACTIVE,
    FIRESTORE_TRANSACTION_ATTEMPTS,
    JOIN_TYPE_OPEN,
    PUBLIC_EVENTS_LIMIT,
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
)
from nextdink.core.utils import utcnow
from nextdink.errors import (
    EventNotFoundError,
    ExhaustionError,
    PermissionDeniedError,
)
from nextdink.lists.services import ListService
from nextdink.notifications.services import NotificationService
from nextdink.user.services import UserService, to_profile

from . import registration, status
from .models import Event, EventWithStatus, RegistrationResult, TeamRegistration
from .store import EventStore
from .utils import (
    generate_event_code,
    is_valid_event_code,
    normalize_event_code,
    remove_none,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

logger = logging.getLogger(__name__)

OPTIONAL_FIELDS = (
    "description",
    "venueName",
    "formattedAddress",
    "latitude",
    "longitude",
    "placeId",
)


@dataclass
class RosterChange:
    """What a roster transition did, captured inside the transaction."""

    result: Any
    before: list[TeamRegistration]
    after: list[TeamRegistration]
    max_teams: int
    after_max_teams: int


class EventService:
    """Handles business logic and data access for events."""

    @staticmethod
    def _store(db: Client) -> EventStore:
        attempts = FIRESTORE_TRANSACTION_ATTEMPTS
        if has_app_context():
            attempts = current_app.config.get(
                "FIRESTORE_TRANSACTION_ATTEMPTS", FIRESTORE_TRANSACTION_ATTEMPTS
            )
        return EventStore(db, max_attempts=attempts)

    @staticmethod
    def _apply_roster_change(
        db: Client,
        event_id: str,
        transition: Callable[[Event], tuple[dict[str, Any], Any]],
    ) -> Any:
        """Run a transition and tell anyone whose place in line changed."""

        def mutate(event: Event) -> tuple[dict[str, Any], RosterChange]:
            changes, result = transition(event)
            change = RosterChange(
                result,
                before=event["registrations"],
                after=changes.get("registrations", event["registrations"]),
                max_teams=event["maxTeams"],
                after_max_teams=changes.get("maxTeams", event["maxTeams"]),
            )
            return changes, change

        change = EventService._store(db).transactional_update(event_id, mutate)
        EventService._notify_waitlist_changes(db, event_id, change)
        return change.result

    @staticmethod
    def _notify_waitlist_changes(
        db: Client, event_id: str, change: RosterChange
    ) -> None:
        promoted = status.get_promoted_user_ids(
            change.before, change.after, change.max_teams, change.after_max_teams
        )
        moved = status.get_moved_waitlist_user_ids(
            change.before, change.after, change.max_teams, change.after_max_teams
        )
        if promoted:
            logger.info(f"Promoted {len(promoted)} waitlisted user(s) in {event_id}")
            NotificationService.notify_waitlist_promoted(db, promoted, event_id)
        if moved:
            NotificationService.notify_waitlist_position_changed(db, moved, event_id)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    @staticmethod
    def is_event_code_unique(
        db: Client, event_code: str, exclude_event_id: Optional[str] = None
    ) -> bool:
        """Check that no other active event is using a code."""
        ids = EventService._store(db).active_ids_with_code(event_code)
        return all(event_id == exclude_event_id for event_id in ids)

    @staticmethod
    def create_event(
        db: Client, data: dict[str, Any], owner_id: str
    ) -> tuple[str, str]:
        """Validate and store a new event. Returns (event_id, event_code)."""
        fields: dict[str, Any] = {
            "name": (data.get("name") or "").strip(),
            "date": data.get("date"),
            "endTime": data.get("endTime"),
            "teamSize": data.get("teamSize", DEFAULT_TEAM_SIZE),
            "maxTeams": data.get("maxTeams", DEFAULT_MAX_TEAMS),
            "visibility": data.get("visibility") or VISIBILITY_PUBLIC,
            "joinType": data.get("joinType") or JOIN_TYPE_OPEN,
        }
        fields.update(remove_none({key: data.get(key) for key in OPTIONAL_FIELDS}))
        registration.validate_event_fields(fields)

        store = EventService._store(db)
        for _ in range(EVENT_CODE_MAX_ATTEMPTS):
            event_code = generate_event_code()
            if not store.code_in_use(event_code):
                break
        else:
            logger.error(f"Ran out of event codes creating an event for {owner_id}")
            raise ExhaustionError()

        fields.update(
            {
                "eventCode": event_code,
                "status": EVENT_STATUS_ACTIVE,
                "ownerId": owner_id,
                "adminIds": [],
                "registrations": [],
                "invitedUserIds": [],
                "declinedUserIds": [],
            }
        )
        event_id = store.create(fields)
        logger.info(f"Event {event_id} created with code {event_code}")
        return event_id, event_code

    @staticmethod
    def update_event(
        db: Client,
        event_id: str,
        data: dict[str, Any],
        acting_user_id: Optional[str] = None,
    ) -> None:
        """Edit an event's details. Participants hear about it."""

        def transition(event: Event) -> tuple[dict[str, Any], list[str]]:
            return registration.update_details(event, data, acting_user_id)

        participants = EventService._apply_roster_change(db, event_id, transition)
        audience = [uid for uid in participants if uid != acting_user_id]
        NotificationService.notify_event_updated(db, audience, event_id)

    @staticmethod
    def cancel_event(
        db: Client, event_id: str, acting_user_id: Optional[str] = None
    ) -> None:
        """Mark an event canceled and tell participants and invitees."""
        audience = EventService._store(db).transactional_update(
            event_id, lambda event: registration.cancel_event(event, acting_user_id)
        )
        logger.info(f"Event {event_id} canceled, notifying {len(audience)} user(s)")
        NotificationService.notify_event_canceled(db, audience, event_id)

    @staticmethod
    def delete_event(
        db: Client, event_id: str, acting_user_id: Optional[str] = None
    ) -> None:
        """Remove the event document and its embedded registrations."""
        store = EventService._store(db)
        event = store.get(event_id)
        if event is None:
            raise EventNotFoundError()
        registration.require_manager(event, acting_user_id)
        store.delete(event_id)
        logger.info(f"Event {event_id} deleted")

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    @staticmethod
    def get_event(db: Client, event_id: str) -> Optional[Event]:
        return EventService._store(db).get(event_id)

    @staticmethod
    def get_event_or_raise(db: Client, event_id: str) -> Event:
        event = EventService.get_event(db, event_id)
        if event is None:
            raise EventNotFoundError()
        return event

    @staticmethod
    def get_event_by_code(db: Client, raw_code: Optional[str]) -> Optional[Event]:
        """Look up an active event by the code a person typed in."""
        event_code = normalize_event_code(raw_code)
        if not is_valid_event_code(event_code):
            return None
        return EventService._store(db).get_by_code(event_code)

    @staticmethod
    def get_public_events(db: Client, limit: int = PUBLIC_EVENTS_LIMIT) -> list[Event]:
        return EventService._store(db).query_public(limit)

    @staticmethod
    def get_by_owner(db: Client, user_id: str) -> list[Event]:
        return EventService._store(db).query_by_owner(user_id)

    @staticmethod
    def get_by_admin(db: Client, user_id: str) -> list[Event]:
        return EventService._store(db).query_by_admin(user_id)

    @staticmethod
    def get_by_participant(db: Client, user_id: str) -> list[Event]:
        return EventService._store(db).query_by_participant(user_id)

    @staticmethod
    def get_by_invited_user(db: Client, user_id: str) -> list[Event]:
        return EventService._store(db).query_by_invited(user_id)

    @staticmethod
    def get_by_declined_user(db: Client, user_id: str) -> list[Event]:
        return EventService._store(db).query_by_declined(user_id)

    @staticmethod
    def get_user_events(
        db: Client, user_id: str, now: Optional[datetime.datetime] = None
    ) -> dict[str, Any]:
        """Build the "my events" view: schedule, invitations and declines.

        Only active events that have not started yet are included.
        """
        now = now or utcnow()

        def upcoming(events: list[Event]) -> list[Event]:
            return [
                e
                for e in events
                if e["status"] == EVENT_STATUS_ACTIVE and e["date"] >= now
            ]

        schedule: dict[str, EventWithStatus] = {}
        for event in upcoming(
            EventService.get_by_owner(db, user_id)
            + EventService.get_by_admin(db, user_id)
            + EventService.get_by_participant(db, user_id)
        ):
            if event["id"] in schedule:
                continue
            user_status = status.get_user_status(event, user_id)
            if user_status.status not in status.SCHEDULE_STATUSES:
                continue
            entry: EventWithStatus = {"event": event, "status": user_status.status}
            if user_status.registrationStatus is not None:
                entry["registrationStatus"] = user_status.registrationStatus
            if user_status.waitlistPosition is not None:
                entry["waitlistPosition"] = user_status.waitlistPosition
            schedule[event["id"]] = entry

        invited = [
            {"event": e, "status": status.STATUS_INVITED}
            for e in upcoming(EventService.get_by_invited_user(db, user_id))
        ]
        declined = [
            {"event": e, "status": status.STATUS_DECLINED}
            for e in upcoming(EventService.get_by_declined_user(db, user_id))
        ]

        def by_date(entries: list[Any]) -> list[Any]:
            return sorted(entries, key=lambda entry: entry["event"]["date"])

        return {
            "schedule": by_date(list(schedule.values())),
            "invited": by_date(invited),
            "declined": by_date(declined),
            "inviteCount": len(invited),
        }

    @staticmethod
    def can_view_event(event: Event, user_id: Optional[str]) -> bool:
        """Private events are only visible to people connected to them."""
        if event["visibility"] != VISIBILITY_PRIVATE:
            return True
        if not user_id:
            return False
        return status.get_user_status(event, user_id).status != status.STATUS_NONE

    @staticmethod
    def get_event_summary(event: Event, viewer_id: Optional[str]) -> dict[str, Any]:
        """Capacity figures plus the viewer's relationship to the event."""
        summary: dict[str, Any] = {
            "totalCapacity": status.get_total_capacity(event),
            "maxCount": status.get_max_count(event),
            "joinedCount": status.get_joined_member_count(event),
            "joinedTeamCount": len(status.get_joined_teams(event)),
            "waitlistCount": len(status.get_waitlisted_teams(event)),
            "claimableSpots": status.get_claimable_spots_count(event),
            "hasCapacity": status.has_capacity(event),
            "canManage": status.can_manage_event(event, viewer_id),
            "viewer": None,
        }
        if viewer_id:
            user_status = status.get_user_status(event, viewer_id)
            user_team = status.get_user_team(event, viewer_id)
            summary["viewer"] = {
                "status": user_status.status,
                "registrationStatus": user_status.registrationStatus,
                "waitlistPosition": user_status.waitlistPosition,
                "teamId": user_team["id"] if user_team else None,
                "isCaptain": bool(
                    user_team and status.is_team_captain(user_team, viewer_id)
                ),
            }
        return summary

    @staticmethod
    def get_event_people(db: Client, event: Event) -> dict[str, Any]:
        """Resolve the owner, admins, invitees and decliners to profiles."""
        ids = [
            event["ownerId"],
            *event["adminIds"],
            *event["invitedUserIds"],
            *event["declinedUserIds"],
        ]
        profiles = UserService.get_by_ids(db, ids)

        def resolve(user_ids: list[str]) -> list[Any]:
            return [profiles.get(uid) or to_profile(uid, None) for uid in user_ids]

        return {
            "owner": resolve([event["ownerId"]])[0],
            "admins": resolve(event["adminIds"]),
            "invited": resolve(event["invitedUserIds"]),
            "declined": resolve(event["declinedUserIds"]),
        }

    # -----------------------------------------------------------------------
    # Roster
    # -----------------------------------------------------------------------

    @staticmethod
    def register_team(
        db: Client,
        event_id: str,
        user_id: str,
        display_name: str,
        photo_url: Optional[str],
        members: Optional[list[Any]] = None,
    ) -> RegistrationResult:
        result = EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.register_team(
                event, user_id, display_name, photo_url, members
            ),
        )
        logger.info(f"User {user_id} registered for {event_id} ({result.status})")
        return result

    @staticmethod
    def leave_team(db: Client, event_id: str, user_id: str) -> None:
        EventService._apply_roster_change(
            db, event_id, lambda event: registration.leave_team(event, user_id)
        )

    @staticmethod
    def decline_event(db: Client, event_id: str, user_id: str) -> None:
        EventService._apply_roster_change(
            db, event_id, lambda event: registration.decline_event(event, user_id)
        )

    @staticmethod
    def claim_slot(
        db: Client,
        event_id: str,
        team_id: str,
        member_index: int,
        user_id: str,
        display_name: str,
        photo_url: Optional[str],
    ) -> RegistrationResult:
        return EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.claim_slot(
                event, team_id, member_index, user_id, display_name, photo_url
            ),
        )

    @staticmethod
    def update_team_member(
        db: Client,
        event_id: str,
        team_id: str,
        member_index: int,
        requester_id: str,
        new_member: Any,
    ) -> None:
        EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.update_team_member(
                event, team_id, member_index, requester_id, new_member
            ),
        )

    @staticmethod
    def remove_team(
        db: Client, event_id: str, team_id: str, acting_user_id: Optional[str] = None
    ) -> None:
        EventService._apply_roster_change(
            db,
            event_id,
            lambda event: registration.remove_team(event, team_id, acting_user_id),
        )

    @staticmethod
    def add_guest_team(
        db: Client, event_id: str, admin_user_id: str, guest_names: list[Any]
    ) -> RegistrationResult:
        return EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.add_guest_team(
                event, admin_user_id, guest_names
            ),
        )

    # -----------------------------------------------------------------------
    # Invitations and admins
    # -----------------------------------------------------------------------

    @staticmethod
    def invite_user(
        db: Client, event_id: str, user_id: str, acting_user_id: Optional[str] = None
    ) -> bool:
        """Invite one user. Returns True when the invitation is new."""
        invited = EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.invite_user(event, user_id, acting_user_id),
        )
        if invited:
            NotificationService.notify_event_invite(db, user_id, event_id)
        return invited

    @staticmethod
    def invite_users_from_list(
        db: Client, event_id: str, list_id: str, acting_user_id: str
    ) -> list[str]:
        """Invite every member of a saved list. Returns the newly invited ids."""
        player_list = ListService.get_list_or_raise(db, list_id)
        if not ListService.can_manage(player_list, acting_user_id):
            raise PermissionDeniedError("You do not have access to this list.")

        member_ids = ListService.get_member_ids(db, list_id)
        newly_invited = EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.invite_users(event, member_ids, acting_user_id),
        )
        for user_id in newly_invited:
            NotificationService.notify_event_invite(db, user_id, event_id)
        logger.info(
            f"Invited {len(newly_invited)} user(s) from list {list_id} to {event_id}"
        )
        return newly_invited

    @staticmethod
    def remove_invitation(
        db: Client, event_id: str, user_id: str, acting_user_id: Optional[str] = None
    ) -> None:
        EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.remove_invitation(
                event, user_id, acting_user_id
            ),
        )

    @staticmethod
    def decline_invitation(db: Client, event_id: str, user_id: str) -> None:
        EventService._store(db).transactional_update(
            event_id, lambda event: registration.decline_invitation(event, user_id)
        )

    @staticmethod
    def add_admin(
        db: Client, event_id: str, user_id: str, acting_user_id: Optional[str] = None
    ) -> None:
        EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.add_admin(event, user_id, acting_user_id),
        )

    @staticmethod
    def remove_admin(
        db: Client, event_id: str, user_id: str, acting_user_id: Optional[str] = None
    ) -> None:
        EventService._store(db).transactional_update(
            event_id,
            lambda event: registration.remove_admin(event, user_id, acting_user_id),
        )
