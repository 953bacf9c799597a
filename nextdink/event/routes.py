"""Routes for the event blueprint."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from firebase_admin import firestore
from flask import current_app, g, jsonify

from nextdink.auth.decorators import login_required
from nextdink.auth.utils import acting_principal, current_user_id
from nextdink.core.utils import to_jsonable
from nextdink.errors import EventNotFoundError, PermissionDeniedError, ValidationError
from nextdink.utils import first_form_error, get_json_payload

from . import bp
from .forms import CreateEventForm, EventForm
from .models import Event
from .services import EventService
from .utils import serialize_event


def _event_detail(db, event: Event) -> dict[str, Any]:
    viewer_id = current_user_id()
    summary = EventService.get_event_summary(event, viewer_id)
    detail: dict[str, Any] = {"event": serialize_event(event), "summary": summary}
    if summary["canManage"]:
        detail["people"] = EventService.get_event_people(db, event)
    return detail


def _require_string(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(f"{key} is required.")
    return value


def _require_int(payload: dict[str, Any], key: str) -> int:
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValidationError(f"{key} must be a whole number.")
    return value


def _optional_list(payload: dict[str, Any], key: str) -> list[Any] | None:
    value = payload.get(key)
    if value is not None and not isinstance(value, list):
        raise ValidationError(f"{key} must be a list.")
    return value


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@bp.route("/", methods=["POST"])
@login_required
def create_event():
    """Create an event owned by the signed-in user."""
    payload = get_json_payload()
    form = CreateEventForm(meta={"csrf": False})
    if not form.validate():
        raise ValidationError(first_form_error(form))

    db = firestore.client()
    event_id, event_code = EventService.create_event(
        db, form.submitted_data(payload.keys()), g.user["uid"]
    )
    current_app.logger.info(f"User {g.user['uid']} created event {event_id}")
    return jsonify({"id": event_id, "eventCode": event_code}), 201


@bp.route("/public", methods=["GET"])
def public_events():
    """Upcoming public events, soonest first."""
    db = firestore.client()
    events = EventService.get_public_events(
        db, limit=current_app.config["PUBLIC_EVENTS_LIMIT"]
    )
    return jsonify({"events": [serialize_event(event) for event in events]})


@bp.route("/mine", methods=["GET"])
@login_required
def my_events():
    """The signed-in user's schedule, invitations and declines."""
    db = firestore.client()
    return jsonify(to_jsonable(EventService.get_user_events(db, g.user["uid"])))


@bp.route("/code/<string:event_code>", methods=["GET"])
@login_required
def view_event_by_code(event_code):
    db = firestore.client()
    event = EventService.get_event_by_code(db, event_code)
    if event is None:
        raise EventNotFoundError("No active event uses that code.")
    if not EventService.can_view_event(event, g.user["uid"]):
        raise PermissionDeniedError("This event is private.")
    return jsonify(_event_detail(db, event))


@bp.route("/<string:event_id>", methods=["GET"])
@login_required
def view_event(event_id):
    db = firestore.client()
    event = EventService.get_event_or_raise(db, event_id)
    if not EventService.can_view_event(event, g.user["uid"]):
        raise PermissionDeniedError("This event is private.")
    return jsonify(_event_detail(db, event))


@bp.route("/<string:event_id>", methods=["PATCH"])
@login_required
def edit_event(event_id):
    payload = get_json_payload()
    form = EventForm(meta={"csrf": False})
    if not form.validate():
        raise ValidationError(first_form_error(form))

    db = firestore.client()
    EventService.update_event(
        db, event_id, form.submitted_data(payload.keys()), g.user["uid"]
    )
    return jsonify(_event_detail(db, EventService.get_event_or_raise(db, event_id)))


@bp.route("/<string:event_id>/cancel", methods=["POST"])
@login_required
def cancel_event(event_id):
    db = firestore.client()
    EventService.cancel_event(db, event_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>", methods=["DELETE"])
@login_required
def delete_event(event_id):
    db = firestore.client()
    EventService.delete_event(db, event_id, g.user["uid"])
    return jsonify({"status": "success"})


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------


@bp.route("/<string:event_id>/register", methods=["POST"])
@login_required
def register(event_id):
    """Register the signed-in user, captaining a new team."""
    payload = get_json_payload()
    user_id, display_name, photo_url = acting_principal()
    db = firestore.client()
    result = EventService.register_team(
        db,
        event_id,
        user_id,
        display_name,
        photo_url,
        _optional_list(payload, "members"),
    )
    return jsonify(asdict(result)), 201


@bp.route("/<string:event_id>/leave", methods=["POST"])
@login_required
def leave(event_id):
    db = firestore.client()
    EventService.leave_team(db, event_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/decline", methods=["POST"])
@login_required
def decline(event_id):
    """Leave the roster and mark the event as declined."""
    db = firestore.client()
    EventService.decline_event(db, event_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/claim", methods=["POST"])
@login_required
def claim(event_id):
    """Take over an open or guest slot in someone else's team."""
    payload = get_json_payload()
    team_id = _require_string(payload, "teamId")
    member_index = _require_int(payload, "memberIndex")
    user_id, display_name, photo_url = acting_principal()
    db = firestore.client()
    result = EventService.claim_slot(
        db, event_id, team_id, member_index, user_id, display_name, photo_url
    )
    return jsonify(asdict(result))


@bp.route(
    "/<string:event_id>/teams/<string:team_id>/members/<int:member_index>",
    methods=["PUT"],
)
@login_required
def update_member(event_id, team_id, member_index):
    """A captain renames a guest or reopens a slot."""
    payload = get_json_payload()
    db = firestore.client()
    EventService.update_team_member(
        db, event_id, team_id, member_index, g.user["uid"], payload
    )
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/teams/<string:team_id>", methods=["DELETE"])
@login_required
def remove_team(event_id, team_id):
    db = firestore.client()
    EventService.remove_team(db, event_id, team_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/guest-teams", methods=["POST"])
@login_required
def add_guest_team(event_id):
    payload = get_json_payload()
    guest_names = _optional_list(payload, "guestNames")
    if guest_names is None:
        raise ValidationError("guestNames is required.")
    db = firestore.client()
    result = EventService.add_guest_team(db, event_id, g.user["uid"], guest_names)
    return jsonify(asdict(result)), 201


# ---------------------------------------------------------------------------
# Invitations and admins
# ---------------------------------------------------------------------------


@bp.route("/<string:event_id>/invitations", methods=["POST"])
@login_required
def invite(event_id):
    user_id = _require_string(get_json_payload(), "userId")
    db = firestore.client()
    invited = EventService.invite_user(db, event_id, user_id, g.user["uid"])
    return jsonify({"status": "success", "invited": invited})


@bp.route("/<string:event_id>/invitations/list/<string:list_id>", methods=["POST"])
@login_required
def invite_list(event_id, list_id):
    """Invite every member of one of the user's saved lists."""
    db = firestore.client()
    invited = EventService.invite_users_from_list(
        db, event_id, list_id, g.user["uid"]
    )
    return jsonify({"status": "success", "invited": invited})


@bp.route("/<string:event_id>/invitations/decline", methods=["POST"])
@login_required
def decline_invitation(event_id):
    db = firestore.client()
    EventService.decline_invitation(db, event_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/invitations/<string:user_id>", methods=["DELETE"])
@login_required
def remove_invitation(event_id, user_id):
    db = firestore.client()
    EventService.remove_invitation(db, event_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/admins", methods=["POST"])
@login_required
def add_admin(event_id):
    user_id = _require_string(get_json_payload(), "userId")
    db = firestore.client()
    EventService.add_admin(db, event_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:event_id>/admins/<string:user_id>", methods=["DELETE"])
@login_required
def remove_admin(event_id, user_id):
    db = firestore.client()
    EventService.remove_admin(db, event_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})
