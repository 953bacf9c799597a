"""Routes for the lists blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify

from nextdink.auth.decorators import login_required
from nextdink.core.utils import to_jsonable
from nextdink.errors import PermissionDeniedError, ValidationError
from nextdink.user.services import UserService, to_profile
from nextdink.utils import first_form_error, get_json_payload

from . import bp
from .forms import ListForm
from .services import ListService


def _validated_name() -> str:
    form = ListForm(meta={"csrf": False})
    if not form.validate():
        raise ValidationError(first_form_error(form))
    return form.name.data


def _require_user_id(payload: dict) -> str:
    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id:
        raise ValidationError("userId is required.")
    return user_id


@bp.route("/", methods=["GET"])
@login_required
def view_lists():
    """Lists the signed-in user owns or administers."""
    db = firestore.client()
    lists = ListService.get_accessible_lists(db, g.user["uid"])
    for player_list in lists:
        player_list["memberCount"] = ListService.get_member_count(
            db, player_list["id"]
        )
    return jsonify({"lists": to_jsonable(lists)})


@bp.route("/", methods=["POST"])
@login_required
def create_list():
    db = firestore.client()
    list_id = ListService.create_list(db, _validated_name(), g.user["uid"])
    return jsonify({"id": list_id}), 201


@bp.route("/<string:list_id>", methods=["GET"])
@login_required
def view_list(list_id):
    """A list with its members resolved to profiles."""
    db = firestore.client()
    player_list = ListService.get_list_or_raise(db, list_id)
    if not ListService.can_manage(player_list, g.user["uid"]):
        raise PermissionDeniedError("You do not have access to this list.")

    member_ids = ListService.get_member_ids(db, list_id)
    profiles = UserService.get_by_ids(db, member_ids)
    members = [profiles.get(uid) or to_profile(uid, None) for uid in member_ids]
    return jsonify({"list": to_jsonable(player_list), "members": members})


@bp.route("/<string:list_id>", methods=["PATCH"])
@login_required
def edit_list(list_id):
    db = firestore.client()
    ListService.update_list(db, list_id, _validated_name(), g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:list_id>", methods=["DELETE"])
@login_required
def delete_list(list_id):
    db = firestore.client()
    ListService.delete_list(db, list_id, g.user["uid"])
    current_app.logger.info(f"List {list_id} deleted")
    return jsonify({"status": "success"})


@bp.route("/<string:list_id>/members", methods=["POST"])
@login_required
def add_member(list_id):
    user_id = _require_user_id(get_json_payload())
    db = firestore.client()
    ListService.add_member(db, list_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:list_id>/members/<string:user_id>", methods=["DELETE"])
@login_required
def remove_member(list_id, user_id):
    db = firestore.client()
    ListService.remove_member(db, list_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:list_id>/admins", methods=["POST"])
@login_required
def add_admin(list_id):
    user_id = _require_user_id(get_json_payload())
    db = firestore.client()
    ListService.add_admin(db, list_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})


@bp.route("/<string:list_id>/admins/<string:user_id>", methods=["DELETE"])
@login_required
def remove_admin(list_id, user_id):
    db = firestore.client()
    ListService.remove_admin(db, list_id, user_id, g.user["uid"])
    return jsonify({"status": "success"})
