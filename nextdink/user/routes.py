"""Routes for the user blueprint."""

from firebase_admin import firestore
from flask import current_app, g, jsonify, request

from nextdink.auth.decorators import login_required
from nextdink.errors import ValidationError
from nextdink.utils import first_form_error, get_json_payload

from . import bp
from .forms import UpdateProfileForm
from .services import UserService, to_profile


@bp.route("/me", methods=["GET"])
@login_required
def me():
    """Return the signed-in user's profile."""
    return jsonify(to_profile(g.user["uid"], g.user))


@bp.route("/me", methods=["PATCH"])
@login_required
def update_me():
    """Change the signed-in user's display name or photo."""
    payload = get_json_payload()
    form = UpdateProfileForm(meta={"csrf": False})
    if not form.validate():
        raise ValidationError(first_form_error(form))

    update_data = {
        field: getattr(form, field).data
        for field in ("displayName", "photoUrl")
        if field in payload
    }

    db = firestore.client()
    profile = UserService.update_profile(db, g.user["uid"], update_data)
    current_app.logger.info(f"User {g.user['uid']} updated their profile")
    return jsonify(profile)


@bp.route("/search", methods=["GET"])
@login_required
def search():
    """Find players by the start of their display name."""
    term = request.args.get("q", "")
    limit = current_app.config["USER_SEARCH_LIMIT"]
    db = firestore.client()
    results = UserService.search_by_name(db, term, limit=limit)
    return jsonify(
        {"users": [profile for profile in results if profile["uid"] != g.user["uid"]]}
    )
