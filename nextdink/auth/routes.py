"""Routes for the auth blueprint."""

from firebase_admin import auth, firestore
from flask import current_app, jsonify, request, session
from flask_wtf.csrf import generate_csrf

from nextdink.user.services import UserService

from . import bp


@bp.route("/session_login", methods=["POST"])
def session_login():
    """
    This endpoint is called from the client after a successful Firebase sign-in.
    It receives the ID token, verifies it, and creates a server-side session.
    """
    payload = request.get_json(silent=True) or {}
    id_token = payload.get("idToken")
    if not id_token:
        return jsonify({"status": "error", "message": "Missing ID token."}), 400

    try:
        decoded_token = auth.verify_id_token(id_token)
    except (auth.InvalidIdTokenError, auth.ExpiredIdTokenError, ValueError) as e:
        current_app.logger.warning(f"Rejected ID token during session login: {e}")
        return jsonify({"status": "error", "message": "Invalid token."}), 401

    uid = decoded_token["uid"]
    display_name = (
        payload.get("displayName")
        or decoded_token.get("name")
        or (decoded_token.get("email") or "").split("@")[0]
        or "Player"
    )
    photo_url = decoded_token.get("picture")

    db = firestore.client()
    UserService.create_or_update_user(db, uid, display_name, photo_url)
    session.clear()
    session["user_id"] = uid
    current_app.logger.info(f"Session started for user {uid}")
    return jsonify({"status": "success", "uid": uid})


@bp.route("/logout")
def logout():
    """
    The actual sign-out is handled by the Firebase client SDK.
    This route only clears the server-side session.
    """
    session.clear()
    return jsonify({"status": "success"})


@bp.route("/csrf-token")
def csrf_token():
    """Hand the client a token to send back in the X-CSRFToken header."""
    return jsonify({"csrfToken": generate_csrf()})
