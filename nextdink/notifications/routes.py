"""Routes for the notifications blueprint."""

from firebase_admin import firestore
from flask import g, jsonify

from nextdink.auth.decorators import login_required
from nextdink.core.utils import to_jsonable

from . import bp
from .services import NotificationService


@bp.route("/", methods=["GET"])
@login_required
def view_notifications():
    """The signed-in user's notifications, newest first."""
    db = firestore.client()
    user_id = g.user["uid"]
    notifications = NotificationService.get_by_user(db, user_id)
    return jsonify(
        {
            "notifications": to_jsonable(notifications),
            "unreadCount": NotificationService.get_unread_count(db, user_id),
        }
    )


@bp.route("/<string:notification_id>/read", methods=["POST"])
@login_required
def mark_read(notification_id):
    db = firestore.client()
    NotificationService.mark_as_read(db, g.user["uid"], notification_id)
    return jsonify({"status": "success"})


@bp.route("/read-all", methods=["POST"])
@login_required
def mark_all_read():
    db = firestore.client()
    count = NotificationService.mark_all_as_read(db, g.user["uid"])
    return jsonify({"status": "success", "updated": count})
