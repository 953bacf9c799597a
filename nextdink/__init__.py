"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session
from google.api_core import exceptions as google_exceptions
from werkzeug.middleware.proxy_fix import ProxyFix

from .core.constants import (
    FIRESTORE_TRANSACTION_ATTEMPTS,
    PUBLIC_EVENTS_LIMIT,
    USER_SEARCH_LIMIT,
    USERS_COLLECTION,
)
from .extensions import csrf


def _init_firebase(app):
    """Find credentials (env, file, or default) and initialize Firebase."""
    cred = None
    project_id = None

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id")
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id")
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
            project_id = os.environ.get("FIREBASE_PROJECT_ID")
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        try:
            firebase_options = {}
            if project_id:
                firebase_options["projectId"] = project_id
            firebase_admin.initialize_app(cred, firebase_options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FIRESTORE_TRANSACTION_ATTEMPTS=int(
            os.environ.get("FIRESTORE_TRANSACTION_ATTEMPTS")
            or FIRESTORE_TRANSACTION_ATTEMPTS
        ),
        PUBLIC_EVENTS_LIMIT=int(
            os.environ.get("PUBLIC_EVENTS_LIMIT") or PUBLIC_EVENTS_LIMIT
        ),
        USER_SEARCH_LIMIT=int(os.environ.get("USER_SEARCH_LIMIT") or USER_SEARCH_LIMIT),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Initialize extensions
    csrf.init_app(app)

    # Register blueprints
    from . import auth as auth_bp

    app.register_blueprint(auth_bp.bp)

    from . import user as user_bp

    app.register_blueprint(user_bp.bp)

    from . import event as event_bp

    app.register_blueprint(event_bp.bp)

    from . import lists as lists_bp

    app.register_blueprint(lists_bp.bp)

    from . import notifications as notifications_bp

    app.register_blueprint(notifications_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    @app.before_request
    def load_logged_in_user():
        """If a user_id is in the session, load the user data from Firestore and store it in g."""
        user_id = session.get("user_id")
        g.user = None
        if user_id is None:
            return

        try:
            db = firestore.client()
            user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
            if user_doc.exists:
                g.user = user_doc.to_dict()
                g.user["uid"] = user_id  # Ensure uid is in the user object
            else:
                # User ID in session but no user in DB. Clear the session.
                session.clear()
                current_app.logger.warning(
                    f"User {user_id} in session but not found in Firestore."
                )
        except google_exceptions.GoogleAPICallError as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            session.clear()

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    return app
