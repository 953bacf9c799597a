"""Helpers for reading the signed-in user."""

from __future__ import annotations

from typing import Optional

from flask import g

from nextdink.core.constants import UNKNOWN_USER_DISPLAY_NAME


def current_user_id() -> Optional[str]:
    """Return the signed-in user's id, if any."""
    user = g.get("user")
    return user["uid"] if user else None


def acting_principal() -> tuple[str, str, Optional[str]]:
    """Return (user id, display name, photo url) for the signed-in user."""
    user = g.user
    return (
        user["uid"],
        user.get("displayName") or UNKNOWN_USER_DISPLAY_NAME,
        user.get("photoUrl"),
    )
