"""Helpers shared by every blueprint."""

from __future__ import annotations

import datetime
from typing import Any


def utcnow() -> datetime.datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.datetime.now(datetime.timezone.utc)


def convert_timestamp(value: Any) -> datetime.datetime:
    """Convert a stored timestamp into an aware datetime.

    Firestore hands back ``DatetimeWithNanoseconds`` (a datetime subclass);
    anything else, such as an unresolved server timestamp, becomes "now".
    """
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value
    if value is not None and hasattr(value, "to_datetime"):
        return convert_timestamp(value.to_datetime())
    return utcnow()


def to_jsonable(value: Any) -> Any:
    """Recursively turn datetimes into ISO 8601 strings."""
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value
