"""The lists blueprint: saved groups of players for bulk invitations."""

from flask import Blueprint

bp = Blueprint("lists", __name__, url_prefix="/lists")

from . import routes  # noqa: E402
from .services import ListService  # noqa: E402

__all__ = ["routes", "ListService"]
