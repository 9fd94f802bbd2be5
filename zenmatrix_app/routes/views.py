"""Site root banner."""

from __future__ import annotations

from flask import Blueprint, Response

views_bp = Blueprint("views", __name__)


@views_bp.route("/", methods=["GET"])
def index() -> Response:
    """Confirm the API is up with a plain-text message."""
    return Response("ZenMatrix API is running!", status=200, mimetype="text/plain")
