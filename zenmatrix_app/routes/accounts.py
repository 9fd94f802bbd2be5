"""
Account endpoints: registration and login.

Endpoints:
    POST /api/register  -- Create a new user account.
    POST /api/login     -- Authenticate and receive a bearer token.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Response, jsonify, request

from ..context import get_services
from ..errors import Unauthenticated, ValidationError
from ..models import MAX_TEXT_LENGTH

logger = logging.getLogger(__name__)

accounts_bp = Blueprint("accounts", __name__)


def _validate_required_fields(data: dict[str, Any], required_fields: list[str]) -> None:
    """
    Check that all *required_fields* are present and non-blank in *data*.

    Raises:
        ValidationError: Naming the first missing or blank field.
    """
    for field in required_fields:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"'{field}' is required")


def _credentials() -> tuple[str, str]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    _validate_required_fields(data, ["email", "password"])
    return data["email"].strip(), data["password"]


@accounts_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new user account.

    Returns:
        201 with the created user on success.
        400 if ``email`` or ``password`` is missing or too long.
        409 if the email is already registered.
    """
    email, password = _credentials()
    if len(email) > MAX_TEXT_LENGTH:
        raise ValidationError(f"email must be {MAX_TEXT_LENGTH} characters or less")

    user = get_services().users.create(email=email, password=password)
    logger.info("Registered user id=%s", user.id)
    return jsonify({"message": "User registered successfully", "user": user.to_dict()}), 201


@accounts_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate a user and issue a token.

    The same message is returned for an unknown email and a wrong password
    so the response does not reveal which accounts exist.

    Returns:
        200 with ``token`` and ``user`` on success.
        400 if required fields are missing.
        401 if credentials are incorrect.
    """
    email, password = _credentials()
    services = get_services()

    user = services.users.get_by_email(email)
    if user is None or not user.check_password(password):
        raise Unauthenticated("Invalid email or password")

    token = services.tokens.issue(user.id, user.role)
    logger.info("User id=%s logged in", user.id)
    return jsonify({"message": "Login successful", "token": token, "user": user.to_dict()}), 200
