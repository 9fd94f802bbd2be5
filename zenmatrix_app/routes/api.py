"""
REST API Endpoints for tasks.

Every task endpoint is protected by ``require_auth`` and scoped to the
authenticated user unless that user is an administrator.  A task that
exists but belongs to someone else is reported as 404, exactly like a
missing one.

Endpoints:
    GET    /api/health          - Service health check (public)
    GET    /api/tasks           - List tasks (filter, search, sort, paginate)
    GET    /api/tasks/<id>      - Retrieve a single task
    POST   /api/tasks           - Create a new task
    PUT    /api/tasks/<id>      - Partial update of a task
    DELETE /api/tasks/<id>      - Delete a task
"""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from typing import Any

from flask import Blueprint, Response, g, jsonify, request

from ..auth import require_auth
from ..context import get_services
from ..errors import NotFound, ValidationError
from ..models import MAX_ROW_ID, MAX_TEXT_LENGTH
from ..query import build_task_query, ownership_predicate, total_pages

logger = logging.getLogger(__name__)

api_bp = Blueprint("task_api", __name__)

REQUIRED_FIELDS = ["titulo", "proyecto", "responsable", "prioridad"]

# Wire field name -> column attribute, per kind of value.
TEXT_FIELDS = {
    "proyecto": "proyecto",
    "responsable": "responsable",
    "titulo": "titulo",
    "prioridad": "prioridad",
}
OPTIONAL_TEXT_FIELDS = {"descripcion": "descripcion"}
DATE_FIELDS = {
    "fechaVencimiento": "fecha_vencimiento",
    "fechaTerminada": "fecha_terminada",
}
BOOLEAN_FIELDS = {"isCompleted": "is_completed"}

# Ids past the INTEGER range fail to match and fall through to 404.
TASK_ID_RULE = f"/tasks/<int(max={MAX_ROW_ID}):task_id>"

CREATE_FIELDS = ["proyecto", "responsable", "titulo", "descripcion", "fechaVencimiento", "prioridad"]
UPDATE_FIELDS = [*CREATE_FIELDS, "fechaTerminada", "isCompleted"]


# =====================================================================
# Helper Functions
# =====================================================================


def ensure_utc(value: datetime) -> datetime:
    """Normalise a datetime to UTC, treating naive values as UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(field: str, value: Any) -> datetime | None:
    """
    Parse an optional ISO-8601 value into a UTC datetime.

    An empty string counts as no date, the same as ``None``.

    Raises:
        ValidationError: If *value* is neither empty nor a valid
            ISO-8601 string.
    """
    if value is None or value == "":
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        raise ValidationError(
            f"Invalid {field} format. Use ISO format (YYYY-MM-DDTHH:MM:SS)"
        ) from None
    return ensure_utc(parsed)


def _check_text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"'{field}' must be a string")
    if len(value) > MAX_TEXT_LENGTH:
        raise ValidationError(f"'{field}' must be {MAX_TEXT_LENGTH} characters or less")
    return value


def validate_task_data(
    data: dict[str, Any],
    allowed_fields: list[str],
    required_fields: list[str] | None = None,
) -> dict[str, Any]:
    """
    Validate a task payload and convert it to column values.

    Fields outside *allowed_fields* (``id``, ``userId``, timestamps ...)
    are ignored.  Required text fields may never be blank; optional fields
    accept ``null``, which clears them.

    Args:
        data: The deserialised JSON request body.
        allowed_fields: Wire field names the caller may set.
        required_fields: Wire field names that must be present and
            non-blank.

    Returns:
        Mapping of column attribute name to validated value, containing
        only the fields present in *data*.

    Raises:
        ValidationError: On the first invalid field.
    """
    for field in required_fields or []:
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"'{field}' is required")

    fields: dict[str, Any] = {}
    for field in allowed_fields:
        if field not in data:
            continue
        value = data[field]

        if field in TEXT_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"'{field}' must be a non-empty string")
            fields[TEXT_FIELDS[field]] = _check_text(field, value)
        elif field in OPTIONAL_TEXT_FIELDS:
            fields[OPTIONAL_TEXT_FIELDS[field]] = (
                None if value is None else _check_text(field, value)
            )
        elif field in DATE_FIELDS:
            fields[DATE_FIELDS[field]] = parse_datetime(field, value)
        elif field in BOOLEAN_FIELDS:
            if not isinstance(value, bool):
                raise ValidationError(f"'{field}' must be a boolean")
            fields[BOOLEAN_FIELDS[field]] = value

    return fields


def _json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _caller_scope():
    """Ownership predicate for the authenticated caller (``None`` for admins)."""
    return ownership_predicate(g.identity.user_id, g.identity.role)


# =====================================================================
# API Endpoints
# =====================================================================


@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """
    Return service health status.

    Public endpoint intended for load-balancer and orchestrator probes.
    """
    return (
        jsonify(
            {
                "status": "healthy",
                "service": "zenmatrix",
                "environment": os.getenv("ENVIRONMENT", "unknown"),
            }
        ),
        200,
    )


@api_bp.route("/tasks", methods=["GET"])
@require_auth
def get_tasks() -> tuple[Response, int]:
    """
    List tasks visible to the caller.

    Query Parameters:
        search: Substring matched against ``titulo`` or ``descripcion``.
        priority: Exact ``prioridad`` value.
        isCompleted: ``"true"`` or any other value for open tasks.
        proyecto: Substring matched against ``proyecto``.
        sortBy, sortDirection: Allowed field name and ``asc``/``desc``.
        page, limit: 1-based page number and page size.

    Returns:
        JSON object with ``tasks``, ``totalCount``, ``currentPage``,
        ``limit`` and ``totalPages``.
    """
    logger.info("GET /api/tasks - Fetching tasks for user_id=%s", g.user_id)
    services = get_services()

    query = build_task_query(
        request.args,
        default_limit=services.default_page_size,
        max_limit=services.max_page_size,
    ).restricted_to(_caller_scope())

    tasks, total_count = services.tasks.list(query)
    return (
        jsonify(
            {
                "tasks": [task.to_dict() for task in tasks],
                "totalCount": total_count,
                "currentPage": query.page,
                "limit": query.limit,
                "totalPages": total_pages(total_count, query.limit),
            }
        ),
        200,
    )


@api_bp.route(TASK_ID_RULE, methods=["GET"])
@require_auth
def get_task(task_id: int) -> tuple[Response, int]:
    """Retrieve a single task visible to the caller, or 404."""
    task = get_services().tasks.get(task_id, scope=_caller_scope())
    if task is None:
        raise NotFound("Task not found")
    return jsonify(task.to_dict()), 200


@api_bp.route("/tasks", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    """
    Create a new task owned by the caller.

    Expects ``titulo``, ``proyecto``, ``responsable`` and ``prioridad``;
    ``descripcion`` and ``fechaVencimiento`` are optional.

    Returns:
        JSON representation of the newly created task with a 201 status.
    """
    fields = validate_task_data(
        _json_body(), allowed_fields=CREATE_FIELDS, required_fields=REQUIRED_FIELDS
    )
    task = get_services().tasks.create(g.user_id, fields)
    logger.info("Created task id=%s for user_id=%s", task.id, g.user_id)
    return jsonify(task.to_dict()), 201


@api_bp.route(TASK_ID_RULE, methods=["PUT"])
@require_auth
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Update an existing task.

    Only the fields present in the JSON body are modified.  Ownership can
    not be changed.

    Returns:
        JSON representation of the updated task, or 404 if the caller has
        no such task.
    """
    changes = validate_task_data(_json_body(), allowed_fields=UPDATE_FIELDS)
    task = get_services().tasks.update(task_id, changes, scope=_caller_scope())
    if task is None:
        raise NotFound("Task not found")
    logger.info("Updated task id=%s", task_id)
    return jsonify(task.to_dict()), 200


@api_bp.route(TASK_ID_RULE, methods=["DELETE"])
@require_auth
def delete_task(task_id: int) -> Response:
    """Delete a task; 204 with no body, or 404 if the caller has no such task."""
    if not get_services().tasks.delete(task_id, scope=_caller_scope()):
        raise NotFound("Task not found")
    logger.info("Deleted task id=%s", task_id)
    return Response(status=204)
