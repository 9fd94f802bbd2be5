"""
Query construction for the task listing endpoint.

``build_task_query`` turns the raw query-string arguments of
``GET /api/tasks`` into a ``TaskQuery``: the filter predicates, the
ordering and the ``(offset, limit)`` window.  Sorting only accepts the
field names in ``SORTABLE_FIELDS``; anything else falls back to newest
first.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, replace

from sqlalchemy import and_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from .models import MAX_ROW_ID, Task, UserRole

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGE_SIZE = 100

# Wire field name -> column.  Only these may appear in ``sortBy``.
SORTABLE_FIELDS = {
    "id": Task.id,
    "proyecto": Task.proyecto,
    "responsable": Task.responsable,
    "titulo": Task.titulo,
    "prioridad": Task.prioridad,
    "isCompleted": Task.is_completed,
    "fechaInicio": Task.fecha_inicio,
    "fechaVencimiento": Task.fecha_vencimiento,
    "fechaTerminada": Task.fecha_terminada,
    "createdAt": Task.created_at,
    "updatedAt": Task.updated_at,
}
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class TaskQuery:
    """Store-level description of one page of the task listing."""

    predicates: tuple[ColumnElement[bool], ...]
    ordering: tuple
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def where(self) -> ColumnElement[bool]:
        """All predicates joined with AND (``true()`` when there are none)."""
        if not self.predicates:
            return true()
        return and_(*self.predicates)

    def restricted_to(self, predicate: ColumnElement[bool] | None) -> TaskQuery:
        """Return a copy with *predicate* added, or ``self`` when it is ``None``."""
        if predicate is None:
            return self
        return replace(self, predicates=(*self.predicates, predicate))


def _positive_int(raw: str | None, default: int) -> int:
    """Coerce a query-string value, falling back to *default* when unusable."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def parse_is_completed(raw: str | None) -> bool | None:
    """
    Parse the tri-state ``isCompleted`` argument.

    Absent or empty means "no filter".  Only the literal ``"true"`` selects
    completed tasks; every other non-empty value selects open ones.
    """
    if raw is None or raw == "":
        return None
    return raw == "true"


def build_ordering(sort_by: str | None, sort_direction: str | None) -> tuple:
    """
    Resolve ``sortBy``/``sortDirection`` against the allow-list.

    ``id`` in the same direction is appended so that rows with equal sort
    keys keep a stable order across pages.
    """
    column = SORTABLE_FIELDS.get(sort_by or "")
    direction = (sort_direction or "").lower()
    if column is None or direction not in SORT_DIRECTIONS:
        return (Task.created_at.desc(), Task.id.desc())

    if direction == "asc":
        return (column.asc(), Task.id.asc())
    return (column.desc(), Task.id.desc())


def build_task_query(
    args: Mapping[str, str],
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = DEFAULT_MAX_PAGE_SIZE,
) -> TaskQuery:
    """
    Translate listing query-string arguments into a ``TaskQuery``.

    Args:
        args: Request arguments (``request.args`` or any mapping).
        default_limit: Page size used when ``limit`` is missing or invalid.
        max_limit: Upper bound applied to ``limit``.

    Returns:
        The filters, ordering and pagination window for the listing.  The
        ownership predicate is not included; callers add it with
        ``restricted_to``.
    """
    predicates: list[ColumnElement[bool]] = []

    search = args.get("search")
    if search:
        predicates.append(
            or_(
                Task.titulo.contains(search, autoescape=True),
                Task.descripcion.contains(search, autoescape=True),
            )
        )

    priority = args.get("priority")
    if priority:
        predicates.append(Task.prioridad == priority)

    is_completed = parse_is_completed(args.get("isCompleted"))
    if is_completed is not None:
        predicates.append(Task.is_completed == is_completed)

    proyecto = args.get("proyecto")
    if proyecto:
        predicates.append(Task.proyecto.contains(proyecto, autoescape=True))

    page = _positive_int(args.get("page"), DEFAULT_PAGE)
    limit = min(_positive_int(args.get("limit"), default_limit), max_limit)
    # Keep the row offset representable as a 64-bit integer.
    page = min(page, MAX_ROW_ID // limit + 1)

    return TaskQuery(
        predicates=tuple(predicates),
        ordering=build_ordering(args.get("sortBy"), args.get("sortDirection")),
        page=page,
        limit=limit,
    )


def ownership_predicate(user_id: int, role: UserRole | str) -> ColumnElement[bool] | None:
    """
    Restrict tasks to those owned by *user_id*.

    Returns ``None`` for administrators, who may act on every task.
    """
    if UserRole(role) is UserRole.ADMIN:
        return None
    return Task.user_id == user_id


def total_pages(total_count: int, limit: int) -> int:
    """Number of pages needed to show *total_count* rows *limit* at a time."""
    return math.ceil(total_count / limit)
