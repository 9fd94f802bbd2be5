"""
Unit tests for the task listing query builder.

Exercises parameter coercion (page, limit, isCompleted), the sort
allow-list, predicate construction and the ownership predicate without
touching the database.
"""

from __future__ import annotations

import pytest

from zenmatrix_app.models import MAX_ROW_ID, UserRole
from zenmatrix_app.query import (
    build_ordering,
    build_task_query,
    ownership_predicate,
    parse_is_completed,
    total_pages,
)

pytestmark = pytest.mark.unit


def _sql(clause) -> str:
    return str(clause.compile(compile_kwargs={"literal_binds": True}))


def test_defaults_when_no_arguments():
    """Test that an empty query string yields page 1, limit 10, newest first."""
    # Act
    query = build_task_query({})

    # Assert
    assert query.predicates == ()
    assert query.page == 1
    assert query.limit == 10
    assert query.offset == 0
    assert [_sql(clause) for clause in query.ordering] == [
        "tasks.created_at DESC",
        "tasks.id DESC",
    ]


def test_offset_is_derived_from_page_and_limit():
    """Test that offset = (page - 1) * limit."""
    query = build_task_query({"page": "3", "limit": "5"})

    assert query.page == 3
    assert query.limit == 5
    assert query.offset == 10


@pytest.mark.parametrize("raw", ["abc", "", "0", "-2", "1.5"])
def test_invalid_page_and_limit_fall_back_to_defaults(raw):
    """Test that unusable page/limit values fall back to 1 and 10."""
    query = build_task_query({"page": raw, "limit": raw})

    assert query.page == 1
    assert query.limit == 10


def test_huge_page_keeps_offset_within_integer_range():
    """Test that an enormous page number is clamped so the offset still fits in SQL."""
    # Act
    query = build_task_query({"page": "99999999999999999999", "limit": "10"})

    # Assert
    assert query.limit == 10
    assert 0 < query.offset <= MAX_ROW_ID
    assert query.page == MAX_ROW_ID // 10 + 1


def test_limit_is_capped_at_max_page_size():
    """Test that a huge limit is clamped to the configured maximum."""
    query = build_task_query({"limit": "100000"}, max_limit=50)

    assert query.limit == 50


def test_default_limit_is_configurable():
    query = build_task_query({}, default_limit=25)

    assert query.limit == 25


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, None),
        ("", None),
        ("true", True),
        ("false", False),
        ("yes", False),
        ("TRUE", False),
        ("1", False),
    ],
)
def test_parse_is_completed(raw, expected):
    """Test the tri-state parse: only the literal 'true' means completed."""
    assert parse_is_completed(raw) is expected


def test_each_filter_adds_one_predicate():
    """Test that search, priority, isCompleted and proyecto each add a predicate."""
    # Act
    query = build_task_query(
        {"search": "bug", "priority": "Alta", "isCompleted": "false", "proyecto": "Apo"}
    )

    # Assert
    assert len(query.predicates) == 4
    where = _sql(query.where)
    assert "tasks.titulo LIKE" in where
    assert "tasks.descripcion LIKE" in where
    assert "tasks.prioridad = 'Alta'" in where
    assert "tasks.is_completed" in where
    assert "tasks.proyecto LIKE" in where
    assert " AND " in where
    assert " OR " in where


def test_empty_filters_are_ignored():
    query = build_task_query({"search": "", "priority": "", "proyecto": "", "isCompleted": ""})

    assert query.predicates == ()


@pytest.mark.parametrize(
    ("sort_by", "direction", "expected"),
    [
        ("titulo", "asc", ["tasks.titulo ASC", "tasks.id ASC"]),
        ("fechaVencimiento", "DESC", ["tasks.fecha_vencimiento DESC", "tasks.id DESC"]),
        ("isCompleted", "asc", ["tasks.is_completed ASC", "tasks.id ASC"]),
    ],
)
def test_allowed_sort_fields(sort_by, direction, expected):
    """Test that allow-listed fields map to their columns."""
    ordering = build_ordering(sort_by, direction)

    assert [_sql(clause) for clause in ordering] == expected


@pytest.mark.parametrize(
    ("sort_by", "direction"),
    [
        ("password_hash", "asc"),
        ("created_at; DROP TABLE tasks", "desc"),
        ("titulo", None),
        (None, "asc"),
        ("titulo", "sideways"),
        ("__class__", "asc"),
    ],
)
def test_unknown_sort_falls_back_to_default(sort_by, direction):
    """Test that anything outside the allow-list uses newest-first ordering."""
    ordering = build_ordering(sort_by, direction)

    assert [_sql(clause) for clause in ordering] == ["tasks.created_at DESC", "tasks.id DESC"]


def test_restricted_to_appends_ownership_predicate():
    """Test that the ownership predicate is ANDed onto the filters."""
    # Arrange
    query = build_task_query({"priority": "Alta"})

    # Act
    scoped = query.restricted_to(ownership_predicate(5, UserRole.USER))

    # Assert
    assert len(scoped.predicates) == 2
    assert "tasks.user_id = 5" in _sql(scoped.where)
    assert len(query.predicates) == 1


def test_admin_has_no_ownership_predicate():
    """Test that administrators are not restricted to their own tasks."""
    query = build_task_query({})

    assert ownership_predicate(5, UserRole.ADMIN) is None
    assert query.restricted_to(None) is query


@pytest.mark.parametrize(
    ("total", "limit", "expected"),
    [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (12, 5, 3)],
)
def test_total_pages(total, limit, expected):
    assert total_pages(total, limit) == expected
