"""
Persistence for users and tasks.

Thin wrappers around a SQLAlchemy session.  Each mutating call commits on
its own; nothing here spans more than one statement in a transaction.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, scoped_session
from sqlalchemy.sql.elements import ColumnElement

from .errors import Conflict
from .models import Task, User, UserRole
from .query import TaskQuery

logger = logging.getLogger(__name__)


class UserRepository:
    """Credential store backed by the ``users`` table."""

    def __init__(self, session: Session | scoped_session) -> None:
        self._session = session

    def get(self, user_id: int) -> User | None:
        return self._session.get(User, user_id)

    def get_by_email(self, email: str) -> User | None:
        return self._session.scalar(select(User).where(User.email == email))

    def create(self, email: str, password: str, role: UserRole = UserRole.USER) -> User:
        """
        Persist a new user with a hashed password.

        Duplicate emails are rejected by the unique index rather than by a
        prior lookup, so two concurrent registrations cannot both succeed.

        Raises:
            Conflict: If *email* is already registered.
        """
        user = User(email=email, role=UserRole(role).value)
        user.set_password(password)
        self._session.add(user)
        try:
            self._session.commit()
        except IntegrityError:
            self._session.rollback()
            logger.info("Registration rejected, email already exists")
            raise Conflict("Email already registered") from None
        return user

    def set_role(self, user: User, role: UserRole) -> User:
        user.role = UserRole(role).value
        self._session.commit()
        return user


class TaskRepository:
    """Task store backed by the ``tasks`` table."""

    def __init__(self, session: Session | scoped_session) -> None:
        self._session = session

    def _find(self, task_id: int, scope: ColumnElement[bool] | None) -> Task | None:
        stmt = select(Task).where(Task.id == task_id)
        if scope is not None:
            stmt = stmt.where(scope)
        return self._session.scalar(stmt)

    def create(self, user_id: int | None, fields: dict[str, Any]) -> Task:
        task = Task(user_id=user_id, **fields)
        self._session.add(task)
        self._session.commit()
        return task

    def get(self, task_id: int, scope: ColumnElement[bool] | None = None) -> Task | None:
        """Return the task with *task_id* if it also matches *scope*."""
        return self._find(task_id, scope)

    def list(self, query: TaskQuery) -> tuple[list[Task], int]:
        """
        Run a listing query.

        Returns:
            The requested page of tasks and the number of tasks matching
            the predicates before pagination.
        """
        total_count = self._session.scalar(
            select(func.count()).select_from(Task).where(query.where)
        )
        stmt = (
            select(Task)
            .where(query.where)
            .order_by(*query.ordering)
            .offset(query.offset)
            .limit(query.limit)
        )
        tasks = list(self._session.scalars(stmt).all())
        return tasks, int(total_count or 0)

    def update(
        self,
        task_id: int,
        changes: dict[str, Any],
        scope: ColumnElement[bool] | None = None,
    ) -> Task | None:
        """
        Apply *changes* to the task matching *task_id* and *scope*.

        Returns:
            The updated task, or ``None`` when no row matched.
        """
        task = self._find(task_id, scope)
        if task is None:
            return None
        task.apply_changes(changes)
        self._session.commit()
        return task

    def delete(self, task_id: int, scope: ColumnElement[bool] | None = None) -> bool:
        """Delete the matching task; return ``False`` when no row matched."""
        task = self._find(task_id, scope)
        if task is None:
            return False
        self._session.delete(task)
        self._session.commit()
        return True
