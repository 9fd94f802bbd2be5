"""
Shared pytest fixtures for the ZenMatrix test suite.

Provides the Flask application, test client, database session, user and
task factories, and ready-made auth headers for a regular user, a second
user and an administrator.

Key Concepts:
- Session-scoped app, function-scoped client and database
- Factory fixtures (user_factory, task_factory) for flexible test data
- Tokens minted through the app's own TokenService
"""

from __future__ import annotations

import os
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from faker import Faker

os.environ["FLASK_ENV"] = "testing"
os.environ["TEST_JWT_SECRET_KEY"] = "test-jwt-secret-key-for-local-tests-123456"

from tests.helpers import DEFAULT_PASSWORD, auth_headers
from zenmatrix_app import create_app, db
from zenmatrix_app.context import get_services
from zenmatrix_app.models import Task, User, UserRole

fake = Faker()


@pytest.fixture(scope="session")
def app():
    """
    Provide the Flask application instance for the entire test session.

    Created once with the 'testing' configuration and shared across tests.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """Provide a Flask test client scoped to a single test function."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test function.

    Creates all tables before the test, then rolls back any uncommitted
    changes and drops all tables afterwards.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture
def user_factory(db_session) -> Callable[..., User]:
    """
    Factory fixture that persists User rows.

    Emails default to unique Faker values so several users can be created
    in one test.
    """

    def _create_user(
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.USER,
    ) -> User:
        user = User(email=email or fake.unique.email(), role=role.value)
        user.set_password(password)
        db_session.session.add(user)
        db_session.session.commit()
        return user

    return _create_user


@pytest.fixture
def token_for(app) -> Callable[[User], str]:
    """Return a callable that issues a valid token for a persisted user."""

    def _token_for(user: User) -> str:
        return get_services().tokens.issue(user.id, user.role)

    return _token_for


@pytest.fixture
def test_user(user_factory) -> User:
    return user_factory(email="user_one@example.com")


@pytest.fixture
def second_user(user_factory) -> User:
    return user_factory(email="user_two@example.com")


@pytest.fixture
def admin_user(user_factory) -> User:
    return user_factory(email="admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
def api_headers(test_user, token_for) -> dict[str, str]:
    """Authorization + JSON headers for ``test_user``."""
    return auth_headers(token_for(test_user))


@pytest.fixture
def second_user_headers(second_user, token_for) -> dict[str, str]:
    """Authorization + JSON headers for ``second_user``."""
    return auth_headers(token_for(second_user))


@pytest.fixture
def admin_headers(admin_user, token_for) -> dict[str, str]:
    """Authorization + JSON headers for ``admin_user``."""
    return auth_headers(token_for(admin_user))


@pytest.fixture
def task_factory(db_session, test_user) -> Callable[..., Task]:
    """
    Factory fixture that creates Task rows in the test database.

    Tasks belong to ``test_user`` unless ``user_id`` is given.
    """

    def _create_task(
        *,
        user_id: int | None = None,
        titulo: str | None = None,
        descripcion: str | None = None,
        proyecto: str = "Apollo",
        responsable: str | None = None,
        prioridad: str = "Media",
        is_completed: bool = False,
        fecha_vencimiento: datetime | None = None,
    ) -> Task:
        task = Task(
            user_id=user_id if user_id is not None else test_user.id,
            titulo=titulo or fake.sentence(nb_words=4)[:100],
            descripcion=descripcion or fake.sentence(nb_words=8)[:150],
            proyecto=proyecto,
            responsable=responsable or fake.name(),
            prioridad=prioridad,
            is_completed=is_completed,
            fecha_vencimiento=fecha_vencimiento,
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def sample_task(task_factory) -> Task:
    """A single task owned by ``test_user`` with predictable values."""
    return task_factory(
        titulo="Sample Task",
        descripcion="This is a sample task for testing",
        proyecto="Apollo",
        responsable="Ana",
        prioridad="Alta",
    )


@pytest.fixture
def multiple_tasks(task_factory) -> list[Task]:
    """
    A varied set of four tasks owned by ``test_user``.

    Two are completed, two are high priority, three belong to project
    "Apollo" and one to "Gemini".
    """
    return [
        task_factory(
            titulo="Write release notes",
            descripcion="Summarise the sprint",
            proyecto="Apollo",
            prioridad="Alta",
            fecha_vencimiento=datetime.now(timezone.utc) + timedelta(days=1),
        ),
        task_factory(
            titulo="Review budget",
            descripcion="Quarterly numbers",
            proyecto="Apollo",
            prioridad="Media",
            is_completed=True,
        ),
        task_factory(
            titulo="Deploy staging",
            descripcion="Release candidate build",
            proyecto="Gemini",
            prioridad="Baja",
            is_completed=True,
        ),
        task_factory(
            titulo="Fix login bug",
            descripcion="Users cannot sign in",
            proyecto="Apollo Mobile",
            prioridad="Alta",
        ),
    ]


@pytest.fixture
def valid_task_data() -> dict[str, Any]:
    """A complete, valid task creation payload."""
    return {
        "proyecto": "Apollo",
        "responsable": "Ana",
        "titulo": "Test Task",
        "descripcion": "This is a test task description",
        "fechaVencimiento": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
        "prioridad": "Alta",
    }


@pytest.fixture
def minimal_task_data() -> dict[str, str]:
    """The smallest valid task payload (required fields only)."""
    return {
        "proyecto": "Apollo",
        "responsable": "Ana",
        "titulo": "Minimal Task",
        "prioridad": "Baja",
    }
