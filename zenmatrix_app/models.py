"""
Database Models for the ZenMatrix Task API.

Defines the SQLAlchemy ORM models for registered users and the tasks they
own.  Column names follow the task board's vocabulary (``proyecto``,
``responsable``, ``titulo`` ...) and ``to_dict`` emits the camelCase keys
used on the wire (``fechaVencimiento``, ``isCompleted`` ...).

Key Concepts:
- ``str, Enum`` roles that serialise directly to JSON
- Werkzeug password hashing; the hash is never serialised
- Store-level unique constraint on ``User.email``
- Timezone-aware datetime handling (UTC normalisation)
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db

# Matches VARCHAR(191), the longest indexable utf8mb4 column on MySQL.
MAX_TEXT_LENGTH = 191

# Largest value a signed 64-bit INTEGER column can hold.
MAX_ROW_ID = 2**63 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc_iso(value: datetime | None) -> str | None:
    """
    Convert a datetime to a UTC ISO-8601 string.

    SQLite does not store timezone information, so values read back from
    the database may be naive even though they were written in UTC.  Naive
    datetimes are assumed UTC; aware ones are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


class UserRole(str, Enum):
    """Roles a user may hold.  ``ADMIN`` bypasses task ownership checks."""

    USER = "USER"
    ADMIN = "ADMIN"


class User(db.Model):
    """
    Registered user.

    Attributes:
        id: Auto-incrementing primary key.
        email: Unique login identifier.  The unique index is what rejects
            concurrent duplicate registrations.
        password_hash: Werkzeug-generated hash of the user's password.
        role: One of ``UserRole``; new accounts are ``USER``.
        created_at: Timestamp of account creation (UTC).
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    email: str = db.Column(db.String(MAX_TEXT_LENGTH), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    role: str = db.Column(db.String(20), nullable=False, default=UserRole.USER.value)
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Return ``True`` if *password* matches the stored hash."""
        return check_password_hash(self.password_hash, password)

    def to_dict(self) -> dict[str, Any]:
        """Return a dictionary safe for API responses (no password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "createdAt": _to_utc_iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class Task(db.Model):
    """
    Task owned by a single user.

    Attributes:
        id: Auto-incrementing primary key.
        user_id: Owning user, copied from the authenticated identity at
            creation and never changed afterwards.
        proyecto: Project the task belongs to.
        responsable: Person responsible for the task.
        titulo: Short title.
        descripcion: Optional longer description.
        fecha_inicio: Start timestamp, defaults to creation time.
        fecha_vencimiento: Optional due date.
        fecha_terminada: Optional completion timestamp.
        prioridad: Free-form priority label.
        is_completed: Completion flag.
        created_at: Timestamp of task creation (UTC).
        updated_at: Timestamp of last modification (UTC, auto-updated).
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    # Every task query in the API layer filters by this column unless the
    # caller is an administrator.
    user_id: int | None = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    proyecto: str = db.Column(db.String(MAX_TEXT_LENGTH), nullable=False)
    responsable: str = db.Column(db.String(MAX_TEXT_LENGTH), nullable=False)
    titulo: str = db.Column(db.String(MAX_TEXT_LENGTH), nullable=False)
    descripcion: str | None = db.Column(db.String(MAX_TEXT_LENGTH), nullable=True)
    fecha_inicio: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    fecha_vencimiento: datetime | None = db.Column(db.DateTime(timezone=True), nullable=True)
    fecha_terminada: datetime | None = db.Column(db.DateTime(timezone=True), nullable=True)
    prioridad: str = db.Column(db.String(MAX_TEXT_LENGTH), nullable=False)
    is_completed: bool = db.Column(db.Boolean, nullable=False, default=False)
    created_at: datetime = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def apply_changes(self, changes: dict[str, Any]) -> None:
        """
        Assign the given column values to this task.

        When the task becomes completed and the caller did not supply a
        completion timestamp, the current time is recorded unless one is
        already present.

        Args:
            changes: Mapping of column attribute name to new value.  Only
                the keys present are touched.
        """
        for attribute, value in changes.items():
            setattr(self, attribute, value)

        if (
            changes.get("is_completed") is True
            and "fecha_terminada" not in changes
            and self.fecha_terminada is None
        ):
            self.fecha_terminada = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        """
        Serialise the task to a JSON-safe dictionary.

        Returns:
            A dictionary keyed by the wire field names with datetime values
            converted to UTC ISO-8601 strings.
        """
        return {
            "id": self.id,
            "userId": self.user_id,
            "proyecto": self.proyecto,
            "responsable": self.responsable,
            "titulo": self.titulo,
            "descripcion": self.descripcion,
            "fechaInicio": _to_utc_iso(self.fecha_inicio),
            "fechaVencimiento": _to_utc_iso(self.fecha_vencimiento),
            "fechaTerminada": _to_utc_iso(self.fecha_terminada),
            "prioridad": self.prioridad,
            "isCompleted": bool(self.is_completed),
            "createdAt": _to_utc_iso(self.created_at),
            "updatedAt": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.titulo}>"
