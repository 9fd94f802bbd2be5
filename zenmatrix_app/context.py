"""Per-application service wiring."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from flask import Flask, current_app

from . import db
from .repositories import TaskRepository, UserRepository
from .tokens import TokenService

EXTENSION_KEY = "zenmatrix"


@dataclass
class ServiceContext:
    """Collaborators the request handlers depend on."""

    tokens: TokenService
    users: UserRepository
    tasks: TaskRepository
    default_page_size: int
    max_page_size: int


def init_services(app: Flask) -> ServiceContext:
    """Build the service context from *app*'s configuration and attach it."""
    services = ServiceContext(
        tokens=TokenService(
            app.config["JWT_SECRET_KEY"],
            expiry=timedelta(hours=int(app.config["JWT_EXPIRY_HOURS"])),
            leeway_seconds=int(app.config.get("JWT_CLOCK_SKEW_SECONDS", 30)),
        ),
        users=UserRepository(db.session),
        tasks=TaskRepository(db.session),
        default_page_size=int(app.config["TASKS_DEFAULT_PAGE_SIZE"]),
        max_page_size=int(app.config["TASKS_MAX_PAGE_SIZE"]),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> ServiceContext:
    """Return the service context of the application handling the request."""
    return current_app.extensions[EXTENSION_KEY]
