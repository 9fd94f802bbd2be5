"""
ZenMatrix Task API Flask Application Factory.

Provides the ``create_app`` factory function that assembles the service.
The factory pattern allows multiple application instances with different
configurations (development, testing, production) to coexist in the same
process, which the test-suite relies on.

The service registers three blueprints:
  * **views_bp** -- the plain-text banner at ``/``.
  * **accounts_bp** -- registration and login under ``/api``.
  * **api_bp** -- task CRUD and health-check under ``/api``.

Each application owns a ``ServiceContext`` (token service and
repositories) stored in ``app.extensions``; handlers look it up through
``current_app`` instead of importing module-level singletons.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy

from config import get_config, load_jwt_secret


db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if sqlite_path == ":memory:":
        return

    db_parent = Path(sqlite_path).parent
    db_parent.mkdir(parents=True, exist_ok=True)


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the task API application.

    Instantiates the Flask app, loads the configuration object, resolves the
    JWT signing secret, initialises SQLAlchemy, builds the per-app service
    context, registers blueprints, error handlers and CLI commands, and
    ensures that all database tables exist.

    Args:
        config_name: Optional configuration environment name
            (``"development"``, ``"testing"``, ``"production"``).  When *None*,
            the value is read from the ``FLASK_ENV`` environment variable,
            defaulting to ``"development"``.

    Returns:
        A fully configured Flask application instance ready to serve requests.

    Raises:
        RuntimeError: If no JWT secret is available for the environment.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.config["JWT_SECRET_KEY"] = load_jwt_secret(
        testing=bool(app.config.get("TESTING")),
        default=config_class.DEFAULT_JWT_SECRET_KEY,
    )

    logger.info("Creating ZenMatrix app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    from .cli import register_commands
    from .context import init_services
    from .errors import register_error_handlers
    from .routes.accounts import accounts_bp
    from .routes.api import api_bp
    from .routes.views import views_bp

    init_services(app)
    register_error_handlers(app)
    register_commands(app)

    app.register_blueprint(views_bp)
    app.register_blueprint(accounts_bp, url_prefix="/api")
    app.register_blueprint(api_bp, url_prefix="/api")

    with app.app_context():
        db.create_all()
        logger.info("ZenMatrix database tables created")

    return app
