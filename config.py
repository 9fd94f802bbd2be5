"""
Configuration Classes for the ZenMatrix Task API.

Centralises all environment-dependent settings (database URI, JWT signing
secret, pagination limits) into a hierarchy of configuration classes.  The
base ``Config`` class defines development defaults, while subclasses
override only what differs per environment.

The JWT signing secret is resolved separately by ``load_jwt_secret`` so that
production refuses to start without one instead of silently falling back to
a well-known development value.
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


def _load_secret(raw_env_var: str, path_env_var: str) -> str:
    """Load a secret from direct env content or from a path env variable."""
    raw_secret = os.environ.get(raw_env_var, "").strip()
    if raw_secret:
        return raw_secret

    secret_path = os.environ.get(path_env_var, "").strip()
    if secret_path:
        try:
            return Path(secret_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise RuntimeError(
                f"Unable to read JWT secret file at '{secret_path}' from {path_env_var}."
            ) from exc

    raise RuntimeError(
        f"Missing JWT secret configuration: set {raw_env_var} or {path_env_var}."
    )


def _has_secret_source(raw_env_var: str, path_env_var: str) -> bool:
    """Return True when at least one secret source variable is configured."""
    return bool(
        os.environ.get(raw_env_var, "").strip()
        or os.environ.get(path_env_var, "").strip()
    )


def load_jwt_secret(*, testing: bool, default: str | None = None) -> str:
    """
    Resolve the HS256 signing secret for the selected environment.

    In testing mode the ``TEST_JWT_SECRET_KEY`` / ``TEST_JWT_SECRET_KEY_PATH``
    variables win when configured.  Otherwise the standard ``JWT_SECRET_KEY``
    variables are consulted, and ``default`` is only used when neither is
    set.  Production configuration has no default, so a missing secret
    raises ``RuntimeError`` at startup.
    """
    if testing and _has_secret_source("TEST_JWT_SECRET_KEY", "TEST_JWT_SECRET_KEY_PATH"):
        return _load_secret("TEST_JWT_SECRET_KEY", "TEST_JWT_SECRET_KEY_PATH")
    if _has_secret_source("JWT_SECRET_KEY", "JWT_SECRET_KEY_PATH") or not default:
        return _load_secret("JWT_SECRET_KEY", "JWT_SECRET_KEY_PATH")
    return default


class Config:
    """
    Base configuration with development-safe defaults.

    Attributes:
        SECRET_KEY: Flask session signing key.
        SQLALCHEMY_TRACK_MODIFICATIONS: Disabled to save memory.
        SQLALCHEMY_DATABASE_URI: Database connection string (default: local
            SQLite file).
        DEFAULT_JWT_SECRET_KEY: Fallback signing secret, ``None`` when the
            environment must supply one.
        JWT_EXPIRY_HOURS: Lifetime of an issued token.
        JWT_CLOCK_SKEW_SECONDS: Allowed clock drift when validating ``exp``.
        TASKS_DEFAULT_PAGE_SIZE: Page size when ``limit`` is not supplied.
        TASKS_MAX_PAGE_SIZE: Upper bound applied to ``limit``.
        PORT: Listen port for the development server.
        CORS_ORIGINS: Origins allowed to call the API from a browser.
    """

    SECRET_KEY: str = os.environ.get(
        "SECRET_KEY", "zenmatrix-dev-secret-change-in-production"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'zenmatrix.db'}",
    )

    DEFAULT_JWT_SECRET_KEY: str | None = "zenmatrix-dev-jwt-secret-change-in-production"
    JWT_EXPIRY_HOURS: int = 1
    # Tolerate minor clock differences between issuer and verifier.
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "30"))

    TASKS_DEFAULT_PAGE_SIZE: int = 10
    TASKS_MAX_PAGE_SIZE: int = int(os.environ.get("TASKS_MAX_PAGE_SIZE", "100"))

    PORT: int = int(os.environ.get("PORT", "5000"))

    # Comma-separated list of allowed browser origins for /api/*.
    CORS_ORIGINS: list[str] = [
        origin.strip() for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    ]


class DevelopmentConfig(Config):
    """
    Development environment configuration.

    Enables debug mode for auto-reloading and verbose error pages.
    """

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Testing environment configuration.

    Uses an isolated SQLite database so that tests do not pollute
    development data.  ``check_same_thread=False`` lets the Flask test
    client share the connection with fixtures running on another thread.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_zenmatrix.db'}?check_same_thread=False",
    )
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}
    DEFAULT_JWT_SECRET_KEY: str | None = "test-jwt-secret-key-for-local-tests-123456"


class ProductionConfig(Config):
    """
    Production environment configuration.

    Disables debug mode and drops the JWT secret default: the secret must
    come from ``JWT_SECRET_KEY`` or ``JWT_SECRET_KEY_PATH``.
    """

    DEBUG: bool = False
    TESTING: bool = False
    DEFAULT_JWT_SECRET_KEY: str | None = None


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Look up and return the configuration class for the given environment.

    Args:
        env: Environment name (``"development"``, ``"testing"``,
            ``"production"``).  When ``None``, falls back to the
            ``FLASK_ENV`` environment variable, defaulting to
            ``"development"``.

    Returns:
        The configuration class (not an instance) corresponding to the
        requested environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
