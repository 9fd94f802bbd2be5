"""Test helper functions shared by the test suites."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

TEST_JWT_SECRET = "test-jwt-secret-key-for-local-tests-123456"
DEFAULT_PASSWORD = "StrongPass123!"


def create_test_token(
    user_id: int,
    role: str = "USER",
    secret: str = TEST_JWT_SECRET,
    expired: bool = False,
) -> str:
    """Create a signed HS256 test token with the required claims."""
    now = datetime.now(timezone.utc)
    if expired:
        issued_at = now - timedelta(hours=2)
    else:
        issued_at = now
    payload: dict[str, Any] = {
        "user_id": int(user_id),
        "role": role,
        "iat": int(issued_at.timestamp()),
        "exp": int((issued_at + timedelta(hours=1)).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(token: str) -> dict[str, str]:
    """Build common JSON API headers with bearer token auth."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
