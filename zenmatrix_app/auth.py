"""
Bearer-token authentication for protected endpoints.

``require_auth`` walks every request through three states:

1. no usable ``Authorization: Bearer`` header -> ``Unauthenticated`` (401)
2. token present but rejected by ``TokenService.verify`` -> ``Forbidden`` (403)
3. token valid but the user no longer exists -> ``NotFound`` (404)

Only then is the resolved ``Identity`` stored on ``flask.g`` and the view
invoked.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import wraps

from flask import g, request

from .context import get_services
from .errors import Forbidden, NotFound, Unauthenticated
from .models import UserRole
from .tokens import InvalidToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller attached to the request context."""

    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN


def extract_bearer_token(auth_header: str | None) -> str | None:
    """
    Return the token from an ``Authorization: Bearer <token>`` header.

    Returns ``None`` if the header is absent, uses another scheme, or
    carries an empty token.
    """
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def require_auth(view_func: Callable):
    """
    Decorator that enforces Bearer-token authentication on API endpoints.

    On success ``g.identity``, ``g.user_id`` and ``g.role`` hold the caller.
    The role comes from the stored user record, so a role change takes
    effect without waiting for the token to expire.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token is None:
            raise Unauthenticated()

        services = get_services()
        try:
            claims = services.tokens.verify(token)
        except InvalidToken as exc:
            logger.warning("Token rejected: %s", exc)
            raise Forbidden() from None

        user = services.users.get(claims.user_id)
        if user is None:
            logger.warning("Token for unknown user_id=%s", claims.user_id)
            raise NotFound("User not found")

        g.identity = Identity(user_id=user.id, role=UserRole(user.role))
        g.user_id = g.identity.user_id
        g.role = g.identity.role
        return view_func(*args, **kwargs)

    return wrapper
