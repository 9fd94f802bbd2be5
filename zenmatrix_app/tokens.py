"""
JWT issuance and verification for the ZenMatrix Task API.

Tokens are HS256-signed JSON Web Tokens.  The same service both issues and
verifies them, so a single shared secret is enough.

Token structure (claims):
    - ``user_id`` -- integer primary key of the authenticated user.
    - ``role``    -- the user's role at issuance (``USER`` or ``ADMIN``).
    - ``iat``     -- issued-at timestamp (UTC epoch seconds).
    - ``exp``     -- expiration timestamp (UTC epoch seconds).

There is no revocation list: expiry is the only way a token stops working.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from .models import MAX_ROW_ID, UserRole

ALGORITHM = "HS256"
REQUIRED_TOKEN_CLAIMS = ["user_id", "role", "iat", "exp"]


class InvalidToken(Exception):
    """Raised when a token is malformed, tampered with, or expired."""


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a verified token."""

    user_id: int
    role: UserRole


class TokenService:
    """
    Issue and verify signed, time-bounded session tokens.

    Args:
        secret: Shared HMAC secret used for signing and verification.
        expiry: Lifetime of an issued token.
        leeway_seconds: Tolerance for clock differences when checking
            ``exp``.
    """

    def __init__(
        self,
        secret: str,
        expiry: timedelta = timedelta(hours=1),
        leeway_seconds: int = 30,
    ) -> None:
        if not secret:
            raise ValueError("secret must be a non-empty string")
        self._secret = secret
        self._expiry = expiry
        self._leeway = leeway_seconds

    def issue(self, user_id: int, role: UserRole | str, now: datetime | None = None) -> str:
        """
        Create a signed token for *user_id* holding *role*.

        Args:
            user_id: Primary key of the authenticated user.  Must be a
                positive integer.
            role: The user's role.
            now: Issuance time; defaults to the current UTC time.

        Returns:
            A compact JWS string suitable for an ``Authorization: Bearer``
            header.

        Raises:
            ValueError: If *user_id* is not positive or *role* is unknown.
        """
        if int(user_id) <= 0:
            raise ValueError("user_id must be a positive integer")
        role = UserRole(role)

        issued_at = now or datetime.now(timezone.utc)
        payload: dict[str, Any] = {
            "user_id": int(user_id),
            "role": role.value,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._expiry).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        """
        Decode and validate *token*.

        Checks the signature, the algorithm, expiry and the presence and
        types of every required claim.

        Returns:
            The identity carried by the token.

        Raises:
            InvalidToken: If any check fails.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={"require": REQUIRED_TOKEN_CLAIMS},
                leeway=self._leeway,
            )
        except jwt.InvalidTokenError as exc:
            raise InvalidToken(str(exc)) from exc

        user_id = payload.get("user_id")
        if (
            not isinstance(user_id, int)
            or isinstance(user_id, bool)
            or not 0 < user_id <= MAX_ROW_ID
        ):
            raise InvalidToken("Invalid user_id claim")
        try:
            role = UserRole(payload.get("role"))
        except ValueError as exc:
            raise InvalidToken("Invalid role claim") from exc
        return TokenClaims(user_id=user_id, role=role)
