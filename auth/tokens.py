"""
auth/tokens.py -- Bearer token issue and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       user_id, username (sub), issuer, audience, issued-at and expiry.
       The wire form is the standard compact header.payload.signature, each
       segment base64url-encoded, so any JWT library can validate it.

  Verification recomputes the HMAC (python-jose compares in constant time)
       and checks iss and aud. exp is compared with the injected clock, not
       python-jose's wall clock. Every failure raises Unauthenticated with
       the same message; the reason is logged at DEBUG only.

  No server-side session table: a token is valid exactly as long as its
       signature and exp say so.

  Configuration is passed in at construction. The signing key is read once
  and held privately; nothing here reads settings at import time.

Layer rule: no imports from api/ or vault/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import JWTError, jwt

from auth.models import Identity
from core.errors import Unauthenticated

if TYPE_CHECKING:
    from core.config import Settings

logger = logging.getLogger("easypass.auth")

_ALGORITHM = "HS256"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed access tokens.

    Usage:
        tokens = TokenService(get_settings())
        token = tokens.issue(user.id, user.username)
        identity = tokens.verify(token)   # raises Unauthenticated on failure

    clock is injectable and is the only notion of "now": issue() stamps iat
    and exp from it and verify() checks exp against it, so tests can move
    time without sleeping.
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = _utcnow) -> None:
        self._secret_key = settings.secret_key
        self.issuer = settings.token_issuer
        self.audience = settings.token_audience
        self.expire_seconds = settings.token_expire_seconds
        self._clock = clock

    def __repr__(self) -> str:
        return f"TokenService(issuer={self.issuer!r}, audience={self.audience!r})"

    def issue(self, user_id: int, username: str) -> str:
        """Encode a signed JWT for user_id/username, valid for expire_seconds."""
        now = self._clock()
        payload = {
            "sub": username,
            "user_id": user_id,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": now + timedelta(seconds=self.expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> Identity:
        """Decode and validate a JWT. Returns the Identity it carries.

        Raises Unauthenticated on a bad signature, malformed token, wrong
        issuer or audience, expiry, or missing identity claims.
        """
        if not token:
            raise Unauthenticated()
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                # exp is checked below against self._clock so issue and verify agree on "now".
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise Unauthenticated() from exc

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise Unauthenticated()
        if exp <= self._clock().timestamp():
            logger.debug("Token rejected: expired")
            raise Unauthenticated()

        user_id = payload.get("user_id")
        username = payload.get("sub")
        # bool is an int subclass; reject it explicitly
        if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
            raise Unauthenticated()
        if not isinstance(username, str) or not username:
            raise Unauthenticated()
        return Identity(
            user_id=user_id,
            username=username,
            issued_at=payload.get("iat"),
            expires_at=payload.get("exp"),
        )
