"""
auth/dependencies.py -- FastAPI Depends() helper that guards protected routes.

get_current_identity() is the single enforcement point: it pulls the token
from the `Authorization: Bearer <token>` header, verifies it with the
TokenService on app.state, and returns the Identity. Anything else (missing
header, another scheme, bad signature, expired, wrong issuer/audience) is a
401 and the route body never runs.

The vault layer below trusts the user_id it is handed. Routes must take the
identity from this dependency and pass identity.user_id explicitly; nothing
reads the caller from ambient state.

Layer rule: may import from fastapi because this module is part of the
FastAPI dependency injection system. No imports from vault/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import Identity
from auth.tokens import TokenService
from core.errors import Unauthenticated

_UNAUTHORIZED_DETAIL = {"code": "unauthorized", "message": "Authentication required."}


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_identity(request: Request) -> Identity:
    """Require a valid bearer token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/secrets")
        def route(identity: Identity = Depends(get_current_identity)): ...

    The identity is also stored on request.state.identity for middleware and
    logging.
    """
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail=_UNAUTHORIZED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        )
    tokens: TokenService = request.app.state.tokens
    try:
        identity = tokens.verify(token)
    except Unauthenticated as exc:
        raise HTTPException(
            status_code=401,
            detail=_UNAUTHORIZED_DETAIL,
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    request.state.identity = identity
    return identity
