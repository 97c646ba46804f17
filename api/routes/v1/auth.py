"""
api/routes/v1/auth.py -- Registration, login, and identity endpoints.

Routes:
  POST /api/v1/auth/register   -- create an account; 201
  POST /api/v1/auth/login      -- username/PIN login; returns a bearer token
  GET  /api/v1/auth/me         -- identity behind the current token (requires auth)

Security:
  [H2] register and login are rate-limited per client IP.
  [C1] auth.accounts.authenticate() provides timing equalization -- use it, never inline.
  [M5] Cache-Control: no-store on responses that carry a token.
  Wrong PIN and unknown user return the same 401 body (no username enumeration).

Handlers are plain `def`: bcrypt is CPU-bound, so FastAPI runs them in its
thread pool instead of blocking the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import limiter
from api.models import LoginRequest, LoginResponse, MeResponse, RegisterRequest, RegisterResponse
from auth import accounts
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import get_settings

router = APIRouter()


def _login_rate_limit() -> str:
    return get_settings().login_rate_limit


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@limiter.limit("5/minute")  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create an account with a username and PIN.

    409 duplicate_username if the name is taken. The PIN is hashed before it
    reaches the store and never echoed back.
    """
    user_store: UserStore = request.app.state.user_store
    user = accounts.register(user_store, body.username, body.pin, rounds=request.app.state.settings.bcrypt_rounds)
    return RegisterResponse(id=user.id, username=user.username, created_at=user.created_at or "")


@limiter.limit(_login_rate_limit)  # [H2] brute-force mitigation
@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with username and PIN; return a bearer token.

    InvalidCredentials propagates to the VaultError handler in api/main.py,
    which renders 401 invalid_credentials.
    """
    user_store: UserStore = request.app.state.user_store
    tokens: TokenService = request.app.state.tokens
    rounds = request.app.state.settings.bcrypt_rounds
    token = accounts.login(user_store, tokens, body.username, body.pin, rounds=rounds)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=token,
            token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
            expires_in=tokens.expire_seconds,
            username=body.username,
        ).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=MeResponse)
async def me(identity: Identity = Depends(get_current_identity)) -> MeResponse:
    """Return identity information carried by the current token."""
    return MeResponse(user_id=identity.user_id, username=identity.username)
