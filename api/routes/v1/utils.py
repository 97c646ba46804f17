"""
api/routes/v1/utils.py -- Stateless helper endpoints.

Routes:
  GET /utils/generate-password?length=12&symbols=true -- random password suggestion

Public (no token needed) so the registration screen can use it, but
rate-limited. Out-of-range lengths are clamped, not rejected.
"""

from fastapi import APIRouter, Query, Request

from api.limiter import limiter
from api.models import GeneratedPasswordResponse
from vault.generator import generate_password

router = APIRouter()


@limiter.limit("30/minute")
@router.get("/utils/generate-password", response_model=GeneratedPasswordResponse)
async def generate(
    request: Request,
    length: int = Query(default=12),
    symbols: bool = Query(default=True),
) -> GeneratedPasswordResponse:
    """Return a cryptographically random password."""
    return GeneratedPasswordResponse(password=generate_password(length, use_symbols=symbols))
