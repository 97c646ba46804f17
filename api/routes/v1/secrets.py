"""
api/routes/v1/secrets.py -- Saved-login CRUD and search for the current user.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /secrets                    -- list the caller's entries
  POST   /secrets                    -- create an entry; 201
  GET    /secrets/search?service=... -- case-insensitive service search
  GET    /secrets/{secret_id}        -- one entry
  PUT    /secrets/{secret_id}        -- replace service/username/password
  DELETE /secrets/{secret_id}        -- delete; 204

Every handler takes the caller from get_current_identity() and passes
identity.user_id to SecretService explicitly. There is no route that accepts
an owner id from the client.

IDOR guard: the store's WHERE clause requires both id and owner_id to match,
so another user's entry answers 404, the same as a missing one. 403 is never
used here because it would confirm the id exists.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from api.models import SecretResponse, SecretWrite
from auth.dependencies import get_current_identity
from auth.models import Identity
from vault.service import SecretService

router = APIRouter()


def _service(request: Request) -> SecretService:
    return request.app.state.secrets


# ---------------------------------------------------------------------------
# GET /secrets
# ---------------------------------------------------------------------------


@router.get("/secrets", response_model=list[SecretResponse])
def list_secrets(
    request: Request,
    identity: Identity = Depends(get_current_identity),
) -> list[SecretResponse]:
    """Return all of the caller's entries with passwords decrypted."""
    return [SecretResponse.from_entry(e) for e in _service(request).list(identity.user_id)]


# ---------------------------------------------------------------------------
# POST /secrets
# ---------------------------------------------------------------------------


@router.post("/secrets", response_model=SecretResponse, status_code=201)
def create_secret(
    request: Request,
    body: SecretWrite,
    identity: Identity = Depends(get_current_identity),
) -> SecretResponse:
    """Encrypt and store a new entry owned by the caller."""
    entry = _service(request).create(identity.user_id, body.service, body.username, body.password)
    return SecretResponse.from_entry(entry)


# ---------------------------------------------------------------------------
# GET /secrets/search (must be before /secrets/{secret_id})
# ---------------------------------------------------------------------------


@router.get("/secrets/search", response_model=list[SecretResponse])
def search_secrets(
    request: Request,
    service: str = Query(min_length=1, max_length=200),
    identity: Identity = Depends(get_current_identity),
) -> list[SecretResponse]:
    """Case-insensitive substring search on the service name.

    No match is reported as 404 not_found_or_empty so clients can show a
    "nothing found" state without inspecting the body.
    """
    results = _service(request).search_by_service(identity.user_id, service)
    if not results:
        raise HTTPException(
            status_code=404,
            detail={"code": "not_found_or_empty", "message": "No passwords found for that service."},
        )
    return [SecretResponse.from_entry(e) for e in results]


# ---------------------------------------------------------------------------
# /secrets/{secret_id}
# ---------------------------------------------------------------------------


@router.get("/secrets/{secret_id}", response_model=SecretResponse)
def get_secret(
    request: Request,
    secret_id: int,
    identity: Identity = Depends(get_current_identity),
) -> SecretResponse:
    return SecretResponse.from_entry(_service(request).get(identity.user_id, secret_id))


@router.put("/secrets/{secret_id}", response_model=SecretResponse)
def update_secret(
    request: Request,
    secret_id: int,
    body: SecretWrite,
    identity: Identity = Depends(get_current_identity),
) -> SecretResponse:
    """Replace an entry's service, username and password (re-encrypted)."""
    entry = _service(request).update(identity.user_id, secret_id, body.service, body.username, body.password)
    return SecretResponse.from_entry(entry)


@router.delete("/secrets/{secret_id}", status_code=204)
def delete_secret(
    request: Request,
    secret_id: int,
    identity: Identity = Depends(get_current_identity),
) -> Response:
    _service(request).delete(identity.user_id, secret_id)
    return Response(status_code=204)
