"""
API request and response models for EasyPass REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
vault/models.py, which own the internal domain representation. Route handlers
map between the two.

Input shape checks (lengths, required fields) live here. The core below
accepts any string, so this is the only place length policy is enforced.

PINs and passwords are never whitespace-stripped: a trailing space is part
of the secret.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from vault.models import SecretEntry

# ---------------------------------------------------------------------------
# Constrained types
# ---------------------------------------------------------------------------

_Label = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=200)]
_Pin = Annotated[str, Field(min_length=4, max_length=50)]
_Password = Annotated[str, Field(min_length=1, max_length=1024)]


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    username: _Label
    pin: _Pin


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    username: _Label
    pin: _Pin


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    created_at: str


class LoginResponse(BaseModel):
    """Response for POST /api/v1/auth/login.

    token_type is always "bearer"; clients send the token back as
    `Authorization: Bearer <access_token>`.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    username: str


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str


# ---------------------------------------------------------------------------
# Secrets
# ---------------------------------------------------------------------------


class SecretWrite(BaseModel):
    """Request body for POST /api/v1/secrets and PUT /api/v1/secrets/{id}.

    Update replaces all three fields, matching the create shape. id and owner
    are never accepted from the client.
    """

    model_config = ConfigDict(extra="forbid")

    service: _Label
    username: _Label
    password: _Password


class SecretResponse(BaseModel):
    """A saved login with its password decrypted.

    Ciphertext is never part of an API response.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    service: str
    username: str
    password: str
    created_at: str
    updated_at: str

    @classmethod
    def from_entry(cls, entry: SecretEntry) -> "SecretResponse":
        """Build a SecretResponse from a decrypted vault SecretEntry."""
        return cls(
            id=entry.id,
            service=entry.service,
            username=entry.username,
            password=entry.password,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


class GeneratedPasswordResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    password: str


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
