"""Pydantic models for sign-in and current-user endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from peeriq.application.dto.import_models import StrictModel
from peeriq.domain.auth.roles import Role


class LoginRequest(StrictModel):
    """Email and password submitted at sign-in."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class LoginResponse(StrictModel):
    """Bearer session issued after a successful sign-in."""

    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    identity_id: UUID


class CurrentUserResponse(StrictModel):
    """Signed-in identity as seen by the client."""

    id: UUID
    email: str
    name: str | None = None
    role: Role | None = None
