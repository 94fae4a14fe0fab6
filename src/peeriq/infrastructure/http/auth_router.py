"""FastAPI router for sign-in, current-user lookup and sign-out."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException

from peeriq.application.dto.auth_models import CurrentUserResponse, LoginRequest, LoginResponse
from peeriq.application.ports.auth_token_repository_port import (
    AuthTokenCreateInput,
    AuthTokenRepositoryPort,
)
from peeriq.application.services.auth_service import AuthOutcome, AuthService
from peeriq.infrastructure.http.auth_guard import (
    AuthenticatedCaller,
    ImportAuthGuard,
    InvalidAuthTokenError,
    MissingAuthTokenError,
)
from peeriq.infrastructure.security.token_service import OpaqueTokenService


def build_auth_router(
    *,
    auth_service: AuthService,
    auth_token_repository: AuthTokenRepositoryPort,
    token_service: OpaqueTokenService,
    auth_guard: ImportAuthGuard,
) -> APIRouter:
    """Build router exposing the session endpoints used by the import client."""

    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/login", response_model=LoginResponse)
    async def login(payload: LoginRequest) -> LoginResponse:
        result = await auth_service.authenticate(email=payload.email, password=payload.password)
        if result.outcome is AuthOutcome.UNCONFIRMED_EMAIL:
            raise HTTPException(status_code=403, detail="email not confirmed")
        if result.outcome is not AuthOutcome.SUCCESS or result.identity is None:
            raise HTTPException(status_code=401, detail="invalid credentials")

        token = token_service.generate_token()
        record = await auth_token_repository.create_token(
            AuthTokenCreateInput(
                identity_id=result.identity.identity_id,
                token_hash=token_service.hash_token(token),
                expires_at=token_service.expires_at(now=datetime.now(tz=UTC)),
            )
        )
        return LoginResponse(
            access_token=token,
            expires_at=record.expires_at,
            identity_id=result.identity.identity_id,
        )

    @router.get("/me", response_model=CurrentUserResponse)
    async def current_user(
        authorization: Annotated[str | None, Header()] = None,
    ) -> CurrentUserResponse:
        caller = await _resolve_caller(auth_guard=auth_guard, authorization_header=authorization)
        return CurrentUserResponse(
            id=caller.identity.identity_id,
            email=caller.identity.email,
            name=caller.profile.name if caller.profile is not None else None,
            role=caller.profile.role if caller.profile is not None else None,
        )

    @router.post("/logout", status_code=204)
    async def logout(authorization: Annotated[str | None, Header()] = None) -> None:
        caller = await _resolve_caller(auth_guard=auth_guard, authorization_header=authorization)
        await auth_token_repository.revoke_active_tokens_for_identity(
            identity_id=caller.identity.identity_id
        )

    return router


async def _resolve_caller(
    *,
    auth_guard: ImportAuthGuard,
    authorization_header: str | None,
) -> AuthenticatedCaller:
    try:
        return await auth_guard.resolve_caller(authorization_header=authorization_header)
    except (MissingAuthTokenError, InvalidAuthTokenError) as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
