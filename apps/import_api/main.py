"""import-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

import uvicorn
from fastapi import FastAPI

from peeriq.application.ports.profile_repository_port import ProfileRepositoryPort
from peeriq.application.services.admin_bootstrap_service import (
    AdminBootstrapService,
    resolve_admin_bootstrap_config,
)
from peeriq.application.services.auth_service import AuthService
from peeriq.application.services.user_import_service import UserImportService
from peeriq.config.settings import Settings, load_settings
from peeriq.infrastructure.db.auth_token_repository import SqlAlchemyAuthTokenRepository
from peeriq.infrastructure.db.identity_repository import SqlAlchemyIdentityRepository
from peeriq.infrastructure.db.profile_repository import SqlAlchemyProfileRepository
from peeriq.infrastructure.db.session import create_session_factory
from peeriq.infrastructure.http.auth_guard import ImportAuthGuard
from peeriq.infrastructure.http.auth_router import build_auth_router
from peeriq.infrastructure.http.import_router import build_import_router
from peeriq.infrastructure.logging import configure_logging
from peeriq.infrastructure.security.password_hasher import BcryptPasswordHasher
from peeriq.infrastructure.security.token_service import OpaqueTokenService

IMPORT_API_HOST = "0.0.0.0"
IMPORT_API_PORT = 8000
logger = logging.getLogger(__name__)


def create_app(
    *,
    settings: Settings | None = None,
    token_service: OpaqueTokenService | None = None,
    profile_repository: ProfileRepositoryPort | None = None,
) -> FastAPI:
    """Create FastAPI app exposing the import endpoint and session routes."""

    if settings is None:
        settings = load_settings()
        configure_logging(level=settings.log_level)

    if token_service is None:
        token_service = OpaqueTokenService(ttl=timedelta(hours=settings.auth_token_ttl_hours))

    session_factory = create_session_factory(settings.database_url)
    password_hasher = BcryptPasswordHasher()
    identity_repository = SqlAlchemyIdentityRepository(
        session_factory,
        default_avatar_url=settings.default_avatar_url,
    )
    if profile_repository is None:
        profile_repository = SqlAlchemyProfileRepository(session_factory)
    auth_token_repository = SqlAlchemyAuthTokenRepository(session_factory)

    auth_guard = ImportAuthGuard(
        token_service=token_service,
        auth_token_repository=auth_token_repository,
        identity_repository=identity_repository,
        profile_repository=profile_repository,
    )
    import_service = UserImportService(
        caller_resolver=auth_guard,
        identities=identity_repository,
        profiles=profile_repository,
        default_avatar_url=settings.default_avatar_url,
        propagation_delay_seconds=settings.profile_propagation_delay_seconds,
    )
    auth_service = AuthService(identities=identity_repository, password_hasher=password_hasher)

    admin_bootstrap = AdminBootstrapService(
        identities=identity_repository,
        profiles=profile_repository,
        password_hasher=password_hasher,
        default_avatar_url=settings.default_avatar_url,
    )
    bootstrap_config = resolve_admin_bootstrap_config(
        email=settings.bootstrap_admin_email,
        password=settings.bootstrap_admin_password,
        password_file=settings.bootstrap_admin_password_file,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        if bootstrap_config is not None:
            result = await admin_bootstrap.ensure_initial_admin(bootstrap_config)
            logger.info(
                "admin_bootstrap_result outcome=%s email=%s",
                result.outcome.value,
                result.email,
            )
        yield

    app = FastAPI(title="PeerIQ user import", lifespan=lifespan)
    app.include_router(build_import_router(import_service=import_service))
    app.include_router(
        build_auth_router(
            auth_service=auth_service,
            auth_token_repository=auth_token_repository,
            token_service=token_service,
            auth_guard=auth_guard,
        )
    )
    return app


def run_asgi_server(*, host: str = IMPORT_API_HOST, port: int = IMPORT_API_PORT) -> None:
    """Run import-api as a long-lived ASGI process using application factory mode."""

    uvicorn.run(
        "apps.import_api.main:create_app",
        host=host,
        port=port,
        factory=True,
    )


def main() -> None:
    """Run import-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
