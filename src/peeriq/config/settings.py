"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from peeriq.application.ports.profile_repository_port import DEFAULT_AVATAR_URL

NonEmptyStr = Annotated[str, Field(min_length=1)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]
PositiveInt = Annotated[int, Field(gt=0)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(
        default="sqlite+aiosqlite:///./peeriq.db",
        validation_alias="DATABASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    import_backend_mode: Literal["live", "simulated"] = Field(
        default="live",
        validation_alias="IMPORT_BACKEND_MODE",
    )
    import_service_url: HttpUrl = Field(
        default="http://localhost:8000",
        validate_default=True,
        validation_alias="IMPORT_SERVICE_URL",
    )
    import_simulated_delay_seconds: NonNegativeFloat = Field(
        default=2.0,
        validation_alias="IMPORT_SIMULATED_DELAY_SECONDS",
    )
    import_http_timeout_seconds: NonNegativeFloat = Field(
        default=60.0,
        validation_alias="IMPORT_HTTP_TIMEOUT_SECONDS",
    )
    profile_propagation_delay_seconds: NonNegativeFloat = Field(
        default=0.1,
        validation_alias="PROFILE_PROPAGATION_DELAY_SECONDS",
    )
    default_avatar_url: NonEmptyStr = Field(
        default=DEFAULT_AVATAR_URL,
        validation_alias="DEFAULT_AVATAR_URL",
    )
    auth_token_ttl_hours: PositiveInt = Field(default=12, validation_alias="AUTH_TOKEN_TTL_HOURS")
    access_token: NonEmptyStr | None = Field(default=None, validation_alias="PEERIQ_ACCESS_TOKEN")
    bootstrap_admin_email: NonEmptyStr | None = Field(
        default=None,
        validation_alias="BOOTSTRAP_ADMIN_EMAIL",
    )
    bootstrap_admin_password: NonEmptyStr | None = Field(
        default=None,
        validation_alias="BOOTSTRAP_ADMIN_PASSWORD",
    )
    bootstrap_admin_password_file: NonEmptyStr | None = Field(
        default=None,
        validation_alias="BOOTSTRAP_ADMIN_PASSWORD_FILE",
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()
