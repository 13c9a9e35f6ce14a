"""
bot_access.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, elevated DB URL, identity service key).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Enterprise pattern:
    - Strict env-driven configuration
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="BOT_ACCESS_", case_sensitive=False)

    # Environment controls toggle behavior like auto-init DB tables and dev tokens.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "bot-access"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth (identity provider tokens)
    jwt_alg: str = "HS256"
    jwt_issuer: str = "bot-access"
    jwt_audience: str = "bot-access-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence: the standard URL connects with a policy-filtered role.
    database_url: str = "sqlite+aiosqlite:///./bot_access.db"
    # Trusted credential that bypasses row-level policies. No default on purpose:
    # a missing value must surface as a configuration error.
    elevated_database_url: str | None = Field(default=None, repr=False)

    # Identity provider admin API (account shells for invitations).
    identity_admin_url: str | None = None
    identity_service_key: str | None = Field(default=None, repr=False)
    identity_timeout_seconds: float = 10.0
    invite_redirect_url: str = "http://localhost:3000/auth/accept-invite?type=invite"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Settings are cached; authorization results never are (see services.access_resolver).
