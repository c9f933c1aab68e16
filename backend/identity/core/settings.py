from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: Literal["local", "test", "staging", "prod"] = "local"
    web_base_url: str = "http://localhost:5173"
    allowed_origins: str = ""
    allowed_hosts: str = ""

    cookie_secure: bool = False

    database_url: str

    auth0_domain: str = ""
    auth0_client_id: str = ""
    identity_provider_timeout_seconds: float = 10.0

    # Upper bound on ids accepted by /users-info.
    max_users_info_batch: int = 20

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]


def is_local(settings: Settings) -> bool:
    return settings.app_env == "local"


def parse_allowed_origins(settings: Settings) -> list[str]:
    if settings.allowed_origins.strip():
        origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
        if "*" in origins:
            # Credentialed CORS cannot be combined with a wildcard origin.
            raise ValueError("ALLOWED_ORIGINS must list explicit origins, not '*'")
        return origins
    # Default to common local dev origins.
    return list({settings.web_base_url, "http://localhost:5173", "http://127.0.0.1:5173"})


def parse_allowed_hosts(settings: Settings) -> list[str]:
    if settings.allowed_hosts.strip():
        return [h.strip() for h in settings.allowed_hosts.split(",") if h.strip()]
    # Default for local dev + tests.
    return ["localhost", "127.0.0.1", "testserver"]
