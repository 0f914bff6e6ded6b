"""Centralized company-scope configuration via environment variables."""

from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(StrEnum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class Settings(BaseSettings):
    """Company-scope settings loaded from ``COMPANY_SCOPE_*`` variables.

    ``environment`` only selects the log format. Falling back to the
    default company is controlled exclusively by ``bootstrap_mode``.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMPANY_SCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- App ---
    environment: Environment = Environment.DEVELOPMENT
    log_level: str = "INFO"
    enabled: bool = True

    # --- Resolution ---
    bootstrap_mode: bool = False
    default_company_key: str = "DEFAULT"
    matcher: Literal["subdomain", "header"] = "subdomain"
    company_header: str = "X-Company"
    exempt_paths: list[str] = ["/health", "/docs", "/openapi.json", "/redoc"]

    # --- Directory cache ---
    cache_ttl_seconds: float = Field(default=300.0, ge=0)
    not_found_ttl_seconds: float = Field(default=60.0, ge=0)
    cache_purge_interval_seconds: float = Field(default=300.0, gt=0)

    # --- Violations ---
    wrong_company_path: str = "/wrong-company"

    # --- PostgreSQL ---
    postgres_user: str = "company_scope"
    postgres_password: SecretStr = SecretStr("secret")
    postgres_db: str = "company_scope"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    @computed_field  # type: ignore[prop-decorator]
    @property
    def database_url(self) -> str:
        """Assemble the async database URL from components."""
        password = self.postgres_password.get_secret_value()
        return (
            f"postgresql+psycopg://{self.postgres_user}:{password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_prod(self) -> bool:
        return self.environment == Environment.PRODUCTION


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
