from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "Project Dashboard"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Security
    log_owner_ids: bool = True  # Disable to keep owner identities out of logs

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Redis (optional - reports are read straight from the store without it)
    redis_url: str | None = None  # e.g., "redis://localhost:6379/0"
    redis_pool_size: int = 10

    # Report projection cache
    report_cache_prefix: str = "financial_reports"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    @field_validator("report_cache_prefix")
    @classmethod
    def validate_report_cache_prefix(cls, v: str) -> str:
        v = v.strip().strip(":")
        if not v:
            raise ValueError("REPORT_CACHE_PREFIX cannot be empty")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
