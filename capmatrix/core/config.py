"""Application configuration."""

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Capability Matrix Backend"
    app_env: str = "development"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    database_url: str = "sqlite+pysqlite:///./capmatrix.db"
    # Creates the slot table on startup; deployments managed by alembic can turn it off.
    database_auto_create: bool = True

    export_filename_prefix: str = "capability-matrix"
    # Fixed seed makes id and color minting reproducible (tests, demos).
    random_seed: int | None = None

    summary_api_key: str | None = None
    summary_model: str = "gpt-4o-mini"
    summary_base_url: str | None = None
    summary_timeout_seconds: float = Field(default=30.0, gt=0)

    # Keep .env support for comma-separated values (non-JSON).
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("summary_api_key", "summary_base_url", mode="before")
    @classmethod
    def blank_as_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""

    return Settings()
