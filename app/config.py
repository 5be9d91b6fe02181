"""Runtime settings, read from the environment and an optional ``.env`` file."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ASYNC_DRIVER_PREFIXES = (
    ("postgresql://", "postgresql+asyncpg://"),
    ("postgres://", "postgresql+asyncpg://"),
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "SchoolBridge"
    app_env: Literal["development", "staging", "production"] = "development"
    app_secret_key: str
    app_debug: bool = False
    app_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Always an async driver URL once loaded
    database_url: str
    database_pool_size: int = Field(20, ge=1)
    database_max_overflow: int = Field(10, ge=0)

    # Falls back to app_secret_key when unset
    jwt_secret_key: str | None = None
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = Field(1440, ge=1)

    import_max_rows: int = Field(10000, ge=1)
    import_min_suggestion_confidence: float = Field(0.4, gt=0, le=1)
    import_invitation_expiry_days: int = Field(30, ge=1)
    import_attendance_lookback_years: int = Field(3, ge=1)
    import_history_limit: int = Field(20, ge=1, le=100)
    import_commit_interval: int = Field(50, ge=1)
    import_max_upload_size_mb: int = Field(10, ge=1)

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, url: str) -> str:
        """Point bare PostgreSQL URLs at asyncpg."""
        for prefix, replacement in _ASYNC_DRIVER_PREFIXES:
            if url.startswith(prefix):
                return replacement + url[len(prefix):]
        return url

    @field_validator("app_log_level", mode="before")
    @classmethod
    def upper_log_level(cls, level: str) -> str:
        return level.upper() if isinstance(level, str) else level

    @property
    def effective_jwt_secret(self) -> str:
        return self.jwt_secret_key or self.app_secret_key

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def import_max_upload_size_bytes(self) -> int:
        return self.import_max_upload_size_mb * 1024 * 1024


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
