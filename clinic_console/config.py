from functools import lru_cache
from typing import List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(default="Clinic Back-Office Console")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    auth_service_base_url: AnyHttpUrl = Field(
        default="http://localhost:5000"
    )
    manager_service_base_url: AnyHttpUrl = Field(
        default="http://localhost:5001"
    )
    manager_service_token: str | None = Field(
        default=None
    )
    service_timeout: float = Field(
        default=10.0
    )
    operation_timeout: float = Field(
        default=30.0
    )
    use_mock_data: bool = Field(
        default=True
    )
    business_opening_hour: int = Field(
        default=8, ge=0, le=23
    )
    business_closing_hour: int = Field(
        default=18, ge=1, le=24
    )
    upcoming_appointments_limit: int = Field(
        default=5, ge=1
    )

    model_config = SettingsConfigDict(env_prefix="CLINIC_", case_sensitive=False)

    @field_validator("cors_origins", mode="before")
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()
