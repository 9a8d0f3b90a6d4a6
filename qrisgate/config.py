"""Application configuration utilities."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="Enable JSON formatted logs")


class RenderConfig(BaseModel):
    """Options handed to the PNG renderer; the codec never reads these."""

    error_correction: Literal["L", "M", "Q", "H"] = Field(default="H")
    box_size: int = Field(default=10, ge=1, le=40)
    border: int = Field(default=2, ge=0, le=10)
    fill_color: str = Field(default="#000000")
    back_color: str = Field(default="#FFFFFF")
    caption: str | None = Field(default="QRIS", description="Label drawn under the code; None disables it")


class Settings(BaseSettings):
    """Central application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="qrisgate")
    environment: Literal["development", "staging", "production"] = Field(default="development")
    api_key: str = Field(default="dev-secret-key")
    ttl_seconds: int = Field(default=300, ge=60, le=3600)
    database_url: str = Field(default="sqlite+aiosqlite:///./qrisgate.db")
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])
    mutation_feed_url: str = Field(default="https://gateway.okeconnect.com/api/mutasi/qris")
    settlement_timeout_seconds: float = Field(default=10.0, gt=0, le=10.0)
    unique_fee_enabled: bool = Field(default=True)
    fee_min: int = Field(default=1, ge=0)
    fee_max: int = Field(default=149, ge=0)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)

    @model_validator(mode="after")
    def _check_fee_range(self) -> "Settings":
        if self.fee_max < self.fee_min:
            raise ValueError("fee_max must be greater than or equal to fee_min")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return memoized application settings."""

    return Settings()


settings = get_settings()
