"""
Inventory API — Application Configuration
All settings loaded from environment variables via pydantic-settings.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Database ──────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # ── Auth ──────────────────────────────────────────────────────────────────
    # Empty string means "not configured"; the app factory refuses to start.
    JWT_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "inventory-api"
    JWT_AUDIENCE: str = "inventory-clients"
    JWT_EXPIRY_MINUTES: int = 60
    JWT_LOGIN_EXPIRY_MINUTES: int = 60

    # ── Bootstrap data ────────────────────────────────────────────────────────
    SEED_ON_STARTUP: bool = False
    BOOTSTRAP_ADMIN_NAME: str = "Administrator"
    BOOTSTRAP_ADMIN_EMAIL: str = "admin@supermercado.com"
    BOOTSTRAP_ADMIN_PASSWORD: str = "Admin123!"

    # ── Application Settings ──────────────────────────────────────────────────
    ENVIRONMENT: str = "development"  # development | staging | production
    APP_TITLE: str = "Supermarket Inventory API"
    APP_VERSION: str = "1.0.0"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    LOG_LEVEL: str = "INFO"

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v

    @field_validator("JWT_EXPIRY_MINUTES", "JWT_LOGIN_EXPIRY_MINUTES")
    @classmethod
    def validate_expiry(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token lifetime must be a positive number of minutes")
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton, read once at process start."""
    return Settings()
