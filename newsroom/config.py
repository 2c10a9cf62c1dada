"""
Newsroom - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: No secrets are hardcoded. The two token secrets have no defaults,
so the service refuses to start until both are provided.
"""

from typing import List, Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        ACCESS_TOKEN_SECRET: HMAC key for access tokens
        REFRESH_TOKEN_SECRET: HMAC key for refresh tokens (must differ)
        ACCESS_TOKEN_EXPIRE_MINUTES: Access token lifetime
        REFRESH_TOKEN_EXPIRE_DAYS: Refresh token lifetime
        BCRYPT_WORK_FACTOR: bcrypt cost for new password digests
        DATABASE_URL: SQLAlchemy URL (SQLite for development)
        COOKIE_SAMESITE: SameSite attribute for the token cookies
        ALLOWED_ORIGINS: CORS allowed origins for the frontend
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_ENV: Literal["development", "production", "test"] = "development"
    LOG_LEVEL: str = "INFO"
    API_V1_PREFIX: str = "/api/v1"

    # Token signing
    ACCESS_TOKEN_SECRET: str
    REFRESH_TOKEN_SECRET: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10

    # Password hashing
    BCRYPT_WORK_FACTOR: int = 10

    # Database (PostgreSQL for production, SQLite for development)
    DATABASE_URL: str = "sqlite:///./newsroom.db"

    # Cookies and CORS
    COOKIE_SAMESITE: Literal["strict", "lax", "none"] = "strict"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:5173"]

    @field_validator("ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET")
    @classmethod
    def secret_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("token secrets must be set and non-empty")
        return v

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES")
    @classmethod
    def validate_access_expiry(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError("ACCESS_TOKEN_EXPIRE_MINUTES must be between 1 and 1440")
        return v

    @field_validator("REFRESH_TOKEN_EXPIRE_DAYS")
    @classmethod
    def validate_refresh_expiry(cls, v: int) -> int:
        if v < 1 or v > 365:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 365")
        return v

    @field_validator("BCRYPT_WORK_FACTOR")
    @classmethod
    def validate_work_factor(cls, v: int) -> int:
        # bcrypt accepts 4..31; anything above 16 makes logins unusably slow
        if v < 4 or v > 16:
            raise ValueError("BCRYPT_WORK_FACTOR must be between 4 and 16")
        return v

    @model_validator(mode="after")
    def secrets_are_distinct(self) -> "Settings":
        if self.ACCESS_TOKEN_SECRET == self.REFRESH_TOKEN_SECRET:
            raise ValueError("ACCESS_TOKEN_SECRET and REFRESH_TOKEN_SECRET must differ")
        return self

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"


settings = Settings()
