"""Application settings loaded from environment variables.

Configuration file discovery (in priority order):
1. OS environment variables (always highest priority)
2. AUTHCORE_ENV_FILE environment variable (path to .env file)
3. config/.env.dev - local development
4. config/.env - production/Docker

Uses pydantic-settings for automatic type coercion and validation.
Secrets are required: the process refuses to start without them.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_ENCRYPTION_KEY_LENGTH = 32


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve().parent

    for parent in [current, *current.parents]:
        if (parent / "config").is_dir():
            return parent
        if (parent / "pyproject.toml").is_file():
            return parent
        if parent == Path("/app"):
            return parent

    return Path(__file__).resolve().parents[2]


def get_config_dir() -> Path:
    """Get the config directory path."""
    return _find_project_root() / "config"


def _resolve_env_file_path() -> Path | None:
    """Resolve the .env file path.

    Priority:
    1. AUTHCORE_ENV_FILE env var (full or project-relative path)
    2. config/.env.dev (local development)
    3. config/.env (production)
    """
    env_file_path = os.environ.get("AUTHCORE_ENV_FILE")
    if env_file_path:
        path = Path(env_file_path)
        if not path.is_absolute():
            path = _find_project_root() / path
        if path.exists():
            return path

    config_dir = get_config_dir()

    dev_env = config_dir / ".env.dev"
    if dev_env.exists():
        return dev_env

    prod_env = config_dir / ".env"
    if prod_env.exists():
        return prod_env

    return None


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Values are loaded from:
    1. OS environment variables (highest priority)
    2. .env file (config/.env.dev or config/.env)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file_path(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Security (MUST be set - app fails without these)
    jwt_access_secret: SecretStr  # Signs short-lived access tokens
    jwt_refresh_secret: SecretStr  # Signs refresh tokens, must differ from access
    encryption_key: SecretStr  # Derives AES keys for OAuth provider tokens

    # Application
    app_name: str = "AuthCore"

    # Database
    database_url: str = "postgresql+asyncpg://postgres@localhost:5432/authcore"
    database_echo: bool = False

    # JWT
    jwt_access_token_expire_minutes: int = 15
    jwt_refresh_token_expire_days: int = 7

    # One-time codes
    otp_expiry_minutes: int = 10
    otp_signup_max_attempts: int = 5
    otp_password_reset_max_attempts: int = 3
    otp_hash_rounds: int = 10

    # Passwords and reset tokens
    password_min_length: int = 8
    password_hash_rounds: int = 12
    reset_token_expire_minutes: int = 15

    # Outbound notifications
    notification_workers: int = 2
    notification_queue_size: int = 100
    notification_max_retries: int = 3

    # SMTP delivery of one-time codes
    smtp_enabled: bool = False
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr | None = None
    smtp_from_email: str = ""
    smtp_from_name: str = "AuthCore"
    smtp_use_tls: bool = True
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"

    @field_validator("jwt_access_secret", "jwt_refresh_secret")
    @classmethod
    def _validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            msg = "JWT secrets cannot be empty"
            raise ValueError(msg)
        return v

    @field_validator("encryption_key")
    @classmethod
    def _validate_encryption_key(cls, v: SecretStr) -> SecretStr:
        if len(v.get_secret_value()) < MIN_ENCRYPTION_KEY_LENGTH:
            msg = (
                f"encryption_key must be at least "
                f"{MIN_ENCRYPTION_KEY_LENGTH} characters"
            )
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _validate_distinct_jwt_secrets(self) -> Settings:
        if (
            self.jwt_access_secret.get_secret_value()
            == self.jwt_refresh_secret.get_secret_value()
        ):
            msg = "jwt_access_secret and jwt_refresh_secret must differ"
            raise ValueError(msg)
        return self


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    Required fields (jwt_access_secret, jwt_refresh_secret, encryption_key)
    must be provided via environment variables or .env file.
    """
    return Settings()  # type: ignore[call-arg]  # pydantic-settings loads from env


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
