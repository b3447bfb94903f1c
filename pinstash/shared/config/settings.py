# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from functools import lru_cache
from typing import Literal, NoReturn

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRETS = ("dev", "development", "test", "change-me", "")


def _abort(*lines: str) -> NoReturn:
    detail = "".join(f"   {line}\n" for line in lines[1:])
    print(f"\n❌ CRITICAL CONFIGURATION ERROR: {lines[0]}\n{detail}", file=sys.stderr)
    sys.exit(1)


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///pinstash.db"
    pool_size: int = Field(10, ge=1)
    max_overflow: int = Field(5, ge=0)
    pool_timeout: float = Field(30.0, ge=0.1)

    model_config = ConfigDict(validate_by_name=True)


class SessionConfig(BaseModel):
    # cookie: self-contained signed token, database: server-side record
    strategy: Literal["cookie", "database"] = "database"
    cookie_name: str = "pinstash_session"
    persistent_ttl_seconds: int = Field(30 * 24 * 60 * 60, ge=60)
    browser_ttl_seconds: int = Field(24 * 60 * 60, ge=60)

    model_config = ConfigDict(validate_by_name=True)


class PasswordConfig(BaseModel):
    hash_method: str = "scrypt"

    model_config = ConfigDict(validate_by_name=True)


class ResetConfig(BaseModel):
    token_ttl_minutes: int = Field(15, ge=1)
    rate_limit_window_minutes: int = Field(60, ge=1)
    rate_limit_max_requests: int = Field(3, ge=1)

    model_config = ConfigDict(validate_by_name=True)


class MailConfig(BaseModel):
    provider: Literal["console", "mailgun"] = "console"
    mailgun_api_key: str | None = None
    mailgun_domain: str | None = None
    mailgun_base_url: str = "https://api.mailgun.net"
    from_email: str = "no-reply@pinstash.local"
    from_name: str | None = "PinStash"
    timeout_seconds: float = Field(10.0, ge=0.1)
    max_retries: int = Field(2, ge=0)
    backoff_base: float = Field(0.5, ge=0.1)
    backoff_cap: float = Field(4.0, ge=0.1)

    model_config = ConfigDict(validate_by_name=True)


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str | None = Field(None, alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")
    # origin used in e-mailed links, e.g. https://pinstash.app
    public_base_url: str | None = Field(None, alias="PUBLIC_BASE_URL")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    password: PasswordConfig = Field(default_factory=PasswordConfig)
    reset: ResetConfig = Field(default_factory=ResetConfig)
    mail: MailConfig = Field(default_factory=MailConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        validate_by_name=True,
        extra="ignore",
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        if isinstance(value, str):
            return value.lower() in ("1", "true", "yes")
        return bool(value)

    @field_validator("public_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        return value.rstrip("/") if value else None

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.secret_key in _INSECURE_SECRETS or len(self.secret_key) < 32:
            _abort(
                "Insecure SECRET_KEY detected in production!",
                "SECRET_KEY signs session cookies and must be a strong random value.",
                "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\"",
            )

        if self.mail.provider == "console":
            _abort(
                "MAIL__PROVIDER=console is not allowed in production.",
                "Password reset links would only be printed to stdout. Configure mailgun.",
            )

        if not self.mail.mailgun_api_key or not self.mail.mailgun_domain:
            _abort(
                "Mailgun is selected but MAIL__MAILGUN_API_KEY or MAIL__MAILGUN_DOMAIN is missing.",
            )

        if not self.public_base_url:
            _abort(
                "PUBLIC_BASE_URL is required in production.",
                "Reset links must not be built from the request Host header.",
            )

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")

    def is_development(self) -> bool:
        return self.app_env.lower() in ("development", "dev", "local")

    @property
    def secure_cookies(self) -> bool:
        return not self.is_development()


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "MailConfig",
    "PasswordConfig",
    "ResetConfig",
    "SessionConfig",
    "load_config",
]
