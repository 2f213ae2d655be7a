"""
Session configuration using Pydantic Settings.

Configuration values can be set via environment variables (prefixed with
``SESSION_``), a .env file, or keyword overrides passed to ``load_settings``.
"""

import re
from functools import lru_cache
from typing import Any

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tablesession.core.exceptions import ConfigurationError

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")
_BOOL_STRINGS = {"true", "false", "1", "0"}


class SessionSettings(BaseSettings):
    """Session handler settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="SESSION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cookie and storage
    cookie_name: str = "sessionCookie"
    table_name: str = "session"

    # Lifetimes, in seconds
    seconds_until_expiration: int = Field(default=7200, gt=0)
    renewal_time: int = Field(default=300, gt=0)

    # Validation switches
    expire_on_close: bool = False
    check_ip_address: bool = False
    check_user_agent: bool = False
    secure_cookie: bool = False

    # Key for the identifier HMAC; no default
    salt: SecretStr

    auto_run_session: bool = True

    # Chance per request of sweeping expired rows (1 in 20)
    gc_probability: float = Field(default=0.05, ge=0.0, le=1.0)

    database_url: str = "sqlite:///./data/sessions.db"

    # Logging
    log_level: str = "INFO"
    json_logging: bool = False

    @field_validator("seconds_until_expiration", "renewal_time", mode="before")
    @classmethod
    def validate_whole_seconds(cls, value: Any) -> Any:
        # Lax mode would turn True into 1 and 300.0 into 300
        if isinstance(value, (bool, float)):
            raise ValueError("must be a whole number of seconds")
        return value

    @field_validator(
        "expire_on_close",
        "check_ip_address",
        "check_user_agent",
        "secure_cookie",
        "auto_run_session",
        mode="before",
    )
    @classmethod
    def validate_strict_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        # Environment variables arrive as strings
        if isinstance(value, str) and value.strip().lower() in _BOOL_STRINGS:
            return value.strip().lower() in {"true", "1"}
        raise ValueError("must be a boolean")

    @field_validator("cookie_name")
    @classmethod
    def validate_cookie_name(cls, value: str) -> str:
        if not (value.isascii() and value.isalnum()):
            raise ValueError("Invalid cookie name provided; use letters and digits only")
        return value

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, value: str) -> str:
        if not _TABLE_NAME_RE.match(value):
            raise ValueError(f"Invalid table name: {value!r}")
        return value

    @field_validator("salt")
    @classmethod
    def validate_salt(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value().strip():
            raise ValueError("Session salt encryption key not set")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level


def load_settings(**overrides: Any) -> SessionSettings:
    """
    Build settings from the environment plus explicit overrides.

    Args:
        **overrides: Field values that take precedence over the environment

    Returns:
        Validated SessionSettings

    Raises:
        ConfigurationError: If any option is missing or invalid
    """
    try:
        return SessionSettings(**overrides)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid session configuration: {problems}") from e


@lru_cache(maxsize=1)
def get_settings() -> SessionSettings:
    """Process-wide settings loaded from the environment"""
    return load_settings()
