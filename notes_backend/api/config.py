"""
Settings for the notes API, read from the environment (and a .env file).

Secrets are passed to the components that need them; nothing below the
app factory reads the environment directly.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")

# Development-only fallbacks; any non-local environment must set its own.
_DEV_SECRETS = {
    "secret_key": "local-dev-signing-key",
    "password_salt": "local-dev-password-salt",
}


# PUBLIC_INTERFACE
class Settings(BaseSettings):
    """
    Runtime configuration for the API process. Each field is read from the
    environment variable of the same name in upper case (DATABASE_URL, ...).
    """
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "local"
    log_level: Optional[str] = None

    database_url: str = Field(..., min_length=1)
    secret_key: Optional[str] = None
    password_salt: Optional[str] = None
    jwt_algorithm: str = "HS256"
    access_token_expire_hours: int = Field(12, gt=0)

    http_host: str = "0.0.0.0"
    http_port: int = 8000
    # Idle keep-alive connection timeout in seconds, not a per-request deadline.
    http_timeout_keep_alive: int = Field(5, gt=0)

    @field_validator("app_env")
    @classmethod
    def _normalize_env(cls, value: str) -> str:
        return value.lower()

    @field_validator("jwt_algorithm")
    @classmethod
    def _hmac_only(cls, value: str) -> str:
        value = value.upper()
        if value not in HMAC_ALGORITHMS:
            raise ValueError(f"JWT_ALGORITHM must be one of {', '.join(HMAC_ALGORITHMS)}")
        return value

    @model_validator(mode="after")
    def _env_defaults(self) -> "Settings":
        local = self.app_env == "local"
        self.log_level = (self.log_level or ("DEBUG" if local else "INFO")).upper()
        for name, dev_default in _DEV_SECRETS.items():
            if getattr(self, name):
                continue
            if not local:
                raise ValueError(f"{name.upper()} environment variable not set.")
            setattr(self, name, dev_default)
        return self


# PUBLIC_INTERFACE
def load_settings(**overrides) -> Settings:
    """
    Builds Settings from the environment; keyword arguments take precedence.

    Raises pydantic's ValidationError (a ValueError) when a required
    variable is missing or malformed.
    """
    return Settings(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    return load_settings()
