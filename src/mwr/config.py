"""Application configuration via environment variables with Pydantic validation.

All configuration is loaded from MWR_-prefixed environment variables (with
.env file support). The app fails loudly at startup if values are invalid.
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Resolver service settings. All values sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MWR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Policy: a named policy in policy_directory takes precedence over policy_file_path
    policy_file_path: str = "./policies/default.yaml"
    policy_directory: str = "./policies"
    policy_name: str | None = None

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # Request limits
    max_request_body_bytes: int = 65_536

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("policy_file_path", "policy_directory")
    @classmethod
    def path_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Policy paths must not be empty")
        return v

    @field_validator("log_format")
    @classmethod
    def known_log_format(cls, v: str) -> str:
        normalized = v.strip().lower()
        if normalized not in ("json", "console"):
            raise ValueError("MWR_LOG_FORMAT must be 'json' or 'console'")
        return normalized

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        normalized = v.strip().upper()
        if normalized not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown MWR_LOG_LEVEL: {v}")
        return normalized


def get_settings() -> Settings:
    """Create and return a validated Settings instance.

    Raises ValidationError with clear messages if env vars are invalid.
    """
    return Settings()
