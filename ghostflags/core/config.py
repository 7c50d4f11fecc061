import logging
from typing import Optional, Literal, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import SecretStr, Field, field_validator, model_validator


class Settings(BaseSettings):
    """
    GhostFlags Settings managed by Pydantic.
    Reads from environment variables and .env / .env.local files.
    """

    # ============================================
    # Environment & Logging
    # ============================================
    environment: Literal["development", "staging", "production"] = Field(
        "development", alias="ENVIRONMENT"
    )
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # ============================================
    # Shared secret (64 hex chars, AES-256)
    # ============================================
    secret: Optional[SecretStr] = Field(None, alias="GHOSTFLAGS_SECRET")

    # ============================================
    # Record layout
    # ============================================
    mode: Literal["single_record", "per_flag"] = Field(
        "single_record", alias="GHOSTFLAGS_MODE"
    )

    # ============================================
    # Caching (seconds)
    # ============================================
    cache_ttl: float = Field(60.0, alias="GHOSTFLAGS_CACHE_TTL")
    failure_ttl: float = Field(10.0, alias="GHOSTFLAGS_FAILURE_TTL")

    # ============================================
    # DNS
    # ============================================
    dns_timeout: float = Field(3.0, alias="GHOSTFLAGS_DNS_TIMEOUT")
    nameservers: str = Field("", alias="GHOSTFLAGS_NAMESERVERS")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def get_secret(self) -> Optional[str]:
        if self.secret:
            return self.secret.get_secret_value()
        return None

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def get_nameservers(self) -> List[str]:
        """Parse nameservers from comma-separated string."""
        if not self.nameservers:
            return []
        return [ns.strip() for ns in self.nameservers.split(",") if ns.strip()]

    def get_log_level(self) -> int:
        """Convert log level string to logging constant."""
        levels = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return levels.get(self.log_level.upper(), logging.INFO)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid option."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()

    @field_validator("cache_ttl", "failure_ttl", "dns_timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """TTLs and timeouts must be positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @model_validator(mode="after")
    def validate_failure_ttl(self) -> "Settings":
        if self.failure_ttl > self.cache_ttl:
            raise ValueError("GHOSTFLAGS_FAILURE_TTL must not exceed GHOSTFLAGS_CACHE_TTL")
        return self
