"""Configuration management for the KOTS admin console authorization service."""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from kotsadm.rbac.engine import EvaluationMode


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class IdentityConfigSource(str, Enum):
    """Where RBAC overrides are read from at startup."""

    NONE = "none"
    CONFIGMAP = "configmap"
    FILE = "file"


class Settings(BaseSettings):
    """Application settings with RBAC configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "KOTS Admin Console"
    app_version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False

    # API Configuration
    api_prefix: str = "/api/v1"

    # RBAC Configuration
    rbac_evaluation_mode: EvaluationMode = EvaluationMode.SPECIFICITY
    rbac_strict_matching: bool = False

    # Identity config (RBAC overrides)
    identity_config_source: IdentityConfigSource = IdentityConfigSource.NONE
    identity_config_path: Optional[str] = None
    kotsadm_namespace: str = "default"
    identity_configmap_name: str = "kotsadm-identity-config"
    identity_configmap_key: str = "identity.yaml"

    # Sessions
    session_header: str = "Authorization"

    # Redis Configuration
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0
    redis_url: Optional[str] = Field(None, validate_default=True)

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_json: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False

    # Health Check
    health_check_path: str = "/health"
    readiness_check_path: str = "/ready"

    @field_validator("redis_url")
    @classmethod
    def build_redis_url(cls, v, info):
        """Build Redis URL from components if not provided."""
        if v:
            return v

        host = info.data.get("redis_host", "redis")
        port = info.data.get("redis_port", 6379)
        password = info.data.get("redis_password")
        db = info.data.get("redis_db", 0)

        if password:
            return f"redis://:{password}@{host}:{port}/{db}"
        return f"redis://{host}:{port}/{db}"

    @field_validator("rbac_evaluation_mode", mode="before")
    @classmethod
    def parse_evaluation_mode(cls, v):
        """Accept deny_wins as well as deny-wins."""
        if isinstance(v, str):
            return v.strip().lower().replace("_", "-")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience function for getting settings
settings = get_settings()
