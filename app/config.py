"""Application configuration management via pydantic-settings.

Centralize all configuration parameters for the smokecheck harness. Load
settings from environment variables and/or a `.env` file. Provide type
validation, probe defaults, and the optional external service addresses the
environment adapter turns into service descriptors.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.smokecheck.core.types import ContainerEndpoint


class Settings(BaseSettings):
    """Application-wide configuration settings.

    Attributes:
        PROJECT_NAME: Display name for the harness service.
        VERSION: Semantic version string.
        ENVIRONMENT: Deployment environment identifier (also shown in reports).
        LOG_LEVEL: Minimum logging verbosity level.
        APPLICATION_NAME: Name of the application under test, shown in reports.
        PROBE_TIMEOUT_MS: Connect/read timeout applied to every network probe.
        PROBE_RETRY_COUNT: Attempts per external service probe.
        PROBE_RETRY_DELAY_MS: Pause between probe attempts.
        EXTERNAL_REDIS_URL: Optional external Redis (``redis://host:port``).
        EXTERNAL_KAFKA_URL: Optional external Kafka bootstrap (``host:port``).
        EXTERNAL_CASSANDRA_URL: Optional external Cassandra (``host:port``).
        EXTERNAL_API_HEALTH_CHECK_URL: Optional HTTP health URL (required when set).
        SMOKE_CONTAINERS: JSON list of container endpoints to validate.
        SMOKE_E2E_CALLBACK: ``module:function`` path of the end-to-end workflow.
        E2E_TIMEOUT_MS: Upper bound on the end-to-end workflow run time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ==========================================================================
    # PROJECT METADATA
    # ==========================================================================
    PROJECT_NAME: str = "Smokecheck"
    VERSION: str = "0.1.0"
    APPLICATION_NAME: str = "testcontainers-demo"

    # ==========================================================================
    # ENVIRONMENT & LOGGING
    # ==========================================================================
    ENVIRONMENT: Literal["development", "test", "staging", "production"] = "development"
    LOG_LEVEL: Literal["debug", "info", "warning", "error", "critical"] = "info"
    LOGGING_NOISY_MODULES: list[str] = [
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "asyncio",
    ]

    # ==========================================================================
    # PROBE POLICY
    # ==========================================================================
    PROBE_TIMEOUT_MS: int = 5000
    PROBE_RETRY_COUNT: int = 3
    PROBE_RETRY_DELAY_MS: int = 1000

    # ==========================================================================
    # EXTERNAL SERVICES
    # ==========================================================================
    # Absent or empty means the service is left out of the connectivity check.
    EXTERNAL_REDIS_URL: Optional[str] = None
    EXTERNAL_KAFKA_URL: Optional[str] = None
    EXTERNAL_CASSANDRA_URL: Optional[str] = None
    EXTERNAL_API_HEALTH_CHECK_URL: Optional[str] = None

    # ==========================================================================
    # CONTAINERS & END-TO-END WORKFLOW
    # ==========================================================================
    SMOKE_CONTAINERS: list[ContainerEndpoint] = []
    SMOKE_E2E_CALLBACK: Optional[str] = None
    E2E_TIMEOUT_MS: int = 60000

    @field_validator(
        "EXTERNAL_REDIS_URL",
        "EXTERNAL_KAFKA_URL",
        "EXTERNAL_CASSANDRA_URL",
        "EXTERNAL_API_HEALTH_CHECK_URL",
        "SMOKE_E2E_CALLBACK",
        mode="before",
    )
    @classmethod
    def blank_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only value as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator("PROBE_TIMEOUT_MS", "PROBE_RETRY_DELAY_MS")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Probe timings must be non-negative milliseconds")
        return v

    @field_validator("PROBE_RETRY_COUNT")
    @classmethod
    def validate_retry_count(cls, v: int) -> int:
        """Validate that every probe gets at least one attempt.

        Raises:
            ValueError: If PROBE_RETRY_COUNT is lower than 1.
        """
        if v < 1:
            raise ValueError("PROBE_RETRY_COUNT must be at least 1")
        return v

    @field_validator("E2E_TIMEOUT_MS")
    @classmethod
    def validate_e2e_timeout(cls, v: int) -> int:
        if v < 1:
            raise ValueError("E2E_TIMEOUT_MS must be a positive number of milliseconds")
        return v


# ==============================================================================
# DEPENDENCY INJECTION
# ==============================================================================


@lru_cache()
def get_settings() -> Settings:
    """Return a cached singleton instance of the application settings.

    Use as a FastAPI dependency to inject configuration into route handlers.

    Returns:
        The singleton Settings instance.
    """
    return Settings()
