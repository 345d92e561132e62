"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from datetime import timedelta
from typing import TYPE_CHECKING

from loguru import logger
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from relayer.config.constants import (
    CHAIN_CALL_TIMEOUT_SECONDS,
    CHAIN_RECEIPT_TIMEOUT_SECONDS,
    CHARGE_RETRY_BASE_DELAY_SECONDS,
    CHARGE_RETRY_MAX_ATTEMPTS,
    JOB_CLAIM_TTL_SECONDS,
    PROCESSOR_BATCH_LIMIT,
    PROCESSOR_LOCK_TIMEOUT_SECONDS,
)


if TYPE_CHECKING:
    from relayer.services.charge_processor.retry_policy import RetryPolicy


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Redis (for Dramatiq and the invocation lock)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Chain
    rpc_url: str
    relayer_private_key: str | None = None
    chain_id: int | None = None
    chain_call_timeout_seconds: float = Field(
        default=CHAIN_CALL_TIMEOUT_SECONDS,
        gt=0,
        description="Hard bound on one delegated transfer call",
    )
    receipt_timeout_seconds: float = Field(
        default=CHAIN_RECEIPT_TIMEOUT_SECONDS,
        gt=0,
        description="Bound on waiting for the transaction receipt",
    )

    # Retry policy
    retry_max_attempts: int = Field(
        default=CHARGE_RETRY_MAX_ATTEMPTS,
        ge=1,
        description="Attempts per job before it is marked FAILED",
    )
    retry_base_delay_seconds: int = Field(
        default=CHARGE_RETRY_BASE_DELAY_SECONDS,
        gt=0,
        description="Base delay for exponential backoff",
    )

    # Processor
    job_claim_ttl_seconds: int = Field(
        default=JOB_CLAIM_TTL_SECONDS,
        gt=0,
        description="Age after which an abandoned job claim may be re-taken",
    )
    processor_batch_limit: int = Field(
        default=PROCESSOR_BATCH_LIMIT,
        ge=1,
        description="Maximum jobs selected per invocation",
    )
    processor_lock_timeout_seconds: int = Field(
        default=PROCESSOR_LOCK_TIMEOUT_SECONDS,
        gt=0,
        description="TTL of the invocation lock",
    )

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode='after')
    def validate_claim_ttl(self) -> 'Settings':
        """A live claim must never expire while its chain call can still run."""
        if self.job_claim_ttl_seconds <= self.chain_call_timeout_seconds:
            raise ValueError(
                'JOB_CLAIM_TTL_SECONDS must be greater than '
                'CHAIN_CALL_TIMEOUT_SECONDS'
            )
        return self

    @model_validator(mode='after')
    def validate_production(self) -> 'Settings':
        """Validate production-specific requirements."""
        if self.environment == 'production':
            if self.debug:
                raise ValueError(
                    'DEBUG must be False in production environment. '
                    'Set DEBUG=false in your .env file.'
                )
            if not self.relayer_private_key:
                raise ValueError(
                    'RELAYER_PRIVATE_KEY is required in production. '
                    'It must belong to the spender approved by payers.'
                )
        elif not self.relayer_private_key:
            logger.warning(
                'RELAYER_PRIVATE_KEY not set - delegated transfers will fail'
            )
        return self

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment name."""
        v = v.lower()
        if v not in ('development', 'production', 'test'):
            raise ValueError(
                'ENVIRONMENT must be one of: development, production, test'
            )
        return v

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Validate database URL."""
        if not v.startswith(('postgresql://', 'postgresql+asyncpg://')):
            raise ValueError(
                'DATABASE_URL must start with postgresql:// or postgresql+asyncpg://'
            )
        return v

    @property
    def async_database_url(self) -> str:
        """Database URL with the asyncpg driver."""
        if self.database_url.startswith('postgresql://'):
            return self.database_url.replace(
                'postgresql://', 'postgresql+asyncpg://', 1
            )
        return self.database_url

    def retry_policy(self) -> "RetryPolicy":
        """Build the retry policy passed into the scheduler."""
        # Import here to avoid circular dependency
        from relayer.services.charge_processor.retry_policy import RetryPolicy

        return RetryPolicy(
            max_attempts=self.retry_max_attempts,
            base_delay=timedelta(seconds=self.retry_base_delay_seconds),
        )


# Global settings instance
settings = Settings()
