# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
Adaptive Path Engine. Settings are loaded from environment variables
with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.adaptive.remedial_threshold)
    0.4
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Platform database configuration.

    The database holds curriculum data (lessons, concepts, fragments),
    submissions, cognitive profiles and adaptive actions.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        worker_pool_size: Connection pool size for each worker thread.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "ape"
    password: SecretStr = SecretStr("ape_password")
    host: str = "ape-db"
    port: int = 5432
    database: str = "educators_edge"
    pool_size: int = 10
    max_overflow: int = 20
    worker_pool_size: int = 2

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def sync_url(self) -> str:
        """Build the sync database URL for migrations."""
        pwd = self.password.get_secret_value()
        return f"postgresql://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for message brokering.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "ape-redis"
    port: int = 6379
    password: SecretStr = SecretStr("ape_redis_password")
    database: int = 0

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        if not pwd:
            return f"redis://{self.host}:{self.port}/{self.database}"
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"


class WorkerSettings(BaseSettings):
    """Background worker configuration.

    Attributes:
        processes: Number of worker processes.
        threads: Number of threads per process.
        max_retries: Delivery attempts before a job is dead-lettered.
        min_backoff_ms: Initial retry backoff.
        max_backoff_ms: Upper bound for retry backoff.
        time_limit_ms: Maximum run time of a single job.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKER_",
        extra="ignore",
    )

    processes: int = 2
    threads: int = 4
    max_retries: int = 5
    min_backoff_ms: int = 2_000
    max_backoff_ms: int = 300_000
    time_limit_ms: int = 120_000


class AdaptiveSettings(BaseSettings):
    """Tuning constants for the cognitive profile update and decision policy.

    Attributes:
        base_gain: Mastery gain applied to every lesson concept.
        fast_solve_seconds: Solve time under which the speed bonus applies.
        fast_solve_bonus: Extra gain for a fast solve.
        low_churn_lines: Code churn under which the churn bonus applies.
        low_churn_bonus: Extra gain for a low churn solve.
        frustration_decay: Frustration removed by each successful submission.
        default_frustration: Frustration level of a freshly created profile.
        excellence_seconds: Solve time under which a bridging problem is offered.
        remedial_threshold: Mastery under which a concept is remediated.
    """

    model_config = SettingsConfigDict(
        env_prefix="ADAPTIVE_",
        extra="ignore",
    )

    base_gain: float = 0.05
    fast_solve_seconds: int = 60
    fast_solve_bonus: float = 0.02
    low_churn_lines: int = 50
    low_churn_bonus: float = 0.01
    frustration_decay: float = 0.1
    default_frustration: float = Field(default=0.1, ge=0.0, le=1.0)
    excellence_seconds: int = 30
    remedial_threshold: float = Field(default=0.4, ge=0.0, le=1.0)


class LLMSettings(BaseSettings):
    """LLM provider configuration using LiteLLM.

    LiteLLM handles provider routing based on the model prefix, so any
    provider it supports can be selected with LLM_MODEL alone.

    Attributes:
        model: Model identifier in LiteLLM format.
        api_key: Provider API key.
        api_base: Optional custom endpoint (e.g. a remote Ollama server).
        temperature: Sampling temperature for content generation.
        max_tokens: Completion token limit.
        request_timeout: Request timeout in seconds.
        max_retries: Maximum retry attempts.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        extra="ignore",
    )

    model: str = "gemini/gemini-1.5-flash-latest"
    api_key: SecretStr | None = None
    api_base: str | None = None
    temperature: float = 0.7
    max_tokens: int = 2048
    request_timeout: float = 60.0
    max_retries: int = 3


class ExecutionSettings(BaseSettings):
    """Remote code runner configuration (glot.io compatible API).

    Attributes:
        api_url: Base URL of the runner's run endpoint.
        api_key: Runner API token.
        timeout: Request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="GLOT_",
        extra="ignore",
    )

    api_url: str = "https://glot.io/api/run"
    api_key: SecretStr = SecretStr("")
    timeout: float = 30.0


class JWTSettings(BaseSettings):
    """JWT authentication configuration.

    Attributes:
        secret_key: Secret key for signing tokens.
        algorithm: JWT signing algorithm.
        access_token_expire_minutes: Access token expiration time.
    """

    model_config = SettingsConfigDict(
        env_prefix="JWT_",
        extra="ignore",
    )

    secret_key: SecretStr = SecretStr("change-this-in-production")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=30,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )


class RateLimitSettings(BaseSettings):
    """Rate limiting configuration.

    Attributes:
        requests_per_minute: Default limit per client.
        solve_per_minute: Limit for code execution endpoints.
        storage_uri: slowapi storage backend.
    """

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        extra="ignore",
    )

    requests_per_minute: int = 60
    solve_per_minute: int = 10
    storage_uri: str = "memory://"


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 5000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        redis: Redis settings.
        worker: Background worker settings.
        adaptive: Profile update and decision policy constants.
        llm: LLM provider settings.
        execution: Code runner settings.
        jwt: JWT authentication settings.
        rate_limit: Rate limiting settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    adaptive: AdaptiveSettings = Field(default_factory=AdaptiveSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    execution: ExecutionSettings = Field(default_factory=ExecutionSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            default_jwt_secret = "change-this-in-production"
            if self.jwt.secret_key.get_secret_value() == default_jwt_secret:
                raise ValueError(
                    "JWT secret key must be changed from default in production. "
                    "Set JWT_SECRET_KEY environment variable."
                )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    """
    get_settings.cache_clear()
