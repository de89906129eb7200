"""Configuration and settings management using pydantic-settings."""
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable loading."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWRUN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Core service settings
    env: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Log level")

    # Redis settings (workflow store and result backend)
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    # Celery broker
    broker_url: str = Field(
        default="redis://localhost:6379/1",
        description="Celery broker URL",
    )

    # Engine limits
    default_node_timeout_s: float = Field(
        default=30,
        description="Handler timeout for nodes without their own timeoutSeconds",
    )
    http_timeout_s: float = Field(
        default=30,
        description="Timeout for outbound HTTP calls made by nodes",
    )

    # OpenAI-compatible chat completions (gpt node)
    openai_api_key: SecretStr | None = Field(
        default=None,
        description="API key for the gpt node",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI-compatible API base URL",
    )
    openai_default_model: str = Field(
        default="gpt-3.5-turbo",
        description="Model used when a gpt node names none",
    )

    # Job retries (transient failures only)
    job_max_retries: int = Field(
        default=3,
        description="Maximum retries of a run that failed transiently",
    )
    job_retry_backoff_s: float = Field(
        default=1,
        description="First retry delay; doubles on every further retry",
    )

    # Celery settings
    celery_task_time_limit: int = Field(
        default=300,
        description="Celery hard task time limit in seconds",
    )
    celery_task_soft_time_limit: int = Field(
        default=270,
        description="Celery soft task time limit in seconds",
    )

    @field_validator(
        "default_node_timeout_s",
        "http_timeout_s",
        "celery_task_time_limit",
        "celery_task_soft_time_limit",
    )
    @classmethod
    def validate_positive_timeout(cls, v: float) -> float:
        """Validate that timeouts are positive."""
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("job_max_retries", "job_retry_backoff_s")
    @classmethod
    def validate_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (useful for testing)."""
    global _settings
    _settings = None
