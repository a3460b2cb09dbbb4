"""
Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models import IAAConfig


class Settings(BaseSettings):
    """Engine settings: concurrency, batching, IAA policy and logging."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Concurrency & batching
    max_inflight: int = Field(default=12, ge=1, description="Concurrent model calls")
    batch_size: int = Field(default=20, ge=1, description="Items per batch")
    concurrent_batches_per_window: int = Field(
        default=3, ge=1, description="Batches running together in one window"
    )

    # IAA policy
    iaa_enabled: bool = Field(default=False)
    iaa_portion_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    iaa_annotators_per_item: int = Field(default=2, ge=2)
    iaa_seed: int = Field(default=0)

    # Providers
    default_system_prompt: str = Field(
        default="You are a helpful data labeling assistant."
    )
    request_timeout_seconds: float = Field(default=60.0, gt=0.0)
    ollama_host: str = Field(default="http://localhost:11434")

    # Pricing
    openrouter_models_url: str = Field(default="https://openrouter.ai/api/v1/models")
    pricing_timeout_seconds: float = Field(default=15.0, gt=0.0)

    # Logging
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    # Config file paths
    profiles_path: Path = Field(
        default=Path("profiles.yaml"),
        description="YAML file declaring provider connections and model profiles",
    )

    @property
    def iaa_config(self) -> IAAConfig:
        """Get the IAA policy as a model."""
        return IAAConfig(
            enabled=self.iaa_enabled,
            portion_percent=self.iaa_portion_percent,
            annotators_per_iaa_item=self.iaa_annotators_per_item,
            seed=self.iaa_seed,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience function for accessing settings
settings = get_settings()
