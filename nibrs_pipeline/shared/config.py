"""
NIBRS Pipeline - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variable overrides
- Type validation via Pydantic

Usage:
    from nibrs_pipeline.shared.config import get_config

    config = get_config()  # Uses NP_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    url = config.source.url
    placeholders = config.cleaning.placeholder_counties
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# Configuration Models
# =============================================================================


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "nibrs-pipeline"
    version: str = "0.1.0"
    description: str = "Cleaning pipeline for NIBRS adoption by U.S. law enforcement agencies"


class StorageConfig(BaseModel):
    """Local storage configuration."""

    raw_dir: str = "data/raw"
    processed_dir: str = "data/processed"
    raw_filename: str = "agencies_raw.parquet"
    processed_filename: str = "agencies_processed.parquet"

    @property
    def raw_path(self) -> Path:
        return Path(self.raw_dir) / self.raw_filename

    @property
    def processed_path(self) -> Path:
        return Path(self.processed_dir) / self.processed_filename


class SourceConfig(BaseModel):
    """Upstream source for the raw agencies table."""

    url: str = (
        "https://raw.githubusercontent.com/rfordatascience/tidytuesday/main/"
        "data/2025/2025-02-18/agencies.csv"
    )
    timeout_seconds: int = 60


class CleaningConfig(BaseModel):
    """Cleaning pipeline configuration."""

    placeholder_counties: list[str] = Field(default_factory=lambda: ["NOT SPECIFIED", "Unknown"])
    dedupe_key: list[str] = Field(default_factory=lambda: ["ori", "county", "state"])
    peer_key: list[str] = Field(default_factory=lambda: ["agency_name", "county", "state"])


class QualityConfig(BaseModel):
    """Data quality thresholds."""

    max_missing_coordinate_ratio: float = 0.01
    min_row_count: int = 1


class ValidationConfig(BaseModel):
    """Validation configuration."""

    strict_mode: bool = True
    quality: QualityConfig = Field(default_factory=QualityConfig)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["json", "text"] = "text"
    log_file: str | None = None


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for the NIBRS pipeline.

    Loads configuration from:
    1. YAML files in configs/environments/
    2. Environment variables (NP_ prefix, "__" for nesting)

    Environment variables take precedence over YAML values.
    """

    model_config = SettingsConfigDict(
        env_prefix="NP_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    cleaning: CleaningConfig = Field(default_factory=CleaningConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Give environment variables priority over the YAML-derived init values."""
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_envs = {"dev", "prod"}
        if v not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of: {valid_envs}")
        return v


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _get_config_dir() -> Path:
    """Get the configuration directory path."""
    # Try relative path from the project root
    config_dir = Path(__file__).parent.parent.parent / "configs"
    if config_dir.exists():
        return config_dir

    # Try from current working directory
    config_dir = Path.cwd() / "configs"
    if config_dir.exists():
        return config_dir

    raise FileNotFoundError(
        "Could not find configs directory. Ensure you're running from the project root."
    )


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents."""
    if not path.exists():
        return {}
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_config_for_environment(environment: str) -> dict[str, Any]:
    """Load and merge configuration for a specific environment."""
    env_dir = _get_config_dir() / "environments"

    base_config = _load_yaml_file(env_dir / "base.yaml")
    env_config = _load_yaml_file(env_dir / f"{environment}.yaml")

    # Remove inheritance marker if present
    env_config.pop("_inherit", None)

    merged = _deep_merge(base_config, env_config)
    merged["environment"] = environment

    return merged


@lru_cache(maxsize=4)
def get_config(environment: str | None = None) -> Settings:
    """
    Get configuration for the specified environment.

    Args:
        environment: Environment name (dev, prod).
                    If None, uses NP_ENVIRONMENT env var, defaulting to "dev".

    Returns:
        Settings: Validated configuration object.
    """
    if environment is None:
        environment = os.getenv("NP_ENVIRONMENT", "dev")

    yaml_config = _load_config_for_environment(environment)

    # Create Settings object (also loads env vars)
    return Settings(**yaml_config)


def reload_config(environment: str | None = None) -> Settings:
    """
    Reload configuration, clearing the cache.

    Useful for testing or when config files have changed.
    """
    get_config.cache_clear()
    return get_config(environment)