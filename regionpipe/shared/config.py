"""
Regional Leaderboards - Configuration Loader

Pydantic-based configuration management with:
- Environment-based configuration (dev/prod)
- YAML file loading with inheritance
- Environment variable overrides for secrets
- Type validation via Pydantic

Usage:
    from regionpipe.shared.config import get_config

    config = get_config()  # Uses RL_ENVIRONMENT env var
    config = get_config("dev")  # Explicit environment

    # Access config values
    users = config.store.collections.people
    radius = config.catalog.nearest_radius_miles
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

# =============================================================================
# Configuration Models
# =============================================================================


class ProjectConfig(BaseModel):
    """Project metadata configuration."""

    name: str = "regional-leaderboards"
    version: str = "0.1.0"
    description: str = "Region assignment and regional leaderboard builds"


class CollectionsConfig(BaseModel):
    """Record store collection names per entity class."""

    people: str = "users"
    venues: str = "courses"
    activity: str = "scores"
    secondary: str = "thoughts"
    leaderboards: str = "leaderboards"


class StoreEmulatorConfig(BaseModel):
    """Firestore emulator configuration (for local dev)."""

    enabled: bool = False
    host: str = "localhost:8080"


class StoreConfig(BaseModel):
    """Record store configuration."""

    backend: Literal["firestore", "memory"] = "firestore"
    credentials_file: str | None = None
    emulator: StoreEmulatorConfig = Field(default_factory=StoreEmulatorConfig)
    collections: CollectionsConfig = Field(default_factory=CollectionsConfig)


class CatalogConfig(BaseModel):
    """Region catalog and resolver configuration."""

    path: str = "regions.yaml"
    geohash_precision: int = 4
    nearest_radius_miles: float = 100.0
    fallback_key_template: str = "us_{state}_misc"

    @field_validator("geohash_precision")
    @classmethod
    def validate_precision(cls, v: int) -> int:
        """Geohash precision must be at least one character."""
        if v < 1:
            raise ValueError(f"geohash_precision must be >= 1, got {v}")
        return v


class LocationFieldsConfig(BaseModel):
    """Ordered candidate field names for each logical location field."""

    latitude: list[str]
    longitude: list[str]
    city: list[str]
    state: list[str]


class FieldMappingsConfig(BaseModel):
    """Legacy location field names per entity class."""

    people: LocationFieldsConfig = Field(
        default_factory=lambda: LocationFieldsConfig(
            latitude=["currentLatitude", "latitude", "homeLatitude"],
            longitude=["currentLongitude", "longitude", "homeLongitude"],
            city=["currentCity", "city", "homeCity"],
            state=["currentState", "state", "homeState"],
        )
    )
    venues: LocationFieldsConfig = Field(
        default_factory=lambda: LocationFieldsConfig(
            latitude=["location.latitude", "latitude"],
            longitude=["location.longitude", "longitude"],
            city=["location.city", "city"],
            state=["location.state", "state"],
        )
    )


class ActivityDefaultsConfig(BaseModel):
    """Tee defaults filled onto activity records that predate tee tracking."""

    enabled: bool = True
    tees: str = "Unknown"
    par: int = 72
    tee_yardage: int = 0


class MigrationConfig(BaseModel):
    """Batch migration configuration."""

    field_mappings: FieldMappingsConfig = Field(default_factory=FieldMappingsConfig)
    venue_id_field: str = "id"
    activity_venue_field: str = "courseId"
    owner_field: str = "userId"
    lookup_warn_threshold: int = 50_000
    activity_defaults: ActivityDefaultsConfig = Field(default_factory=ActivityDefaultsConfig)


class LeaderboardsConfig(BaseModel):
    """Leaderboard build configuration."""

    top_n: int = 3
    excluded_flag_field: str = "hadHoleInOne"
    owner_type_field: str = "userType"
    excluded_owner_types: list[str] = Field(default_factory=lambda: ["Course"])
    venue_name_fields: list[str] = Field(
        default_factory=lambda: ["courseName", "course_name", "name"]
    )


class AlertingConfig(BaseModel):
    """Alerting configuration."""

    enabled: bool = True
    levels: list[str] = Field(default_factory=lambda: ["info", "warning", "critical"])
    routing: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "info": ["log"],
            "warning": ["log", "slack"],
            "critical": ["log", "slack"],
        }
    )
    timeout_seconds: int = 10


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """
    Main configuration class for Regional Leaderboards.

    Loads configuration from:
    1. YAML files in configs/environments/
    2. Environment variables (for secrets)

    Environment variables take precedence over YAML values.
    """

    model_config = SettingsConfigDict(
        env_prefix="RL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Environment
    environment: Literal["dev", "prod"] = "dev"

    # Configuration sections
    project: ProjectConfig = Field(default_factory=ProjectConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    leaderboards: LeaderboardsConfig = Field(default_factory=LeaderboardsConfig)
    alerting: AlertingConfig = Field(default_factory=AlertingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Secrets (from environment variables only)
    slack_webhook_url: str | None = Field(default=None, alias="SLACK_WEBHOOK_URL")
    gcp_project_id: str | None = Field(default=None, alias="GCP_PROJECT_ID")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; environment variables override them
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


def get_config_dir() -> Path:
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
    env_dir = get_config_dir() / "environments"

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
                    If None, uses RL_ENVIRONMENT env var, defaulting to "dev".

    Returns:
        Settings: Validated configuration object.
    """
    if environment is None:
        environment = os.getenv("RL_ENVIRONMENT", "dev")

    yaml_config = _load_config_for_environment(environment)

    # Create Settings object (also loads env vars); RL_ENVIRONMENT only picks the YAML file
    settings = Settings(**yaml_config)
    return settings.model_copy(update={"environment": environment})


def reload_config(environment: str | None = None) -> Settings:
    """
    Reload configuration, clearing the cache.

    Useful for testing or when config files have changed.
    """
    get_config.cache_clear()
    return get_config(environment)


# =============================================================================
# Convenience Functions
# =============================================================================


def get_catalog_path(config: Settings | None = None) -> Path:
    """
    Resolve the region catalog path.

    Relative paths are resolved against the configs directory.
    """
    if config is None:
        config = get_config()

    path = Path(config.catalog.path)
    if path.is_absolute():
        return path
    return get_config_dir() / path
