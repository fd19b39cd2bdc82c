"""Application settings and configuration."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class JQSettings(BaseSettings):
    """JQ expression engine configuration."""

    max_execution_time_ms: int = Field(
        default=5000,
        description="Wall-clock budget for a single JQ evaluation (0 = unlimited)",
        ge=0,
    )
    cache_size: int = Field(
        default=256, description="Number of compiled JQ programs to keep", ge=0
    )


class StorageSettings(BaseSettings):
    """Rule persistence configuration."""

    type: Literal["file", "memory"] = Field(default="file", description="Storage backend type")
    file_path: str = Field(
        default="openhqm_routes.json", description="Path of the JSON file used by file storage"
    )


class ValidationSettings(BaseSettings):
    """Limits applied by the rule validator."""

    max_conditions: int = Field(default=20, description="Maximum conditions per rule", ge=0)
    max_rule_name_length: int = Field(default=100, description="Maximum rule name length", ge=1)
    min_priority: int = Field(default=0, description="Lowest recommended priority")
    max_priority: int = Field(default=1000, description="Highest recommended priority")
    max_rules: int = Field(default=100, description="Maximum rules in one collection", ge=1)


class SimulationSettings(BaseSettings):
    """Simulation configuration."""

    history_size: int = Field(default=10, description="Simulations kept in history", ge=1)


class MonitoringSettings(BaseSettings):
    """Monitoring and observability configuration."""

    metrics_enabled: bool = Field(default=True, description="Enable Prometheus metrics")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="OPENHQM_RM_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    jq: JQSettings = Field(default_factory=JQSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    simulation: SimulationSettings = Field(default_factory=SimulationSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)


# Global settings instance
settings = Settings()
