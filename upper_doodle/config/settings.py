"""
Configuration management for upper-doodle.
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class PathsConfig(BaseModel):
    """Project paths configuration."""

    output_dir: Path = Path("./output")
    shapes_file: Path | None = None


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["turtle", "ntriples", "both"] = "both"
    write_report: bool = True


class SerializerConfig(BaseModel):
    """Turtle serializer configuration.

    cache_size bounds the memoized documents; 0 keeps every entry.
    """

    cache_size: int = Field(default=128, ge=0)


class ValidationConfig(BaseModel):
    """Graph validation configuration."""

    enabled: bool = True
    round_trip: bool = True  # Compare the Turtle graph against the N-Triples graph


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_file: Path | None = None


class Settings(BaseSettings):
    """Main configuration class."""

    model_config = ConfigDict(
        env_prefix="UPPER_DOODLE_",
        env_nested_delimiter="__",
    )

    paths: PathsConfig = Field(default_factory=PathsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    serializer: SerializerConfig = Field(default_factory=SerializerConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str = "upper_doodle/config/config.yaml") -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Settings object with loaded configuration
    """
    config_file = Path(config_path)

    if config_file.exists():
        with open(config_file, "r") as f:
            config_dict = yaml.safe_load(f) or {}
    else:
        config_dict = {}

    # Create settings, which will also load from environment variables
    settings = Settings(**config_dict)

    return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Replace (or clear, with None) the global settings instance."""
    global _settings
    _settings = settings
