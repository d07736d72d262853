"""
Configuration management for blobfilestore.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from ..backends.base import DEFAULT_PAGE_SIZE
from .logging_config import parse_size

logger = logging.getLogger(__name__)

ENV_PREFIX = "BLOBFILESTORE_"


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AzureConfig(BaseModel):
    """Plugin-wide switches."""
    disabled: bool = Field(
        default=False,
        description="Skip registering the blob file store, e.g. to run on local storage in development"
    )


class BlobFileStoreConfig(BaseModel):
    """Blob file store settings."""
    connection_string: Optional[str] = None
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=DEFAULT_PAGE_SIZE)

    @field_validator("connection_string")
    @classmethod
    def strip_connection_string(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank connection strings as missing."""
        if v is None:
            return None
        v = v.strip()
        return v or None


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "json"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = Field(default=5, ge=0)
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'blobfilestore.store': 'DEBUG'}"
    )

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        if v not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v

    @field_validator("rotation_size")
    @classmethod
    def validate_rotation_size(cls, v: str) -> str:
        parse_size(v)
        return v

    @field_validator("module_levels")
    @classmethod
    def validate_module_levels(cls, v: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if v is None:
            return None
        levels = {}
        for name, level in v.items():
            level = level.upper()
            if level not in LogLevel.__members__:
                raise ValueError(f"Invalid log level for '{name}': {level}")
            levels[name] = level
        return levels


class BlobFileStoreAppConfig(BaseModel):
    """Main configuration schema."""

    azure: AzureConfig = Field(default_factory=AzureConfig)

    blob_file_store: BlobFileStoreConfig = Field(default_factory=BlobFileStoreConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides (e.g. CLI arguments)
    2. Environment variables (BLOBFILESTORE_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[BlobFileStoreAppConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> BlobFileStoreAppConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of overrides applied last

        Returns:
            Validated BlobFileStoreAppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading blobfilestore configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)
            logger.info(f"Applied {len(overrides)} explicit overrides")

        try:
            self._config = BlobFileStoreAppConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}

        # Blob file store configuration
        conn = os.getenv(f"{ENV_PREFIX}CONNECTION_STRING") or os.getenv("AZURE_STORAGE_CONNECTION_STRING")
        if conn:
            config.setdefault("blob_file_store", {})["connection_string"] = conn
        if page_size := os.getenv(f"{ENV_PREFIX}PAGE_SIZE"):
            config.setdefault("blob_file_store", {})["page_size"] = page_size

        # Plugin switch
        if disabled := os.getenv(f"{ENV_PREFIX}AZURE_DISABLED"):
            config.setdefault("azure", {})["disabled"] = disabled.lower() in ['true', '1', 'yes']

        # Logging configuration
        if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration (with the connection string redacted)."""
        if not self._config:
            return

        config_dict = self._config.model_dump()

        if config_dict["blob_file_store"].get("connection_string"):
            config_dict["blob_file_store"]["connection_string"] = "***REDACTED***"

        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> BlobFileStoreAppConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> BlobFileStoreAppConfig:
        """Reload configuration from the same sources."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
