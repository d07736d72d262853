"""Core module initialization."""

from .config_manager import ConfigManager, BlobFileStoreAppConfig, LoggingConfig
from .logging_config import setup_logging

__all__ = [
    "ConfigManager",
    "BlobFileStoreAppConfig",
    "LoggingConfig",
    "setup_logging",
]
