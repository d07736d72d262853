"""
File Store Exceptions.

Only conditions the file store interprets itself get a type here. Errors
raised by a blob backend (network, authentication, throttling, server
faults) are passed through to the caller unchanged.
"""

from typing import Optional


class FileStoreError(Exception):
    """Base exception for all file store errors."""

    pass


class ConfigurationError(FileStoreError):
    """Raised when required settings are missing or invalid."""

    def __init__(self, message: str, section: Optional[str] = None):
        self.section = section
        if section:
            message = f"[{section}] {message}"
        super().__init__(message)


class FileAlreadyExistsError(FileStoreError):
    """Raised by a strict create when a file already exists at the key."""

    def __init__(self, container: str, key: str):
        self.container = container
        self.key = key
        super().__init__(f"File already exists: {container}/{key}")
