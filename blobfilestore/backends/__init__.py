"""
Blob Backend Module.

Blob service primitives used by the file store, with an Azure Storage
implementation and an in-memory emulation.
"""

from .base import (
    DEFAULT_PAGE_SIZE,
    BlobBackend,
    BlobEntry,
    BlobKind,
    BlobListPage,
    UploadOutcome,
)
from .azure import AzureBlobBackend
from .memory import (
    BlobNotFoundError,
    ContainerNotFoundError,
    InMemoryBlobBackend,
    InvalidContainerNameError,
)

__all__ = [
    # Abstract interface
    "BlobBackend",
    "BlobEntry",
    "BlobKind",
    "BlobListPage",
    "UploadOutcome",
    "DEFAULT_PAGE_SIZE",
    # Implementations
    "AzureBlobBackend",
    "InMemoryBlobBackend",
    # In-memory backend errors
    "BlobNotFoundError",
    "ContainerNotFoundError",
    "InvalidContainerNameError",
]
