"""
blobfilestore: a file store over cloud blob storage

Store, read and delete files addressed by container and key while the
bytes live in Azure Blob Storage.
"""

__version__ = "0.1.0"

from .exceptions import ConfigurationError, FileAlreadyExistsError, FileStoreError
from .store import BlobFileStore, FileStoreService, ProvisionedContainerSet

__all__ = [
    "BlobFileStore",
    "FileStoreService",
    "ProvisionedContainerSet",
    "FileStoreError",
    "ConfigurationError",
    "FileAlreadyExistsError",
    "__version__",
]
