"""
File Store Module.

The file store capability contract and its blob storage implementation.
"""

from .interface import FileContent, FileStoreService
from .provisioning import ProvisionedContainerSet, get_default_provisioned_containers
from .file_store import BlobFileStore

__all__ = [
    "FileContent",
    "FileStoreService",
    "BlobFileStore",
    "ProvisionedContainerSet",
    "get_default_provisioned_containers",
]
