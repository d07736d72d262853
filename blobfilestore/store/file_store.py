"""
Blob File Store

File store implementation over a flat blob namespace. Containers are
provisioned lazily and at most once per memo; directories are simulated
as key prefixes.
"""

import logging
from typing import TYPE_CHECKING, BinaryIO, List, Optional

from ..backends.azure import AzureBlobBackend
from ..backends.base import DEFAULT_PAGE_SIZE, BlobBackend, BlobEntry, BlobKind, UploadOutcome
from ..exceptions import ConfigurationError, FileAlreadyExistsError
from .interface import FileContent, FileStoreService
from .provisioning import ProvisionedContainerSet, get_default_provisioned_containers

if TYPE_CHECKING:  # pragma: no cover
    from ..core.config_manager import BlobFileStoreAppConfig

logger = logging.getLogger(__name__)


class BlobFileStore(FileStoreService):
    """
    File system abstraction for blob storage.

    Every operation first makes sure the (lower-cased) container exists.
    The provisioning memo is shared process-wide unless one is injected.
    """

    def __init__(
        self,
        backend: BlobBackend,
        provisioned_containers: Optional[ProvisionedContainerSet] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if backend is None:
            raise ValueError("backend is required")
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        self._backend = backend
        if provisioned_containers is None:
            provisioned_containers = get_default_provisioned_containers()
        self._provisioned = provisioned_containers
        self._page_size = page_size

    @classmethod
    def from_connection_string(
        cls,
        connection_string: Optional[str],
        provisioned_containers: Optional[ProvisionedContainerSet] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> "BlobFileStore":
        """
        Build a store backed by an Azure Storage account.

        Raises:
            ConfigurationError: If the connection string is missing or malformed
        """
        backend = AzureBlobBackend(connection_string)
        return cls(backend, provisioned_containers=provisioned_containers, page_size=page_size)

    @classmethod
    def from_config(
        cls,
        config: "BlobFileStoreAppConfig",
        provisioned_containers: Optional[ProvisionedContainerSet] = None,
    ) -> "BlobFileStore":
        """Build a store from loaded application configuration."""
        settings = config.blob_file_store
        if not settings.connection_string:
            raise ConfigurationError(
                "The connection_string is required to use the BlobFileStore",
                section="blob_file_store",
            )
        return cls.from_connection_string(
            settings.connection_string,
            provisioned_containers=provisioned_containers,
            page_size=settings.page_size,
        )

    @property
    def backend(self) -> BlobBackend:
        return self._backend

    @property
    def provisioned_containers(self) -> ProvisionedContainerSet:
        return self._provisioned

    async def close(self) -> None:
        await self._backend.close()

    async def __aenter__(self) -> "BlobFileStore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ============================================================================
    # File Operations
    # ============================================================================

    async def exists(self, container_name: str, file_name: str) -> bool:
        container = await self._get_container(container_name)
        return await self._backend.blob_exists(container, file_name)

    async def get(self, container_name: str, file_name: str) -> Optional[BinaryIO]:
        container = await self._get_container(container_name)
        stream = await self._backend.open_blob(container, file_name)
        if stream is None:
            logger.debug(f"File not found: {container}/{file_name}")
        return stream

    async def create(self, container_name: str, file_name: str, content: FileContent) -> None:
        outcome = await self._create(container_name, file_name, content)
        if outcome is UploadOutcome.CONFLICT:
            raise FileAlreadyExistsError(container_name.lower(), file_name)

    async def create_or_replace(self, container_name: str, file_name: str, content: FileContent) -> None:
        container = await self._get_container(container_name)
        data = _read_content(content)
        await self._backend.upload_blob(container, file_name, data, overwrite=True)
        logger.debug(f"Saved {container}/{file_name} ({len(data)} bytes)")

    async def create_if_not_exists(self, container_name: str, file_name: str, content: FileContent) -> bool:
        outcome = await self._create(container_name, file_name, content)
        return outcome is UploadOutcome.CREATED

    async def delete(self, container_name: str, file_name: str) -> None:
        container = await self._get_container(container_name)
        await self._backend.delete_blob_if_exists(container, file_name)

    async def delete_directory(self, container_name: str, directory_name: str) -> None:
        container = await self._get_container(container_name)
        prefix = _directory_prefix(directory_name)
        entries = await self._list_all(container, prefix)
        deleted = await self._delete_entries(container, entries)
        logger.info(f"Deleted {deleted} file(s) under {container}/{prefix}")

    async def clear_directory(self, container_name: str, directory_name: str) -> None:
        # A flat namespace has no directory object to keep, so clearing is deleting
        await self.delete_directory(container_name, directory_name)

    async def clear_container(self, container_name: str) -> None:
        container = await self._get_container(container_name)
        entries = await self._list_all(container, None)
        deleted = await self._delete_entries(container, entries)
        logger.info(f"Cleared {deleted} file(s) from container {container}")

    # ============================================================================
    # Helpers
    # ============================================================================

    async def _create(self, container_name: str, file_name: str, content: FileContent) -> UploadOutcome:
        container = await self._get_container(container_name)
        data = _read_content(content)
        outcome = await self._backend.upload_blob(container, file_name, data, overwrite=False)
        if outcome is UploadOutcome.CONFLICT:
            logger.debug(f"File already exists: {container}/{file_name}")
        else:
            logger.debug(f"Created {container}/{file_name} ({len(data)} bytes)")
        return outcome

    async def _get_container(self, container_name: str) -> str:
        """Normalize a container name and provision it on first use."""
        if not container_name:
            raise ValueError("container_name is required")

        name = container_name.lower()
        if name not in self._provisioned:
            created = await self._backend.create_container_if_not_exists(name)
            if self._provisioned.add_if_absent(name):
                logger.info(f"Provisioned container '{name}' (created={created})")
        return name

    async def _list_all(self, container: str, prefix: Optional[str]) -> List[BlobEntry]:
        """Collect every page of a listing before anything is deleted."""
        entries: List[BlobEntry] = []
        token: Optional[str] = None
        while True:
            page = await self._backend.list_blobs_page(
                container,
                prefix=prefix,
                continuation_token=token,
                page_size=self._page_size,
            )
            entries.extend(page.entries)
            token = page.continuation_token
            if token is None:
                return entries

    async def _delete_entries(self, container: str, entries: List[BlobEntry]) -> int:
        deleted = 0
        for entry in entries:
            if entry.kind in (BlobKind.BLOCK, BlobKind.PAGE):
                if await self._backend.delete_blob_if_exists(container, entry.name):
                    deleted += 1
            else:
                logger.debug(f"Skipping unsupported entry {container}/{entry.name} ({entry.kind.value})")
        return deleted


def _directory_prefix(directory_name: str) -> Optional[str]:
    """Turn a directory name into the key prefix it covers."""
    if not directory_name:
        return None
    if directory_name.endswith("/"):
        return directory_name
    return directory_name + "/"


def _read_content(content: FileContent) -> bytes:
    """Read upload content into bytes, rewinding seekable streams first."""
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)

    if not hasattr(content, "read"):
        raise TypeError(f"Unsupported content type: {type(content).__name__}")

    seekable = getattr(content, "seekable", None)
    if seekable is not None and seekable() and content.tell() != 0:
        content.seek(0)

    data = content.read()
    if not isinstance(data, (bytes, bytearray)):
        raise TypeError("content stream must be opened in binary mode")
    return bytes(data)
