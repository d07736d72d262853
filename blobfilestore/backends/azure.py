"""
Azure Blob Storage Backend

Implements the blob backend primitives with the asynchronous Azure
Storage SDK (``azure.storage.blob.aio``).
"""

import io
import logging
from typing import BinaryIO, Optional

from azure.core import MatchConditions
from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobType
from azure.storage.blob.aio import BlobServiceClient

from ..exceptions import ConfigurationError
from .base import (
    DEFAULT_PAGE_SIZE,
    BlobBackend,
    BlobEntry,
    BlobKind,
    BlobListPage,
    UploadOutcome,
)

logger = logging.getLogger(__name__)

_BLOB_KINDS = {
    BlobType.BLOCKBLOB: BlobKind.BLOCK,
    BlobType.PAGEBLOB: BlobKind.PAGE,
    BlobType.APPENDBLOB: BlobKind.APPEND,
}


class AzureBlobBackend(BlobBackend):
    """Blob backend talking to an Azure Storage account."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        service_client: Optional[BlobServiceClient] = None,
    ):
        """
        Create the backend from a connection string or a ready client.

        Args:
            connection_string: Storage account connection string
            service_client: Pre-built async BlobServiceClient (takes precedence)

        Raises:
            ConfigurationError: If no client is given and the connection
                string is blank or cannot be parsed
        """
        if service_client is not None:
            self._service = service_client
            return

        if not connection_string or not connection_string.strip():
            raise ConfigurationError(
                "A connection string is required to use the AzureBlobBackend",
                section="blob_file_store",
            )

        try:
            self._service = BlobServiceClient.from_connection_string(connection_string.strip())
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid blob storage connection string: {e}",
                section="blob_file_store",
            ) from e

        logger.info(f"Azure blob backend initialized for account: {self._service.account_name}")

    @property
    def service_client(self) -> BlobServiceClient:
        return self._service

    async def create_container_if_not_exists(self, container_name: str) -> bool:
        container = self._service.get_container_client(container_name)
        try:
            await container.create_container()
        except ResourceExistsError:
            return False
        return True

    async def blob_exists(self, container_name: str, blob_name: str) -> bool:
        blob = self._service.get_blob_client(container_name, blob_name)
        return await blob.exists()

    async def open_blob(self, container_name: str, blob_name: str) -> Optional[BinaryIO]:
        blob = self._service.get_blob_client(container_name, blob_name)
        try:
            downloader = await blob.download_blob()
            data = await downloader.readall()
        except ResourceNotFoundError:
            return None
        return io.BytesIO(data)

    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        *,
        overwrite: bool,
    ) -> UploadOutcome:
        blob = self._service.get_blob_client(container_name, blob_name)

        if overwrite:
            await blob.upload_blob(data, blob_type=BlobType.BLOCKBLOB, overwrite=True)
            return UploadOutcome.CREATED

        # If-None-Match: * makes the service reject the write with 409
        # when the blob already exists.
        try:
            await blob.upload_blob(
                data,
                blob_type=BlobType.BLOCKBLOB,
                overwrite=False,
                etag="*",
                match_condition=MatchConditions.IfMissing,
            )
        except ResourceExistsError:
            return UploadOutcome.CONFLICT
        return UploadOutcome.CREATED

    async def delete_blob_if_exists(self, container_name: str, blob_name: str) -> bool:
        blob = self._service.get_blob_client(container_name, blob_name)
        try:
            await blob.delete_blob(delete_snapshots="include")
        except ResourceNotFoundError:
            return False
        return True

    async def list_blobs_page(
        self,
        container_name: str,
        prefix: Optional[str] = None,
        continuation_token: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> BlobListPage:
        container = self._service.get_container_client(container_name)
        pages = container.list_blobs(
            name_starts_with=prefix or None,
            results_per_page=page_size,
        ).by_page(continuation_token=continuation_token)

        entries = []
        try:
            page = await pages.__anext__()
        except StopAsyncIteration:
            return BlobListPage()

        async for props in page:
            kind = _BLOB_KINDS.get(props.blob_type, BlobKind.PREFIX)
            entries.append(BlobEntry(name=props.name, kind=kind, size=props.size))

        return BlobListPage(entries=entries, continuation_token=pages.continuation_token or None)

    async def close(self) -> None:
        await self._service.close()
