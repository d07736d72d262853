"""
Abstract Blob Backend Interface.

Defines the primitives a blob service must offer for the file store to
run on top of it: idempotent container creation, conditional and
unconditional uploads, reads, snapshot-inclusive deletes and paginated
listing.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, List, Optional


# Maximum number of entries the blob service returns per listing page.
DEFAULT_PAGE_SIZE = 5000


class BlobKind(str, Enum):
    """Kinds of entries a blob listing can yield."""
    BLOCK = "BlockBlob"
    PAGE = "PageBlob"
    APPEND = "AppendBlob"
    PREFIX = "BlobPrefix"


class UploadOutcome(str, Enum):
    """Result of an upload request that reached the service."""
    CREATED = "created"
    CONFLICT = "conflict"


@dataclass(frozen=True)
class BlobEntry:
    """A single item from a blob listing."""
    name: str
    kind: BlobKind = BlobKind.BLOCK
    size: Optional[int] = None


@dataclass
class BlobListPage:
    """One page of a blob listing plus the token for the next page."""
    entries: List[BlobEntry] = field(default_factory=list)
    continuation_token: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.continuation_token is not None


class BlobBackend(ABC):
    """
    Abstract base class for blob storage backends.

    Implementations translate "expected" service conditions into return
    values (``False``, ``None``, ``UploadOutcome.CONFLICT``) and let every
    other failure propagate unchanged so callers keep full control over
    retries.
    """

    @abstractmethod
    async def create_container_if_not_exists(self, container_name: str) -> bool:
        """
        Create a container unless it already exists.

        Args:
            container_name: Container name (already normalized by the caller)

        Returns:
            True if the container was created, False if it already existed
        """
        pass

    @abstractmethod
    async def blob_exists(self, container_name: str, blob_name: str) -> bool:
        """Return True if the blob exists."""
        pass

    @abstractmethod
    async def open_blob(self, container_name: str, blob_name: str) -> Optional[BinaryIO]:
        """
        Open a readable stream over a blob's content.

        Returns:
            Binary stream positioned at 0, or None if the blob does not exist
        """
        pass

    @abstractmethod
    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        *,
        overwrite: bool,
    ) -> UploadOutcome:
        """
        Upload a block blob.

        Args:
            container_name: Container name
            blob_name: Blob name
            data: Blob content
            overwrite: When False the write carries an "if none match *"
                precondition and is rejected atomically by the service if
                the blob already exists

        Returns:
            UploadOutcome.CREATED, or UploadOutcome.CONFLICT when the
            precondition failed
        """
        pass

    @abstractmethod
    async def delete_blob_if_exists(self, container_name: str, blob_name: str) -> bool:
        """
        Delete a blob together with all of its snapshots.

        Returns:
            True if a blob was deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_blobs_page(
        self,
        container_name: str,
        prefix: Optional[str] = None,
        continuation_token: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> BlobListPage:
        """
        Fetch a single page of a flat (non-hierarchical) blob listing.

        Args:
            container_name: Container name
            prefix: Only list blobs whose name starts with this prefix
            continuation_token: Token returned by the previous page
            page_size: Maximum number of entries in the page

        Returns:
            BlobListPage whose continuation_token is None on the last page
        """
        pass

    async def close(self) -> None:
        """Release network resources held by the backend."""
        return None

    async def __aenter__(self) -> "BlobBackend":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
