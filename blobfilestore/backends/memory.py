"""
In-Memory Blob Backend

Process-local emulation of the blob service: containers, block/page/append
blobs, snapshots, conditional uploads and marker-based pagination.
Useful for tests and for running the file store without a storage account.
"""

import asyncio
import hashlib
import io
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Dict, List, Optional

from .base import (
    DEFAULT_PAGE_SIZE,
    BlobBackend,
    BlobEntry,
    BlobKind,
    BlobListPage,
    UploadOutcome,
)
from .models import Blob, BlobProperties, Container, ContainerNameValidator

logger = logging.getLogger(__name__)


class ContainerNotFoundError(Exception):
    """Raised when a container is not found."""
    pass


class InvalidContainerNameError(Exception):
    """Raised when a container name is invalid."""
    pass


class BlobNotFoundError(Exception):
    """Raised when a blob is not found."""
    pass


class InMemoryBlobBackend(BlobBackend):
    """
    In-memory storage backend for containers and blobs.

    Storage structure:
        _blobs:     {container_name: {blob_name: Blob}}
        _snapshots: {container_name: {blob_name: {snapshot_id: Blob}}}

    Thread-safe within an event loop using an asyncio lock.
    """

    def __init__(self):
        """Initialize the in-memory backend."""
        self._containers: Dict[str, Container] = {}
        self._blobs: Dict[str, Dict[str, Blob]] = {}
        self._snapshots: Dict[str, Dict[str, Dict[str, Blob]]] = {}
        self._lock = asyncio.Lock()

    def _generate_etag(self) -> str:
        """Generate a unique ETag."""
        return hashlib.md5(uuid.uuid4().bytes).hexdigest()

    def _require_container(self, container_name: str) -> None:
        if container_name not in self._containers:
            raise ContainerNotFoundError(f"Container '{container_name}' not found")

    # ============================================================================
    # Container Operations
    # ============================================================================

    async def create_container_if_not_exists(self, container_name: str) -> bool:
        is_valid, error = ContainerNameValidator.validate(container_name)
        if not is_valid:
            raise InvalidContainerNameError(error)

        async with self._lock:
            if container_name in self._containers:
                return False

            self._containers[container_name] = Container(
                name=container_name,
                etag=self._generate_etag(),
            )
            self._blobs[container_name] = {}
            logger.debug(f"Created container '{container_name}'")
            return True

    async def container_exists(self, container_name: str) -> bool:
        async with self._lock:
            return container_name in self._containers

    async def delete_container(self, container_name: str) -> None:
        """
        Delete a container with all its blobs and snapshots.

        The file store never calls this; it exists to emulate containers
        being removed by another party.

        Raises:
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            self._require_container(container_name)
            del self._containers[container_name]
            self._blobs.pop(container_name, None)
            self._snapshots.pop(container_name, None)

    async def list_containers(self) -> List[str]:
        async with self._lock:
            return sorted(self._containers)

    async def reset(self) -> None:
        """Reset the backend, removing all containers, blobs and snapshots."""
        async with self._lock:
            self._containers.clear()
            self._blobs.clear()
            self._snapshots.clear()

    # ============================================================================
    # Blob Operations
    # ============================================================================

    async def put_blob(
        self,
        container_name: str,
        blob_name: str,
        content: bytes,
        blob_type: BlobKind = BlobKind.BLOCK,
        if_none_match: Optional[str] = None,
    ) -> Optional[Blob]:
        """
        Store a blob.

        Args:
            container_name: Container name
            blob_name: Blob name
            content: Blob content bytes
            blob_type: Kind of blob to store
            if_none_match: "*" to reject the write when the blob exists

        Returns:
            The stored blob, or None when the precondition failed

        Raises:
            ContainerNotFoundError: If container not found
        """
        async with self._lock:
            self._require_container(container_name)
            blobs = self._blobs[container_name]

            if if_none_match == "*" and blob_name in blobs:
                return None

            now = datetime.now(timezone.utc)
            existing = blobs.get(blob_name)
            blob = Blob(
                name=blob_name,
                container_name=container_name,
                content=bytes(content),
                properties=BlobProperties(
                    etag=self._generate_etag(),
                    last_modified=now,
                    creation_time=existing.properties.creation_time if existing else now,
                    content_length=len(content),
                    blob_type=blob_type,
                ),
            )
            blobs[blob_name] = blob
            return blob

    async def get_blob(self, container_name: str, blob_name: str) -> Blob:
        """
        Get blob by name.

        Raises:
            ContainerNotFoundError: If container not found
            BlobNotFoundError: If blob not found
        """
        async with self._lock:
            self._require_container(container_name)
            blob = self._blobs[container_name].get(blob_name)
            if blob is None:
                raise BlobNotFoundError(f"Blob '{blob_name}' not found in container '{container_name}'")
            return blob

    async def blob_exists(self, container_name: str, blob_name: str) -> bool:
        async with self._lock:
            return blob_name in self._blobs.get(container_name, {})

    async def open_blob(self, container_name: str, blob_name: str) -> Optional[BinaryIO]:
        # Both a missing blob and a missing container are a 404 to the caller
        try:
            blob = await self.get_blob(container_name, blob_name)
        except (BlobNotFoundError, ContainerNotFoundError):
            return None
        return io.BytesIO(blob.content)

    async def upload_blob(
        self,
        container_name: str,
        blob_name: str,
        data: bytes,
        *,
        overwrite: bool,
    ) -> UploadOutcome:
        stored = await self.put_blob(
            container_name,
            blob_name,
            data,
            if_none_match=None if overwrite else "*",
        )
        if stored is None:
            return UploadOutcome.CONFLICT
        return UploadOutcome.CREATED

    async def delete_blob_if_exists(self, container_name: str, blob_name: str) -> bool:
        async with self._lock:
            if container_name not in self._containers:
                return False
            self._snapshots.get(container_name, {}).pop(blob_name, None)
            return self._blobs[container_name].pop(blob_name, None) is not None

    async def list_blobs_page(
        self,
        container_name: str,
        prefix: Optional[str] = None,
        continuation_token: Optional[str] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> BlobListPage:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")

        async with self._lock:
            self._require_container(container_name)
            blobs = list(self._blobs[container_name].values())

        if prefix:
            blobs = [b for b in blobs if b.name.startswith(prefix)]

        blobs.sort(key=lambda b: b.name)

        # Continue after the last name returned by the previous page
        if continuation_token:
            blobs = [b for b in blobs if b.name > continuation_token]

        next_token = None
        if len(blobs) > page_size:
            blobs = blobs[:page_size]
            next_token = blobs[-1].name

        entries = [
            BlobEntry(name=b.name, kind=b.properties.blob_type, size=b.properties.content_length)
            for b in blobs
        ]
        return BlobListPage(entries=entries, continuation_token=next_token)

    # ============================================================================
    # Snapshot Operations
    # ============================================================================

    async def create_snapshot(self, container_name: str, blob_name: str) -> Blob:
        """
        Create a read-only point-in-time copy of a blob.

        Raises:
            ContainerNotFoundError: If container not found
            BlobNotFoundError: If blob not found
        """
        async with self._lock:
            self._require_container(container_name)
            base_blob = self._blobs[container_name].get(blob_name)
            if base_blob is None:
                raise BlobNotFoundError(f"Blob '{blob_name}' not found")

            blob_snapshots = self._snapshots.setdefault(container_name, {}).setdefault(blob_name, {})

            snapshot_time = datetime.now(timezone.utc)
            snapshot_id = snapshot_time.strftime('%Y-%m-%dT%H:%M:%S.%fZ')
            while snapshot_id in blob_snapshots:
                snapshot_time += timedelta(microseconds=1)
                snapshot_id = snapshot_time.strftime('%Y-%m-%dT%H:%M:%S.%fZ')

            snapshot = Blob(
                name=blob_name,
                container_name=container_name,
                content=base_blob.content,
                properties=base_blob.properties.model_copy(
                    update={
                        "etag": self._generate_etag(),
                        "last_modified": snapshot_time,
                        "is_snapshot": True,
                        "snapshot_time": snapshot_time,
                    }
                ),
                snapshot_id=snapshot_id,
            )
            blob_snapshots[snapshot_id] = snapshot
            return snapshot

    async def list_blob_snapshots(self, container_name: str, blob_name: str) -> List[Blob]:
        """List snapshots of a blob, oldest first."""
        async with self._lock:
            self._require_container(container_name)
            snapshots = list(self._snapshots.get(container_name, {}).get(blob_name, {}).values())
        snapshots.sort(key=lambda s: s.snapshot_id or "")
        return snapshots
