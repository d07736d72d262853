"""
Shared fixtures for blobfilestore tests.
"""

import pytest

from blobfilestore.backends.memory import InMemoryBlobBackend
from blobfilestore.store.file_store import BlobFileStore
from blobfilestore.store.provisioning import ProvisionedContainerSet


class CountingBackend(InMemoryBlobBackend):
    """In-memory backend that records provisioning and listing calls."""

    def __init__(self):
        super().__init__()
        self.provision_calls = []
        self.list_calls = []

    async def create_container_if_not_exists(self, container_name):
        self.provision_calls.append(container_name)
        return await super().create_container_if_not_exists(container_name)

    async def list_blobs_page(self, container_name, prefix=None, continuation_token=None, page_size=5000):
        self.list_calls.append((container_name, prefix, continuation_token, page_size))
        return await super().list_blobs_page(
            container_name,
            prefix=prefix,
            continuation_token=continuation_token,
            page_size=page_size,
        )


@pytest.fixture
def backend():
    """Create a fresh counting backend for each test."""
    return CountingBackend()


@pytest.fixture
def provisioned():
    """Create an isolated provisioning memo for each test."""
    return ProvisionedContainerSet()


@pytest.fixture
def store(backend, provisioned):
    """Create a file store over the in-memory backend."""
    return BlobFileStore(backend, provisioned_containers=provisioned)
