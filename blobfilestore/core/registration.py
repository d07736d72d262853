"""
Capability registration.

A minimal registry host applications use to look up implementations of
abstract capabilities, and the hook that installs the blob file store as
the "file_store" capability when the plugin is enabled.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..store.file_store import BlobFileStore
from ..store.provisioning import ProvisionedContainerSet
from .config_manager import BlobFileStoreAppConfig

logger = logging.getLogger(__name__)

FILE_STORE_CAPABILITY = "file_store"


class CapabilityAlreadyRegisteredError(Exception):
    """Raised when registering a capability twice without override."""
    pass


class CapabilityNotRegisteredError(Exception):
    """Raised when resolving a capability nobody registered."""
    pass


class CapabilityRegistry:
    """
    Maps capability names to factories.

    Factories run on every resolve; callers that want a single instance
    cache the result themselves.
    """

    def __init__(self):
        self._factories: Dict[str, Callable[[], Any]] = {}

    def register(self, capability: str, factory: Callable[[], Any], *, override: bool = False) -> None:
        """
        Register a factory for a capability.

        Args:
            capability: Capability name
            factory: Zero-argument callable building the implementation
            override: Replace an existing registration instead of failing

        Raises:
            CapabilityAlreadyRegisteredError: If already registered and override is False
        """
        if capability in self._factories and not override:
            raise CapabilityAlreadyRegisteredError(f"Capability '{capability}' is already registered")
        self._factories[capability] = factory
        logger.debug(f"Registered capability '{capability}' (override={override})")

    def resolve(self, capability: str) -> Any:
        """
        Build the implementation registered for a capability.

        Raises:
            CapabilityNotRegisteredError: If nothing is registered
        """
        factory = self._factories.get(capability)
        if factory is None:
            raise CapabilityNotRegisteredError(f"Capability '{capability}' is not registered")
        return factory()

    def is_registered(self, capability: str) -> bool:
        return capability in self._factories

    @property
    def capabilities(self) -> List[str]:
        return sorted(self._factories)


def register_blob_file_store(
    registry: CapabilityRegistry,
    config: BlobFileStoreAppConfig,
    provisioned_containers: Optional[ProvisionedContainerSet] = None,
) -> bool:
    """
    Register BlobFileStore as the file store unless the plugin is disabled.

    The store is built lazily so a missing connection string surfaces as a
    ConfigurationError when the file store is first resolved.

    Each resolve builds a new store with its own storage client; the caller
    owns it and must close it, e.g. ``async with registry.resolve(...)``.
    Resolved stores share the provisioning memo.

    Returns:
        True if the file store was registered
    """
    if config.azure.disabled:
        logger.info("Azure plugin disabled; blob file store not registered")
        return False

    def factory() -> BlobFileStore:
        return BlobFileStore.from_config(config, provisioned_containers=provisioned_containers)

    registry.register(FILE_STORE_CAPABILITY, factory, override=True)
    logger.info("Registered blob file store as the file store capability")
    return True
