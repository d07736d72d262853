"""
Provisioned container memo.

Remembers which containers are known to exist so that each container is
provisioned at most once per memo lifetime. Names are only ever added; a
container deleted out-of-band stays recorded and later uploads to it fail
with the backend's not-found error.
"""

import threading
from typing import Iterator, Set


class ProvisionedContainerSet:
    """Thread-safe add-if-absent set of container names."""

    def __init__(self):
        self._names: Set[str] = set()
        self._lock = threading.Lock()

    def add_if_absent(self, name: str) -> bool:
        """
        Record a container name.

        Returns:
            True if the name was added, False if it was already present
        """
        with self._lock:
            if name in self._names:
                return False
            self._names.add(name)
            return True

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._names

    def __len__(self) -> int:
        with self._lock:
            return len(self._names)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(sorted(self._names))

    def reset(self) -> None:
        """Forget every recorded name (test support)."""
        with self._lock:
            self._names.clear()


# Shared by every store that is not given its own memo
_default_provisioned_containers = ProvisionedContainerSet()


def get_default_provisioned_containers() -> ProvisionedContainerSet:
    """Return the process-wide memo."""
    return _default_provisioned_containers
