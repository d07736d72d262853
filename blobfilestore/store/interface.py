"""
File Store Capability Interface.

The contract host applications depend on to store, read and delete files
addressed by a container name and a slash-delimited file key.
"""

from abc import ABC, abstractmethod
from typing import BinaryIO, Optional, Union

# Bytes-like content or a readable binary stream
FileContent = Union[bytes, bytearray, memoryview, BinaryIO]


class FileStoreService(ABC):
    """
    Abstract file store.

    Implementations must treat a missing file as an absent value on read and
    as a no-op on delete.
    """

    @abstractmethod
    async def exists(self, container_name: str, file_name: str) -> bool:
        """
        Determine whether a file exists in the container.

        Args:
            container_name: The name of the container to look in
            file_name: Name of the file to look for

        Returns:
            True if the file exists; otherwise False
        """
        pass

    @abstractmethod
    async def get(self, container_name: str, file_name: str) -> Optional[BinaryIO]:
        """
        Get the specified file as a stream.

        Args:
            container_name: The name of the container to look in
            file_name: The name of the file to get

        Returns:
            Readable binary stream, or None if the file does not exist
        """
        pass

    @abstractmethod
    async def create(self, container_name: str, file_name: str, content: FileContent) -> None:
        """
        Create a new file.

        Raises:
            FileAlreadyExistsError: If a file already exists with the same name
        """
        pass

    @abstractmethod
    async def create_or_replace(self, container_name: str, file_name: str, content: FileContent) -> None:
        """Save a file, creating it or overwriting an existing one."""
        pass

    @abstractmethod
    async def create_if_not_exists(self, container_name: str, file_name: str, content: FileContent) -> bool:
        """
        Create a new file unless one already exists, in which case the
        existing file is left in place.

        Returns:
            True if the file was written, False if it already existed
        """
        pass

    @abstractmethod
    async def delete(self, container_name: str, file_name: str) -> None:
        """Delete a file from the container if it exists."""
        pass

    @abstractmethod
    async def delete_directory(self, container_name: str, directory_name: str) -> None:
        """Delete a directory including all files and sub-directories."""
        pass

    @abstractmethod
    async def clear_directory(self, container_name: str, directory_name: str) -> None:
        """Delete all files and sub-directories of a directory."""
        pass

    @abstractmethod
    async def clear_container(self, container_name: str) -> None:
        """Delete all files in the container, keeping the container."""
        pass
