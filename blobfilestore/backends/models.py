"""
In-Memory Blob Models

Pydantic models for the containers, blobs and snapshots held by the
in-memory backend.
"""

import re
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .base import BlobKind


class ContainerNameValidator:
    """
    Validates Azure Blob Storage container names.

    Rules:
    - 3-63 characters
    - Lowercase letters, numbers, hyphens only
    - Must start and end with letter or number
    - No consecutive hyphens
    """

    PATTERN = re.compile(r'^[a-z0-9]([a-z0-9-]*[a-z0-9])?$')
    MIN_LENGTH = 3
    MAX_LENGTH = 63

    @classmethod
    def validate(cls, name: str) -> tuple[bool, Optional[str]]:
        """
        Validate container name against Azure rules.

        Args:
            name: Container name to validate

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not name:
            return False, "Container name cannot be empty"

        if len(name) < cls.MIN_LENGTH:
            return False, f"Container name must be at least {cls.MIN_LENGTH} characters"

        if len(name) > cls.MAX_LENGTH:
            return False, f"Container name must be at most {cls.MAX_LENGTH} characters"

        if not cls.PATTERN.match(name):
            return False, "Container name must contain only lowercase letters, numbers, and hyphens, and must start/end with letter or number"

        if '--' in name:
            return False, "Container name cannot contain consecutive hyphens"

        return True, None


class BlobProperties(BaseModel):
    """Blob properties tracked by the in-memory backend."""

    etag: str = Field(description="Entity tag for the blob")
    last_modified: datetime = Field(description="Last modified timestamp")
    content_length: int = Field(description="Blob size in bytes")
    blob_type: BlobKind = Field(default=BlobKind.BLOCK)
    creation_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    is_snapshot: bool = Field(default=False)
    snapshot_time: Optional[datetime] = Field(default=None)


class Blob(BaseModel):
    """A stored blob, or a snapshot of one when ``snapshot_id`` is set."""

    name: str = Field(description="Blob name")
    container_name: str = Field(description="Parent container name")
    content: bytes = Field(description="Blob content")
    properties: BlobProperties
    snapshot_id: Optional[str] = Field(default=None)

    model_config = ConfigDict(arbitrary_types_allowed=True)


class Container(BaseModel):
    """A container and its creation details."""

    name: str = Field(description="Container name")
    etag: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, str] = Field(default_factory=dict)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate container name."""
        is_valid, error = ContainerNameValidator.validate(v)
        if not is_valid:
            raise ValueError(error)
        return v
