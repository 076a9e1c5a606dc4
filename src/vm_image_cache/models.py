"""Data models for the image cache."""

import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union

from .exceptions import CorruptBundleError


class ImageType(Enum):
    """Which root a reference lives under."""

    IMAGE = "image"
    CONTAINER = "container"


@dataclass(frozen=True)
class ImageID:
    """Opaque durable identity of a bundle."""

    value: uuid.UUID

    @classmethod
    def make(cls) -> "ImageID":
        """Mint a fresh identity."""
        return cls(uuid.uuid4())

    @classmethod
    def parse(cls, text: str) -> "ImageID":
        """Parse the textual form stored in a state record.

        Raises:
            CorruptBundleError: If text is not a valid identifier
        """
        try:
            return cls(uuid.UUID(str(text)))
        except (ValueError, AttributeError, TypeError) as e:
            raise CorruptBundleError(f"Invalid image id: {text!r}") from e

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class ImageDescriptor:
    """Parsed human reference (repository with optional tag)."""

    repository: str
    tag: str | None = None

    def __str__(self) -> str:
        if self.tag:
            return f"{self.repository}:{self.tag}"
        return self.repository


@dataclass(frozen=True)
class ImageReference:
    """Resolved identity of an image or container."""

    id: ImageID
    descriptor: ImageDescriptor
    type: ImageType


@dataclass(frozen=True)
class ImageItem:
    """Listing entry built from a bundle on disk."""

    reference: ImageReference
    created_at: datetime
    size: int  # bytes on disk


@dataclass
class BundleState:
    """State record persisted inside every bundle."""

    id: ImageID
    created_at: datetime


@dataclass(frozen=True)
class NamedTarget:
    """Clone into an image at a caller supplied reference."""

    reference: str


@dataclass(frozen=True)
class EphemeralTarget:
    """Clone into a container under a synthesized, collision-free name."""

    pass


Target = Union[NamedTarget, EphemeralTarget]
