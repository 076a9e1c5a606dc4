"""Reference parsing and path templating."""

from pathlib import PurePosixPath

from .exceptions import MalformedReferenceError
from .models import (
    EphemeralTarget,
    ImageDescriptor,
    ImageID,
    ImageReference,
    ImageType,
    NamedTarget,
    Target,
)

# Format accepted by parse_reference, used in error messages
REFERENCE_FORMAT = "<repository>[:<tag>]"


def parse_reference(raw: str) -> ImageDescriptor:
    """Parse ``repository`` or ``repository:tag`` into a descriptor.

    Args:
        raw: Reference string
            - e.g. "alpine", "alpine:latest", "team/macos:14.1"
            - a colon followed by a path is part of the repository:
              "localhost:5000/app"

    Returns:
        ImageDescriptor with the repository and optional tag

    Raises:
        MalformedReferenceError: If the repository part is empty
    """
    if not isinstance(raw, str):
        raise MalformedReferenceError(f"Reference must be a string, got {raw!r}")

    repository, tag = raw, None
    if ":" in raw:
        # Split only on the last ':' so registry-like prefixes stay intact
        head, tail = raw.rsplit(":", 1)
        if "/" not in tail:
            repository, tag = head, tail or None

    if not repository.strip("/"):
        raise MalformedReferenceError(
            f"Invalid reference {raw!r}, expected format {REFERENCE_FORMAT}"
        )

    # Bundle paths must stay strictly inside their root
    segments = [segment for segment in repository.split("/") if segment]
    if repository.startswith("/") or any(s in (".", "..") for s in segments):
        raise MalformedReferenceError(
            f"Invalid reference {raw!r}, repository must be a relative path"
        )

    return ImageDescriptor(repository=repository, tag=tag)


def relative_path(descriptor: ImageDescriptor) -> PurePosixPath:
    """Relative bundle path for a descriptor.

    Separators inside the repository become nested namespace directories.
    """
    return PurePosixPath(str(descriptor))


def target_descriptor(
    target: Target, source: ImageReference, image_id: ImageID
) -> ImageDescriptor:
    """Descriptor a clone of ``source`` lands at."""
    if isinstance(target, NamedTarget):
        return parse_reference(target.reference)
    if isinstance(target, EphemeralTarget):
        return ImageDescriptor(
            repository=f"@{image_id}/{source.descriptor.repository}",
            tag=source.descriptor.tag,
        )
    raise TypeError(f"Unsupported clone target: {target!r}")


def target_type(target: Target) -> ImageType:
    """Kind of reference a clone target produces."""
    if isinstance(target, EphemeralTarget):
        return ImageType.CONTAINER
    return ImageType.IMAGE
