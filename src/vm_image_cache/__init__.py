"""VM Image Cache - filesystem-backed store of VM images and containers."""

__version__ = "0.1.0"

from .bundle import BundleParser, VMBundle
from .cache import ImageCache
from .config import CacheConfig
from .exceptions import (
    AlreadyExistsError,
    CorruptBundleError,
    ImageCacheError,
    InvalidOperationError,
    IOFailureError,
    MalformedReferenceError,
    NotFoundError,
)
from .models import (
    BundleState,
    EphemeralTarget,
    ImageDescriptor,
    ImageID,
    ImageItem,
    ImageReference,
    ImageType,
    NamedTarget,
)
from .operations import (
    clone_image,
    find_reference,
    list_containers,
    list_images,
    make_image_reference,
    move_image,
    read_bundle_state,
    remove_image,
)
from .reference import parse_reference

__all__ = [
    "ImageCache",
    "CacheConfig",
    "BundleParser",
    "VMBundle",
    "BundleState",
    "ImageID",
    "ImageDescriptor",
    "ImageReference",
    "ImageType",
    "ImageItem",
    "NamedTarget",
    "EphemeralTarget",
    "parse_reference",
    "ImageCacheError",
    "MalformedReferenceError",
    "AlreadyExistsError",
    "NotFoundError",
    "InvalidOperationError",
    "CorruptBundleError",
    "IOFailureError",
    "list_images",
    "list_containers",
    "find_reference",
    "make_image_reference",
    "clone_image",
    "move_image",
    "remove_image",
    "read_bundle_state",
]
